"""Tests for configuration loading."""

import os
from unittest.mock import patch

import pytest

from provisioner.config import (
    DEFAULT_CREATE_TIMEOUT_SECONDS,
    DEFAULT_READ_TIMEOUT_SECONDS,
    ConfigurationError,
    ProviderConfig,
    ResourceTimeouts,
)

SUBSCRIPTION_ID = "12345678-1234-1234-1234-123456789012"


class TestProviderConfig:
    """Tests for ProviderConfig class."""

    def test_valid_config(self) -> None:
        """Test creating a valid configuration with defaults."""
        config = ProviderConfig(subscription_id=SUBSCRIPTION_ID)

        assert config.subscription_id == SUBSCRIPTION_ID
        assert config.timeouts.create == DEFAULT_CREATE_TIMEOUT_SECONDS
        assert config.timeouts.read == DEFAULT_READ_TIMEOUT_SECONDS
        assert config.replication_poll_interval_seconds == 15
        assert config.replication_consecutive_hits == 10

    def test_missing_subscription(self) -> None:
        """Test that missing subscription raises error."""
        with pytest.raises(ConfigurationError) as exc_info:
            ProviderConfig(subscription_id="")

        assert "AZURE_SUBSCRIPTION_ID" in str(exc_info.value)

    def test_invalid_subscription(self) -> None:
        """Test that a non-GUID subscription raises error."""
        with pytest.raises(ConfigurationError) as exc_info:
            ProviderConfig(subscription_id="not-a-guid")

        assert "GUID" in str(exc_info.value)

    def test_invalid_timeouts(self) -> None:
        """Test that non-positive timeouts are all reported."""
        with pytest.raises(ConfigurationError) as exc_info:
            ProviderConfig(
                subscription_id=SUBSCRIPTION_ID,
                timeouts=ResourceTimeouts(create=0, delete=-1),
            )

        message = str(exc_info.value)
        assert "create timeout" in message
        assert "delete timeout" in message

    def test_interval_must_be_below_create_timeout(self) -> None:
        """Test a poll interval at or above the create timeout is rejected."""
        with pytest.raises(ConfigurationError) as exc_info:
            ProviderConfig(
                subscription_id=SUBSCRIPTION_ID,
                timeouts=ResourceTimeouts(create=10),
                replication_poll_interval_seconds=10,
            )

        assert "REPLICATION_POLL_INTERVAL" in str(exc_info.value)

    def test_invalid_consecutive_hits(self) -> None:
        """Test that out-of-range hit counts raise error."""
        with pytest.raises(ConfigurationError) as exc_info:
            ProviderConfig(subscription_id=SUBSCRIPTION_ID, replication_consecutive_hits=0)

        assert "REPLICATION_CONSECUTIVE_HITS" in str(exc_info.value)

    def test_from_env(self) -> None:
        """Test loading configuration from environment."""
        env = {
            "AZURE_SUBSCRIPTION_ID": SUBSCRIPTION_ID,
            "PROVISIONER_CREATE_TIMEOUT": "600",
            "PROVISIONER_READ_TIMEOUT": "60",
            "REPLICATION_POLL_INTERVAL": "2.5",
            "REPLICATION_CONSECUTIVE_HITS": "3",
        }

        with patch.dict(os.environ, env, clear=True):
            config = ProviderConfig.from_env()

        assert config.timeouts.create == 600
        assert config.timeouts.read == 60
        assert config.timeouts.update == 1800
        assert config.replication_poll_interval_seconds == 2.5
        assert config.replication_consecutive_hits == 3

    def test_from_env_rejects_non_integer(self) -> None:
        """Test that malformed integers name the offending variable."""
        env = {
            "AZURE_SUBSCRIPTION_ID": SUBSCRIPTION_ID,
            "REPLICATION_CONSECUTIVE_HITS": "ten",
        }

        with patch.dict(os.environ, env, clear=True):
            with pytest.raises(ConfigurationError) as exc_info:
                ProviderConfig.from_env()

        assert "REPLICATION_CONSECUTIVE_HITS" in str(exc_info.value)

    def test_from_env_rejects_non_number(self) -> None:
        """Test that malformed timeouts name the offending variable."""
        env = {
            "AZURE_SUBSCRIPTION_ID": SUBSCRIPTION_ID,
            "PROVISIONER_DELETE_TIMEOUT": "soon",
        }

        with patch.dict(os.environ, env, clear=True):
            with pytest.raises(ConfigurationError) as exc_info:
                ProviderConfig.from_env()

        assert "PROVISIONER_DELETE_TIMEOUT" in str(exc_info.value)
