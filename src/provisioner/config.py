"""Configuration management with validation.

Operation timeouts and replication-wait tuning are validated at load time so
a misconfigured provider fails before it issues any mutating Azure call.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    pass


# Per-operation timeouts, matching the provider defaults for ARM resources
DEFAULT_CREATE_TIMEOUT_SECONDS = 1800
DEFAULT_READ_TIMEOUT_SECONDS = 300
DEFAULT_UPDATE_TIMEOUT_SECONDS = 1800
DEFAULT_DELETE_TIMEOUT_SECONDS = 1800
MAX_OPERATION_TIMEOUT_SECONDS = 24 * 3600

# Replication wait: some data planes report 200 before every region has the resource
DEFAULT_REPLICATION_POLL_INTERVAL_SECONDS = 15
DEFAULT_REPLICATION_CONSECUTIVE_HITS = 10
MAX_REPLICATION_CONSECUTIVE_HITS = 100

VALID_SUBSCRIPTION_ID_PATTERN = r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$"


@dataclass(frozen=True)
class ResourceTimeouts:
    """Timeouts for the four lifecycle operations, in seconds."""

    create: float = DEFAULT_CREATE_TIMEOUT_SECONDS
    read: float = DEFAULT_READ_TIMEOUT_SECONDS
    update: float = DEFAULT_UPDATE_TIMEOUT_SECONDS
    delete: float = DEFAULT_DELETE_TIMEOUT_SECONDS

    def validate(self) -> list[str]:
        """Return a list of problems; empty when valid."""
        errors: list[str] = []
        for name in ("create", "read", "update", "delete"):
            value = getattr(self, name)
            if value <= 0:
                errors.append(f"{name} timeout must be positive: {value}")
            elif value > MAX_OPERATION_TIMEOUT_SECONDS:
                errors.append(
                    f"{name} timeout cannot exceed {MAX_OPERATION_TIMEOUT_SECONDS} seconds"
                )
        return errors


@dataclass(frozen=True)
class ProviderConfig:
    """Provider-level settings shared by all resource adapters.

    All fields are validated at construction time. Invalid configurations
    raise ConfigurationError immediately rather than failing mid-apply.
    """

    subscription_id: str
    timeouts: ResourceTimeouts = field(default_factory=ResourceTimeouts)
    replication_poll_interval_seconds: float = DEFAULT_REPLICATION_POLL_INTERVAL_SECONDS
    replication_consecutive_hits: int = DEFAULT_REPLICATION_CONSECUTIVE_HITS

    def __post_init__(self) -> None:
        errors: list[str] = []

        if not self.subscription_id:
            errors.append("AZURE_SUBSCRIPTION_ID is required")
        elif not re.match(VALID_SUBSCRIPTION_ID_PATTERN, self.subscription_id.lower()):
            errors.append(f"AZURE_SUBSCRIPTION_ID must be a valid GUID: {self.subscription_id}")

        errors.extend(self.timeouts.validate())

        if self.replication_poll_interval_seconds <= 0:
            errors.append("REPLICATION_POLL_INTERVAL must be positive")
        elif self.replication_poll_interval_seconds >= self.timeouts.create:
            errors.append("REPLICATION_POLL_INTERVAL must be smaller than the create timeout")

        if not (1 <= self.replication_consecutive_hits <= MAX_REPLICATION_CONSECUTIVE_HITS):
            errors.append(
                "REPLICATION_CONSECUTIVE_HITS must be between 1 "
                f"and {MAX_REPLICATION_CONSECUTIVE_HITS}"
            )

        if errors:
            error_msg = "Configuration validation failed:\n  - " + "\n  - ".join(errors)
            raise ConfigurationError(error_msg)

    @classmethod
    def from_env(cls) -> ProviderConfig:
        """Load configuration from environment variables.

        Environment Variables:
            AZURE_SUBSCRIPTION_ID: Subscription that owns the managed resources
            PROVISIONER_CREATE_TIMEOUT: Create timeout in seconds (default: 1800)
            PROVISIONER_READ_TIMEOUT: Read timeout in seconds (default: 300)
            PROVISIONER_UPDATE_TIMEOUT: Update timeout in seconds (default: 1800)
            PROVISIONER_DELETE_TIMEOUT: Delete timeout in seconds (default: 1800)
            REPLICATION_POLL_INTERVAL: Seconds between replication probes (default: 15)
            REPLICATION_CONSECUTIVE_HITS: Consecutive 200s required (default: 10)
        """

        def get_int(key: str, default: int) -> int:
            value = os.environ.get(key)
            if value is None:
                return default
            try:
                return int(value)
            except ValueError as e:
                raise ConfigurationError(f"{key} must be an integer: {value}") from e

        def get_float(key: str, default: float) -> float:
            value = os.environ.get(key)
            if value is None:
                return default
            try:
                return float(value)
            except ValueError as e:
                raise ConfigurationError(f"{key} must be a number: {value}") from e

        return cls(
            subscription_id=os.environ.get("AZURE_SUBSCRIPTION_ID", ""),
            timeouts=ResourceTimeouts(
                create=get_float("PROVISIONER_CREATE_TIMEOUT", DEFAULT_CREATE_TIMEOUT_SECONDS),
                read=get_float("PROVISIONER_READ_TIMEOUT", DEFAULT_READ_TIMEOUT_SECONDS),
                update=get_float("PROVISIONER_UPDATE_TIMEOUT", DEFAULT_UPDATE_TIMEOUT_SECONDS),
                delete=get_float("PROVISIONER_DELETE_TIMEOUT", DEFAULT_DELETE_TIMEOUT_SECONDS),
            ),
            replication_poll_interval_seconds=get_float(
                "REPLICATION_POLL_INTERVAL", DEFAULT_REPLICATION_POLL_INTERVAL_SECONDS
            ),
            replication_consecutive_hits=get_int(
                "REPLICATION_CONSECUTIVE_HITS", DEFAULT_REPLICATION_CONSECUTIVE_HITS
            ),
        )
