"""Tests for declared configuration and state models."""

from __future__ import annotations

import pytest
from azure_mock import MockGenericResource, MockSku
from pydantic import ValidationError

from provisioner.models import (
    ApiCenterServiceConfig,
    ApiCenterServiceState,
    NotificationHubNamespaceConfig,
    NotificationHubNamespaceState,
    normalize_location,
)
from provisioner.resource_ids import NamespaceId, ServiceId

SUB = "12345678-1234-1234-1234-123456789012"


def _namespace_config(**overrides: object) -> NotificationHubNamespaceConfig:
    data: dict[str, object] = {
        "name": "ns-prod",
        "resource_group_name": "rg-hubs",
        "location": "West Europe",
        "sku_name": "Free",
        "namespace_type": "NotificationHub",
        "tags": {"env": "prod"},
    }
    data.update(overrides)
    return NotificationHubNamespaceConfig.model_validate(data)


class TestNotificationHubNamespaceConfig:
    """Tests for NotificationHubNamespaceConfig model."""

    def test_valid_config(self) -> None:
        """Test defaults and location normalization."""
        config = _namespace_config()

        assert config.location == "westeurope"
        assert config.enabled is True
        assert config.tags == {"env": "prod"}

    def test_invalid_sku(self) -> None:
        """Test sku_name is restricted to the service's SKUs."""
        with pytest.raises(ValidationError) as exc_info:
            _namespace_config(sku_name="Premium")

        assert "sku_name" in str(exc_info.value)

    def test_invalid_namespace_type(self) -> None:
        with pytest.raises(ValidationError):
            _namespace_config(namespace_type="EventHub")

    def test_missing_name(self) -> None:
        with pytest.raises(ValidationError):
            _namespace_config(name="")

    def test_resource_group_length(self) -> None:
        with pytest.raises(ValidationError):
            _namespace_config(resource_group_name="r" * 91)

    def test_to_arm_body(self) -> None:
        """Test the PUT body layout."""
        body = _namespace_config(enabled=False).to_arm_body()

        assert body == {
            "location": "westeurope",
            "sku": {"name": "Free"},
            "properties": {"namespaceType": "NotificationHub", "enabled": False},
            "tags": {"env": "prod"},
        }

    def test_patch_body_without_prior_sends_everything(self) -> None:
        body = _namespace_config().to_patch_body(None)

        assert body["sku"] == {"name": "Free"}
        assert body["tags"] == {"env": "prod"}

    def test_patch_body_sends_only_changes(self) -> None:
        """Test sku and tags are omitted when unchanged."""
        prior = NotificationHubNamespaceState(
            id="x",
            name="ns-prod",
            resource_group_name="rg-hubs",
            location="westeurope",
            sku_name="Free",
            tags={"env": "prod"},
        )

        unchanged = _namespace_config().to_patch_body(prior)
        resized = _namespace_config(sku_name="Standard").to_patch_body(prior)

        assert "sku" not in unchanged
        assert "tags" not in unchanged
        assert unchanged["properties"] == {"namespaceType": "NotificationHub", "enabled": True}
        assert resized["sku"] == {"name": "Standard"}
        assert "tags" not in resized

    def test_requires_replacement(self) -> None:
        """Test force-new fields are detected and unknown prior values skipped."""
        prior = NotificationHubNamespaceState(
            id="x",
            name="ns-prod",
            resource_group_name="rg-hubs",
            location="northeurope",
            sku_name="Free",
            namespace_type=None,
        )

        changed = _namespace_config(namespace_type="Messaging").requires_replacement(prior)

        assert changed == ["location"]
        assert _namespace_config().requires_replacement(None) == []


class TestNotificationHubNamespaceState:
    """Tests for flattening ARM responses."""

    def test_from_arm(self) -> None:
        namespace_id = NamespaceId(SUB, "rg-hubs", "ns-prod")
        resource = MockGenericResource(
            id=namespace_id.id.lower(),
            name="ns-prod",
            type="Microsoft.NotificationHubs/namespaces",
            location="West Europe",
            tags={"env": "prod"},
            sku=MockSku(name="Standard"),
            properties={
                "enabled": True,
                "namespaceType": "Messaging",
                "serviceBusEndpoint": "https://ns-prod.servicebus.windows.net:443/",
            },
        )

        state = NotificationHubNamespaceState.from_arm(namespace_id, resource)

        assert state.id == namespace_id.id
        assert state.name == "ns-prod"
        assert state.location == "westeurope"
        assert state.sku_name == "Standard"
        assert state.enabled is True
        assert state.namespace_type == "Messaging"
        assert state.servicebus_endpoint == "https://ns-prod.servicebus.windows.net:443/"

    def test_from_arm_tolerates_sparse_response(self) -> None:
        namespace_id = NamespaceId(SUB, "rg-hubs", "ns-prod")
        resource = MockGenericResource(id=namespace_id.id, name="ns-prod", type="t", properties={})

        state = NotificationHubNamespaceState.from_arm(namespace_id, resource)

        assert state.location is None
        assert state.sku_name is None
        assert state.tags == {}


class TestApiCenterService:
    """Tests for API Center service models."""

    def test_config_and_body(self) -> None:
        config = ApiCenterServiceConfig.model_validate(
            {"name": "apic", "resource_group_name": "rg", "location": "East US"}
        )

        assert config.to_arm_body() == {"location": "eastus", "properties": {}, "tags": {}}

    def test_state_from_arm(self) -> None:
        service_id = ServiceId(SUB, "rg", "apic")
        resource = MockGenericResource(
            id=service_id.id,
            name="apic",
            type="Microsoft.ApiCenter/services",
            location="eastus",
            properties={
                "provisioningState": "Succeeded",
                "dataApiHostname": "apic.data.eastus.azure-apicenter.ms",
            },
        )

        state = ApiCenterServiceState.from_arm(service_id, resource)

        assert state.provisioning_state == "Succeeded"
        assert state.data_api_hostname == "apic.data.eastus.azure-apicenter.ms"


def test_normalize_location() -> None:
    assert normalize_location("West US 2") == "westus2"
    assert normalize_location("westus2") == "westus2"
