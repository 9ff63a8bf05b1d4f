"""Pydantic models for declared resource configuration and observed state.

These models provide:
1. Validation of declared configuration at the boundary (fail fast)
2. Rendering of ARM request bodies for create and patch calls
3. Flattening of ARM responses back into local state
"""

from __future__ import annotations

from typing import Annotated, Any, ClassVar

from pydantic import BaseModel, Field, field_validator

from .resource_ids import NamespaceId, ServiceId

MAX_RESOURCE_GROUP_NAME_LENGTH = 90

NOTIFICATION_HUB_SKUS = frozenset({"Basic", "Free", "Standard"})
NAMESPACE_TYPES = frozenset({"Messaging", "NotificationHub"})


def normalize_location(location: str) -> str:
    """Normalize an Azure region name: "West Europe" -> "westeurope"."""
    return location.replace(" ", "").lower()


def _properties_of(resource: Any) -> dict[str, Any]:
    properties = getattr(resource, "properties", None)
    return properties if isinstance(properties, dict) else {}


class BaseResourceConfig(BaseModel):
    """Fields shared by every resource group scoped resource."""

    model_config = {"extra": "ignore"}

    # Fields whose change cannot be applied in place
    FORCE_NEW_FIELDS: ClassVar[frozenset[str]] = frozenset(
        {"name", "resource_group_name", "location"}
    )

    name: Annotated[str, Field(min_length=1)]
    resource_group_name: Annotated[
        str, Field(min_length=1, max_length=MAX_RESOURCE_GROUP_NAME_LENGTH)
    ]
    location: Annotated[str, Field(min_length=1)]
    tags: dict[str, str] = Field(default_factory=dict)

    @field_validator("location")
    @classmethod
    def validate_location(cls, v: str) -> str:
        return normalize_location(v)

    def requires_replacement(self, prior: BaseModel | None) -> list[str]:
        """List the force-new fields that differ from prior state.

        Fields the prior state does not carry (or carries as None) are skipped.
        """
        if prior is None:
            return []
        changed = []
        for name in sorted(self.FORCE_NEW_FIELDS):
            before = getattr(prior, name, None)
            if before is not None and before != getattr(self, name):
                changed.append(name)
        return changed


# =============================================================================
# Notification Hub Namespace
# =============================================================================


class NotificationHubNamespaceConfig(BaseResourceConfig):
    """Declared configuration of a notification hub namespace."""

    FORCE_NEW_FIELDS: ClassVar[frozenset[str]] = BaseResourceConfig.FORCE_NEW_FIELDS | {
        "enabled",
        "namespace_type",
    }

    sku_name: str
    namespace_type: str
    enabled: bool = True

    @field_validator("sku_name")
    @classmethod
    def validate_sku(cls, v: str) -> str:
        if v not in NOTIFICATION_HUB_SKUS:
            raise ValueError(f"sku_name must be one of {sorted(NOTIFICATION_HUB_SKUS)}")
        return v

    @field_validator("namespace_type")
    @classmethod
    def validate_namespace_type(cls, v: str) -> str:
        if v not in NAMESPACE_TYPES:
            raise ValueError(f"namespace_type must be one of {sorted(NAMESPACE_TYPES)}")
        return v

    def to_arm_body(self) -> dict[str, Any]:
        """Render the PUT body for a namespace."""
        return {
            "location": self.location,
            "sku": {"name": self.sku_name},
            "properties": {
                "namespaceType": self.namespace_type,
                "enabled": self.enabled,
            },
            "tags": dict(self.tags),
        }

    def to_patch_body(self, prior: NotificationHubNamespaceState | None) -> dict[str, Any]:
        """Render the PATCH body, sending sku and tags only when they changed."""
        body: dict[str, Any] = {
            "properties": {
                "namespaceType": self.namespace_type,
                "enabled": self.enabled,
            },
        }
        if prior is None or prior.sku_name != self.sku_name:
            body["sku"] = {"name": self.sku_name}
        if prior is None or prior.tags != self.tags:
            body["tags"] = dict(self.tags)
        return body


class NotificationHubNamespaceState(BaseModel):
    """Observed state of a notification hub namespace."""

    model_config = {"extra": "ignore"}

    id: str
    name: str
    resource_group_name: str
    location: str | None = None
    sku_name: str | None = None
    namespace_type: str | None = None
    enabled: bool | None = None
    tags: dict[str, str] = Field(default_factory=dict)
    servicebus_endpoint: str | None = None

    @classmethod
    def from_arm(cls, namespace_id: NamespaceId, resource: Any) -> NotificationHubNamespaceState:
        """Flatten a generic ARM resource into state.

        Name and resource group always come from the ID, not the response body.
        """
        properties = _properties_of(resource)
        sku = getattr(resource, "sku", None)
        location = getattr(resource, "location", None)
        return cls(
            id=namespace_id.id,
            name=namespace_id.namespace_name,
            resource_group_name=namespace_id.resource_group_name,
            location=normalize_location(location) if location else None,
            sku_name=getattr(sku, "name", None),
            namespace_type=properties.get("namespaceType"),
            enabled=properties.get("enabled"),
            tags=getattr(resource, "tags", None) or {},
            servicebus_endpoint=properties.get("serviceBusEndpoint"),
        )


# =============================================================================
# API Center Service
# =============================================================================


class ApiCenterServiceConfig(BaseResourceConfig):
    """Declared configuration of an API Center service."""

    def to_arm_body(self) -> dict[str, Any]:
        """Render the PUT body for a service."""
        return {
            "location": self.location,
            "properties": {},
            "tags": dict(self.tags),
        }


class ApiCenterServiceState(BaseModel):
    """Observed state of an API Center service."""

    model_config = {"extra": "ignore"}

    id: str
    name: str
    resource_group_name: str
    location: str | None = None
    tags: dict[str, str] = Field(default_factory=dict)
    provisioning_state: str | None = None
    data_api_hostname: str | None = None

    @classmethod
    def from_arm(cls, service_id: ServiceId, resource: Any) -> ApiCenterServiceState:
        properties = _properties_of(resource)
        location = getattr(resource, "location", None)
        return cls(
            id=service_id.id,
            name=service_id.service_name,
            resource_group_name=service_id.resource_group_name,
            location=normalize_location(location) if location else None,
            tags=getattr(resource, "tags", None) or {},
            provisioning_state=properties.get("provisioningState"),
            data_api_hostname=properties.get("dataApiHostname"),
        )
