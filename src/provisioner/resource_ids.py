"""Typed Azure resource IDs for the managed resource types.

Azure resource IDs follow the pattern:
/subscriptions/{sub}/resourceGroups/{rg}/providers/{namespace}/{type}/{name}

Segment keys are matched case-insensitively (ARM itself is inconsistent about
``resourceGroups`` vs ``resourcegroups``), the provider namespace and type are
matched case-insensitively too, and IDs are always rendered canonically.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


class ResourceIdError(ValueError):
    """Raised when a string is not a valid ID for the expected resource type."""

    pass


def _parse_segments(resource_id: str, provider: str, type_key: str) -> tuple[str, str, str]:
    """Split an ID into (subscription, resource group, name).

    Raises:
        ResourceIdError: If the ID does not match the expected shape.
    """
    if not resource_id or not resource_id.startswith("/"):
        raise ResourceIdError(f"parsing {resource_id!r}: ID must start with '/'")

    segments = resource_id.strip("/").split("/")
    expected = [
        "subscriptions", None, "resourcegroups", None, "providers", provider, type_key, None
    ]

    if len(segments) != len(expected):
        raise ResourceIdError(
            f"parsing {resource_id!r}: expected {len(expected)} segments "
            f"for a {provider}/{type_key} ID, got {len(segments)}"
        )

    for position, (segment, literal) in enumerate(zip(segments, expected, strict=True)):
        if not segment:
            raise ResourceIdError(f"parsing {resource_id!r}: segment {position} is empty")
        if literal is not None and segment.lower() != literal.lower():
            raise ResourceIdError(
                f"parsing {resource_id!r}: expected segment {literal!r} "
                f"at position {position}, got {segment!r}"
            )

    return segments[1], segments[3], segments[7]


@dataclass(frozen=True)
class NamespaceId:
    """ID of a Microsoft.NotificationHubs/namespaces resource."""

    PROVIDER: ClassVar[str] = "Microsoft.NotificationHubs"
    TYPE: ClassVar[str] = "namespaces"

    subscription_id: str
    resource_group_name: str
    namespace_name: str

    @classmethod
    def parse(cls, resource_id: str) -> NamespaceId:
        sub, rg, name = _parse_segments(resource_id, cls.PROVIDER, cls.TYPE)
        return cls(subscription_id=sub, resource_group_name=rg, namespace_name=name)

    @property
    def id(self) -> str:
        return (
            f"/subscriptions/{self.subscription_id}/resourceGroups/{self.resource_group_name}"
            f"/providers/{self.PROVIDER}/{self.TYPE}/{self.namespace_name}"
        )

    def __str__(self) -> str:
        return (
            f"Namespace (Subscription: {self.subscription_id!r}, "
            f"Resource Group Name: {self.resource_group_name!r}, "
            f"Namespace Name: {self.namespace_name!r})"
        )


@dataclass(frozen=True)
class ServiceId:
    """ID of a Microsoft.ApiCenter/services resource."""

    PROVIDER: ClassVar[str] = "Microsoft.ApiCenter"
    TYPE: ClassVar[str] = "services"

    subscription_id: str
    resource_group_name: str
    service_name: str

    @classmethod
    def parse(cls, resource_id: str) -> ServiceId:
        sub, rg, name = _parse_segments(resource_id, cls.PROVIDER, cls.TYPE)
        return cls(subscription_id=sub, resource_group_name=rg, service_name=name)

    @property
    def id(self) -> str:
        return (
            f"/subscriptions/{self.subscription_id}/resourceGroups/{self.resource_group_name}"
            f"/providers/{self.PROVIDER}/{self.TYPE}/{self.service_name}"
        )

    def __str__(self) -> str:
        return (
            f"Service (Subscription: {self.subscription_id!r}, "
            f"Resource Group Name: {self.resource_group_name!r}, "
            f"Service Name: {self.service_name!r})"
        )
