"""Service registrations - which resource types this provider exposes.

Each Azure service contributes a registration naming the service, the
documentation categories it belongs to and the resource adapters it ships.
"""

from __future__ import annotations

import logging

from .resources.api_center_service import ApiCenterServiceAdapter
from .resources.base import ResourceAdapter
from .resources.notification_hub_namespace import NotificationHubNamespaceAdapter

logger = logging.getLogger(__name__)


class ServiceRegistration:
    """Base class for a service's registration."""

    name: str = ""
    website_categories: tuple[str, ...] = ()
    adapters: tuple[type[ResourceAdapter], ...] = ()

    def resources(self) -> dict[str, type[ResourceAdapter]]:
        """Map resource type names to adapter classes."""
        return {adapter.TYPE_NAME: adapter for adapter in self.adapters}


class ApiCenterRegistration(ServiceRegistration):
    name = "API Center"
    website_categories = ("API Center",)
    adapters = (ApiCenterServiceAdapter,)


class NotificationHubRegistration(ServiceRegistration):
    name = "Notification Hubs"
    website_categories = ("Messaging",)
    adapters = (NotificationHubNamespaceAdapter,)


SERVICE_REGISTRATIONS: tuple[ServiceRegistration, ...] = (
    ApiCenterRegistration(),
    NotificationHubRegistration(),
)


def registered_resources() -> dict[str, type[ResourceAdapter]]:
    """Collect resource adapters from all registrations.

    Raises:
        ValueError: If two services claim the same resource type name.
    """
    resources: dict[str, type[ResourceAdapter]] = {}
    owners: dict[str, str] = {}
    for registration in SERVICE_REGISTRATIONS:
        for type_name, adapter in registration.resources().items():
            existing = owners.get(type_name)
            if existing and existing != registration.name:
                raise ValueError(
                    f"Resource type '{type_name}' is already claimed by "
                    f"service '{existing}'. Cannot register '{registration.name}'."
                )
            resources[type_name] = adapter
            owners[type_name] = registration.name
    logger.debug("Registered resources", extra={"resource_types": sorted(resources)})
    return resources


def adapter_for(type_name: str) -> type[ResourceAdapter]:
    """Look up the adapter class for a resource type name.

    Raises:
        KeyError: If no service registers the type.
    """
    resources = registered_resources()
    try:
        return resources[type_name]
    except KeyError:
        raise KeyError(
            f"Unknown resource type '{type_name}'. Known types: {sorted(resources)}"
        ) from None
