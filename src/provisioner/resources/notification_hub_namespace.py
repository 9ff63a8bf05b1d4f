"""Lifecycle adapter for Microsoft.NotificationHubs/namespaces.

Namespaces are created synchronously by ARM but are not immediately readable
in every region. After the PUT the adapter waits until GETs have returned 200
several times in a row before reporting the namespace as created; until then
404 simply means "not replicated yet".
"""

from __future__ import annotations

import logging

from azure.core.exceptions import HttpResponseError

from ..models import NotificationHubNamespaceConfig, NotificationHubNamespaceState
from ..policy import replication_policy
from ..probe import arm_resource_probe
from ..resource_ids import NamespaceId
from .base import ResourceAdapter, ResourceAdapterError, to_generic_resource

logger = logging.getLogger(__name__)


class NotificationHubNamespaceAdapter(ResourceAdapter):
    """Create, read, update and delete notification hub namespaces."""

    TYPE_NAME = "azurerm_notification_hub_namespace"
    API_VERSION = "2023-09-01"

    async def create(self, config: NotificationHubNamespaceConfig) -> NotificationHubNamespaceState:
        """Create a namespace and wait for it to finish replicating.

        The presence check, the PUT, the replication wait and the final read
        share a single create timeout.

        Raises:
            ResourceAlreadyExistsError: If the namespace already exists.
            ProvisioningError: If replication did not settle in time.
            ResourceAdapterError: If an Azure call fails.
            TimeoutError: If the create timeout ran out outside the wait.
        """
        namespace_id = NamespaceId(
            subscription_id=self._config.subscription_id,
            resource_group_name=config.resource_group_name,
            namespace_name=config.name,
        )
        resource_id = namespace_id.id
        deadline = self._deadline(self._config.timeouts.create)

        await self._ensure_absent(
            resource_id, self._time_left(deadline, f"Checking for {namespace_id}")
        )

        parameters = to_generic_resource(config.to_arm_body())
        try:
            await self._execute_with_timeout(
                lambda: self._client.resources.begin_create_or_update_by_id(
                    resource_id=resource_id,
                    api_version=self.API_VERSION,
                    parameters=parameters,
                ),
                timeout_seconds=self._time_left(deadline, f"Creating {namespace_id}"),
                operation_name=f"Creating {namespace_id}",
            )
        except HttpResponseError as e:
            raise ResourceAdapterError(f"creating {namespace_id}: {e}") from e

        logger.debug(f"Waiting for {namespace_id} to be created..")
        policy = replication_policy(
            timeout_seconds=self._config.timeouts.create,
            min_interval_seconds=self._config.replication_poll_interval_seconds,
            required_consecutive_target_hits=self._config.replication_consecutive_hits,
        )
        await self._wait_until(
            resource_id,
            arm_resource_probe(self._client, self.API_VERSION),
            policy,
            f"waiting for {namespace_id} to finish replicating",
            deadline,
        )

        state = await self._fetch(
            namespace_id, self._time_left(deadline, f"Retrieving {namespace_id}")
        )
        if state is None:
            raise ResourceAdapterError(f"{namespace_id} disappeared after creation")
        return state

    async def read(self, resource_id: str) -> NotificationHubNamespaceState | None:
        """Read a namespace.

        Returns:
            The flattened state, or None if the namespace no longer exists and
            should be removed from local state.
        """
        return await self._fetch(NamespaceId.parse(resource_id), self._config.timeouts.read)

    async def _fetch(
        self, namespace_id: NamespaceId, timeout_seconds: float
    ) -> NotificationHubNamespaceState | None:
        try:
            resource = await self._get(namespace_id.id, timeout_seconds)
        except HttpResponseError as e:
            raise ResourceAdapterError(f"retrieving {namespace_id}: {e}") from e

        if resource is None:
            logger.debug(f"{namespace_id} was not found - removing from state!")
            return None

        return NotificationHubNamespaceState.from_arm(namespace_id, resource)

    async def update(
        self,
        resource_id: str,
        config: NotificationHubNamespaceConfig,
        prior: NotificationHubNamespaceState | None = None,
    ) -> NotificationHubNamespaceState | None:
        """Patch a namespace in place.

        Sku and tags are only sent when they differ from ``prior``.

        Raises:
            ResourceAdapterError: If the change needs a new namespace or the
                PATCH fails.
        """
        namespace_id = NamespaceId.parse(resource_id)

        replaced = config.requires_replacement(prior)
        if replaced:
            raise ResourceAdapterError(
                f"updating {namespace_id}: {', '.join(replaced)} cannot be changed in place"
            )

        parameters = to_generic_resource(config.to_patch_body(prior))
        try:
            await self._execute_with_timeout(
                lambda: self._client.resources.begin_update_by_id(
                    resource_id=namespace_id.id,
                    api_version=self.API_VERSION,
                    parameters=parameters,
                ),
                timeout_seconds=self._config.timeouts.update,
                operation_name=f"Updating {namespace_id}",
            )
        except HttpResponseError as e:
            raise ResourceAdapterError(f"updating {namespace_id}: {e}") from e

        return await self.read(namespace_id.id)

    async def delete(self, resource_id: str) -> None:
        """Delete a namespace. A namespace that is already gone is not an error."""
        namespace_id = NamespaceId.parse(resource_id)
        await self._delete(namespace_id.id)

    async def import_state(self, resource_id: str) -> NotificationHubNamespaceState | None:
        """Validate an ID supplied for import and read the namespace."""
        return await self.read(NamespaceId.parse(resource_id).id)
