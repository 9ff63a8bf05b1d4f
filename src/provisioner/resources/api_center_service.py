"""Lifecycle adapter for Microsoft.ApiCenter/services."""

from __future__ import annotations

import logging

from azure.core.exceptions import HttpResponseError

from ..models import ApiCenterServiceConfig, ApiCenterServiceState
from ..policy import PollPolicy
from ..probe import UNKNOWN_PROVISIONING_STATE, arm_resource_probe, provisioning_state
from ..resource_ids import ServiceId
from .base import ResourceAdapter, ResourceAdapterError, to_generic_resource

logger = logging.getLogger(__name__)

# A 200 without provisioningState means the service has not reported progress yet
PROVISIONING_PENDING_STATES = frozenset(
    {"Accepted", "Creating", "Updating", "Provisioning", UNKNOWN_PROVISIONING_STATE}
)
PROVISIONING_SUCCEEDED = "Succeeded"
PROVISIONING_POLL_INTERVAL_SECONDS = 5


class ApiCenterServiceAdapter(ResourceAdapter):
    """Create, read, update and delete API Center services."""

    TYPE_NAME = "azurerm_api_center_service"
    API_VERSION = "2024-03-01"

    def _provisioning_policy(self, timeout_seconds: float) -> PollPolicy:
        # Failed and Canceled are in neither set and end the wait as unexpected
        return PollPolicy(
            pending_statuses=PROVISIONING_PENDING_STATES,
            target_statuses=frozenset({PROVISIONING_SUCCEEDED}),
            min_interval_seconds=min(PROVISIONING_POLL_INTERVAL_SECONDS, timeout_seconds / 2),
            timeout_seconds=timeout_seconds,
        )

    async def create(self, config: ApiCenterServiceConfig) -> ApiCenterServiceState:
        """Create a service and wait until it reports provisioningState Succeeded.

        The presence check, the PUT, the provisioning wait and the final read
        share a single create timeout.

        Raises:
            ResourceAlreadyExistsError: If the service already exists.
            ProvisioningError: If provisioning failed or did not finish in time.
            ResourceAdapterError: If an Azure call fails.
            TimeoutError: If the create timeout ran out outside the wait.
        """
        service_id = ServiceId(
            subscription_id=self._config.subscription_id,
            resource_group_name=config.resource_group_name,
            service_name=config.name,
        )
        resource_id = service_id.id
        deadline = self._deadline(self._config.timeouts.create)

        await self._ensure_absent(
            resource_id, self._time_left(deadline, f"Checking for {service_id}")
        )

        parameters = to_generic_resource(config.to_arm_body())
        try:
            await self._execute_with_timeout(
                lambda: self._client.resources.begin_create_or_update_by_id(
                    resource_id=resource_id,
                    api_version=self.API_VERSION,
                    parameters=parameters,
                ),
                timeout_seconds=self._time_left(deadline, f"Creating {service_id}"),
                operation_name=f"Creating {service_id}",
            )
        except HttpResponseError as e:
            raise ResourceAdapterError(f"creating {service_id}: {e}") from e

        await self._wait_until(
            resource_id,
            arm_resource_probe(self._client, self.API_VERSION, status_from=provisioning_state),
            self._provisioning_policy(self._config.timeouts.create),
            f"waiting for provisioning of {service_id}",
            deadline,
        )

        state = await self._fetch(
            service_id, self._time_left(deadline, f"Retrieving {service_id}")
        )
        if state is None:
            raise ResourceAdapterError(f"{service_id} disappeared after creation")
        return state

    async def read(self, resource_id: str) -> ApiCenterServiceState | None:
        """Read a service, returning None if it no longer exists."""
        return await self._fetch(ServiceId.parse(resource_id), self._config.timeouts.read)

    async def _fetch(
        self, service_id: ServiceId, timeout_seconds: float
    ) -> ApiCenterServiceState | None:
        try:
            resource = await self._get(service_id.id, timeout_seconds)
        except HttpResponseError as e:
            raise ResourceAdapterError(f"retrieving {service_id}: {e}") from e

        if resource is None:
            logger.debug(f"{service_id} was not found - removing from state!")
            return None

        return ApiCenterServiceState.from_arm(service_id, resource)

    async def update(
        self,
        resource_id: str,
        config: ApiCenterServiceConfig,
        prior: ApiCenterServiceState | None = None,
    ) -> ApiCenterServiceState | None:
        """Update the tags of a service.

        Raises:
            ResourceAdapterError: If the change needs a new service or the
                PATCH fails.
        """
        service_id = ServiceId.parse(resource_id)

        replaced = config.requires_replacement(prior)
        if replaced:
            raise ResourceAdapterError(
                f"updating {service_id}: {', '.join(replaced)} cannot be changed in place"
            )

        if prior is not None and prior.tags == config.tags:
            logger.debug(f"No changes to apply for {service_id}")
            return prior

        parameters = to_generic_resource({"tags": dict(config.tags)})
        try:
            await self._execute_with_timeout(
                lambda: self._client.resources.begin_update_by_id(
                    resource_id=service_id.id,
                    api_version=self.API_VERSION,
                    parameters=parameters,
                ),
                timeout_seconds=self._config.timeouts.update,
                operation_name=f"Updating {service_id}",
            )
        except HttpResponseError as e:
            raise ResourceAdapterError(f"updating {service_id}: {e}") from e

        return await self.read(service_id.id)

    async def delete(self, resource_id: str) -> None:
        """Delete a service. A service that is already gone is not an error."""
        service_id = ServiceId.parse(resource_id)
        await self._delete(service_id.id)

    async def exists(self, resource_id: str) -> bool:
        """Check whether the service exists in Azure.

        Unlike read(), a missing service is reported as an error.
        """
        service_id = ServiceId.parse(resource_id)
        try:
            resource = await self._call(
                self._client.resources.get_by_id,
                self._config.timeouts.read,
                f"Retrieving {service_id}",
                resource_id=service_id.id,
                api_version=self.API_VERSION,
            )
        except HttpResponseError as e:
            raise ResourceAdapterError(f"retrieving {service_id}: {e}") from e
        return resource is not None and getattr(resource, "id", None) is not None

    async def import_state(self, resource_id: str) -> ApiCenterServiceState | None:
        """Validate an ID supplied for import and read the service."""
        return await self.read(ServiceId.parse(resource_id).id)
