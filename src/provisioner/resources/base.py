"""Shared plumbing for resource lifecycle adapters.

Adapters drive the generic by-ID operations of ResourceManagementClient. The
SDK client is synchronous, so every call runs in the default executor and is
bounded by the operation timeout. The client is owned by the caller.

SECURITY: Timeouts are enforced on all Azure API calls to prevent indefinite hangs.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, ClassVar

from azure.core.exceptions import HttpResponseError, ResourceNotFoundError
from azure.mgmt.resource.resources.models import GenericResource, Sku

from ..config import ProviderConfig
from ..policy import PollPolicy
from ..probe import StatusProbe
from ..reconciler import AsyncReconciler, ReconcileError, ReconciliationOutcome

if TYPE_CHECKING:
    from azure.mgmt.resource import ResourceManagementClient

logger = logging.getLogger(__name__)


class ResourceAdapterError(Exception):
    """Raised when a lifecycle operation cannot be completed."""

    pass


class ResourceAlreadyExistsError(ResourceAdapterError):
    """Raised when create finds a resource that is not yet under management."""

    def __init__(self, type_name: str, resource_id: str) -> None:
        super().__init__(
            f"A resource with the ID {resource_id!r} already exists - to be managed "
            f"this resource needs to be imported as {type_name!r}."
        )
        self.type_name = type_name
        self.resource_id = resource_id


class ProvisioningError(ResourceAdapterError):
    """Raised when waiting for a resource to converge did not succeed."""

    def __init__(self, message: str, outcome: ReconciliationOutcome) -> None:
        super().__init__(message)
        self.outcome = outcome


def is_not_found(error: HttpResponseError) -> bool:
    """Check whether an ARM error means the resource does not exist."""
    return isinstance(error, ResourceNotFoundError) or error.status_code == 404


def to_generic_resource(body: dict[str, Any]) -> GenericResource:
    """Convert a rendered ARM body into the SDK's generic resource model."""
    sku = body.get("sku")
    return GenericResource(
        location=body.get("location"),
        tags=body.get("tags"),
        sku=Sku(name=sku["name"]) if sku else None,
        properties=body.get("properties"),
    )


class ResourceAdapter:
    """Base class for create/read/update/delete adapters of one resource type."""

    TYPE_NAME: ClassVar[str]
    API_VERSION: ClassVar[str]

    def __init__(
        self,
        client: ResourceManagementClient,
        config: ProviderConfig,
        stop_event: asyncio.Event | None = None,
        reconciler: AsyncReconciler | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            client: Management client for the target subscription.
            config: Validated provider configuration.
            stop_event: Provider stop signal; aborts waits in progress.
            reconciler: Reconciler used for post-mutation waits.
        """
        self._client = client
        self._config = config
        self._stop_event = stop_event
        self._reconciler = reconciler or AsyncReconciler(cancel_event=stop_event)

    @property
    def config(self) -> ProviderConfig:
        """Get the provider configuration."""
        return self._config

    async def _call(
        self,
        operation: Callable[..., Any],
        timeout_seconds: float,
        operation_name: str,
        **kwargs: Any,
    ) -> Any:
        """Run a synchronous SDK call in the executor with a timeout.

        Raises:
            TimeoutError: If the call exceeds timeout_seconds.
            HttpResponseError: If Azure API returns an error.
        """
        loop = asyncio.get_running_loop()
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(None, functools.partial(operation, **kwargs)),
                timeout=timeout_seconds,
            )
        except TimeoutError:
            logger.error(
                f"{operation_name} timed out",
                extra={"type_name": self.TYPE_NAME, "timeout_seconds": timeout_seconds},
            )
            raise

    async def _execute_with_timeout(
        self,
        begin_operation: Callable[[], Any],
        timeout_seconds: float,
        operation_name: str,
    ) -> Any:
        """Start an Azure SDK long-running operation and wait for its result.

        Args:
            begin_operation: Callable that returns an LROPoller.
            timeout_seconds: Maximum time to wait for operation completion.
            operation_name: Human-readable name for logging.

        Raises:
            TimeoutError: If operation exceeds timeout.
            HttpResponseError: If Azure API returns an error.
        """
        loop = asyncio.get_running_loop()
        poller = await loop.run_in_executor(None, begin_operation)
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(None, poller.result),
                timeout=timeout_seconds,
            )
        except TimeoutError:
            logger.error(
                f"{operation_name} timed out",
                extra={"type_name": self.TYPE_NAME, "timeout_seconds": timeout_seconds},
            )
            raise

    async def _get(self, resource_id: str, timeout_seconds: float) -> Any | None:
        """GET a resource by ID, returning None when it does not exist."""
        try:
            return await self._call(
                self._client.resources.get_by_id,
                timeout_seconds,
                f"Retrieving {resource_id}",
                resource_id=resource_id,
                api_version=self.API_VERSION,
            )
        except HttpResponseError as e:
            if is_not_found(e):
                return None
            raise

    async def _ensure_absent(self, resource_id: str, timeout_seconds: float) -> None:
        """Fail if the resource already exists.

        Raises:
            ResourceAlreadyExistsError: If a GET finds the resource.
            ResourceAdapterError: If the presence check itself fails.
        """
        try:
            existing = await self._get(resource_id, timeout_seconds)
        except HttpResponseError as e:
            raise ResourceAdapterError(
                f"checking for presence of existing {resource_id}: {e}"
            ) from e
        if existing is not None:
            raise ResourceAlreadyExistsError(self.TYPE_NAME, resource_id)

    def _deadline(self, timeout_seconds: float) -> float:
        """Monotonic deadline for an operation made of several Azure calls."""
        return time.monotonic() + timeout_seconds

    def _time_left(self, deadline: float, operation_name: str) -> float:
        """Seconds remaining before ``deadline``.

        Raises:
            TimeoutError: If the deadline has already passed.
        """
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            logger.error(
                f"{operation_name} timed out",
                extra={"type_name": self.TYPE_NAME, "overrun_seconds": -remaining},
            )
            raise TimeoutError(f"{operation_name} timed out")
        return remaining

    async def _wait_until(
        self,
        resource_id: str,
        probe: StatusProbe,
        policy: PollPolicy,
        description: str,
        deadline: float,
    ) -> ReconciliationOutcome:
        """Reconcile within what is left of ``deadline``.

        Any non-success outcome is raised as ProvisioningError.
        """
        policy = policy.with_timeout(self._time_left(deadline, description))
        outcome = await self._reconciler.reconcile(resource_id, probe, policy)
        try:
            outcome.raise_for_outcome()
        except ReconcileError as e:
            raise ProvisioningError(f"{description}: {e}", outcome) from e
        return outcome

    async def _delete(self, resource_id: str) -> bool:
        """DELETE a resource by ID.

        Returns:
            False if the resource was already gone.
        """
        try:
            await self._execute_with_timeout(
                lambda: self._client.resources.begin_delete_by_id(
                    resource_id=resource_id, api_version=self.API_VERSION
                ),
                timeout_seconds=self._config.timeouts.delete,
                operation_name=f"Deleting {resource_id}",
            )
        except HttpResponseError as e:
            if is_not_found(e):
                logger.debug(
                    "Resource already deleted",
                    extra={"resource_id": resource_id, "type_name": self.TYPE_NAME},
                )
                return False
            raise ResourceAdapterError(f"deleting {resource_id}: {e}") from e
        logger.info("Resource deleted", extra={"resource_id": resource_id})
        return True
