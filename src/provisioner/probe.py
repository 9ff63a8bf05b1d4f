"""Single-shot status probes against Azure Resource Manager.

A probe performs exactly one status check for a resource ID and reports it as
a ProbeResult: an observed status, a "not found", or an error. Probes never
raise for Azure API failures; the reconciler decides what each kind means.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from azure.core.exceptions import AzureError, HttpResponseError, ResourceNotFoundError

from .policy import HTTP_NOT_FOUND, HTTP_OK

if TYPE_CHECKING:
    from azure.mgmt.resource import ResourceManagementClient

logger = logging.getLogger(__name__)

# Reported when the request never got an HTTP response back
DROPPED_CONNECTION = "dropped connection"

UNKNOWN_PROVISIONING_STATE = "Unknown"


class ProbeKind(str, Enum):
    """Three-way classification of a probe call."""

    OK = "ok"
    NOT_FOUND = "notFound"
    ERROR = "error"


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of one status check.

    Build instances with ok(), not_found() or failed() rather than directly.
    """

    kind: ProbeKind
    status: str | None = None
    payload: Any = None
    error: BaseException | None = None

    @classmethod
    def ok(cls, status: str, payload: Any = None) -> ProbeResult:
        return cls(kind=ProbeKind.OK, status=status, payload=payload)

    @classmethod
    def not_found(cls, status: str = HTTP_NOT_FOUND) -> ProbeResult:
        return cls(kind=ProbeKind.NOT_FOUND, status=status)

    @classmethod
    def failed(cls, error: BaseException, status: str | None = None) -> ProbeResult:
        return cls(kind=ProbeKind.ERROR, status=status, error=error)

    @property
    def is_not_found(self) -> bool:
        return self.kind == ProbeKind.NOT_FOUND

    @property
    def is_error(self) -> bool:
        return self.kind == ProbeKind.ERROR


StatusProbe = Callable[[str], Awaitable[ProbeResult]]


def provisioning_state(resource: Any) -> str:
    """Read ``properties.provisioningState`` from a generic ARM resource."""
    properties = getattr(resource, "properties", None) or {}
    if isinstance(properties, dict):
        state = properties.get("provisioningState")
    else:
        state = getattr(properties, "provisioning_state", None)
    return str(state) if state else UNKNOWN_PROVISIONING_STATE


def _status_code_of(error: HttpResponseError) -> str:
    if error.status_code is None:
        return DROPPED_CONNECTION
    return str(error.status_code)


def arm_resource_probe(
    client: ResourceManagementClient,
    api_version: str,
    status_from: Callable[[Any], str] | None = None,
) -> StatusProbe:
    """Build a probe that GETs a resource by ID through the ARM generic API.

    Args:
        client: Caller-owned management client. The probe never closes it.
        api_version: API version of the resource provider.
        status_from: Maps a fetched resource to its status. When omitted a
            successful GET reports HTTP 200.

    Returns:
        An async callable usable as a StatusProbe.
    """

    async def probe(resource_id: str) -> ProbeResult:
        loop = asyncio.get_running_loop()
        try:
            resource = await loop.run_in_executor(
                None,
                functools.partial(
                    client.resources.get_by_id,
                    resource_id=resource_id,
                    api_version=api_version,
                ),
            )
        except ResourceNotFoundError:
            return ProbeResult.not_found()
        except HttpResponseError as e:
            if e.status_code == 404:
                return ProbeResult.not_found()
            return ProbeResult.failed(e, status=_status_code_of(e))
        except AzureError as e:
            # Connection resets, DNS and auth failures never produced a response
            logger.debug(
                "Probe request failed without a response",
                extra={"resource_id": resource_id, "error_type": type(e).__name__},
            )
            return ProbeResult.failed(e, status=DROPPED_CONNECTION)

        status = status_from(resource) if status_from is not None else HTTP_OK
        return ProbeResult.ok(status, payload=resource)

    return probe
