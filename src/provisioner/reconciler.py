"""Reconciliation loop for asynchronous provisioning.

After a mutating ARM call returns, the resource is often not yet in its final
state: it may still be replicating, or its provisioning state may still be
``Creating``. AsyncReconciler polls a StatusProbe at a fixed cadence until:

1. The policy's target status is seen enough times in a row (success)
2. A status outside the pending and target sets is seen (failure)
3. The probe reports an error other than "not found" (failure)
4. The deadline passes (timed out)
5. The cancellation event is set (failure, cancelled)

"Not found" is always treated as pending: a resource that was just created
can be invisible to reads for a while.

Every terminal condition is returned as a ReconciliationOutcome value. Callers
that want an exception call ``outcome.raise_for_outcome()``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from .policy import PollPolicy, StatusClass
from .probe import ProbeResult, StatusProbe

logger = logging.getLogger(__name__)


class OutcomeStatus(str, Enum):
    """Terminal states of a reconcile() call."""

    SUCCEEDED = "succeeded"
    TIMED_OUT = "timedOut"
    FAILED = "failed"


class ReconcileError(Exception):
    """Base class for reconciliation failures.

    Carries the resource ID and the last status observed so that messages
    surfaced to the user are diagnosable without another query.
    """

    def __init__(self, message: str, resource_id: str, last_status: str | None = None) -> None:
        super().__init__(message)
        self.resource_id = resource_id
        self.last_status = last_status


class TransportError(ReconcileError):
    """A probe failed with an error other than "not found"."""

    def __init__(
        self, resource_id: str, cause: BaseException, last_status: str | None = None
    ) -> None:
        super().__init__(
            f"retrieving {resource_id}: {cause}",
            resource_id=resource_id,
            last_status=last_status,
        )
        self.cause = cause
        self.__cause__ = cause


class UnexpectedStatusError(ReconcileError):
    """A probe observed a status that is neither pending nor target."""

    def __init__(self, resource_id: str, status: str) -> None:
        super().__init__(
            f"unexpected status {status!r} for {resource_id}",
            resource_id=resource_id,
            last_status=status,
        )
        self.status = status


class ReconcileTimeoutError(ReconcileError):
    """The deadline passed while the resource was still pending."""


class ReconcileCancelledError(ReconcileError):
    """The wait was aborted through the cancellation event."""


@dataclass(frozen=True)
class ReconciliationOutcome:
    """Terminal result of a single reconcile() call."""

    resource_id: str
    status: OutcomeStatus
    observation: ProbeResult | None = None
    last_status: str | None = None
    error: ReconcileError | None = None
    probe_count: int = 0
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.status == OutcomeStatus.SUCCEEDED

    @property
    def timed_out(self) -> bool:
        return self.status == OutcomeStatus.TIMED_OUT

    @property
    def failed(self) -> bool:
        return self.status == OutcomeStatus.FAILED

    @property
    def cancelled(self) -> bool:
        return isinstance(self.error, ReconcileCancelledError)

    def raise_for_outcome(self) -> None:
        """Raise the matching ReconcileError unless the outcome succeeded."""
        if self.succeeded:
            return
        if self.error is not None:
            raise self.error
        raise ReconcileTimeoutError(
            f"timed out after {self.duration_seconds:.1f}s waiting for {self.resource_id} "
            f"(last status: {self.last_status or 'none'}, probes: {self.probe_count})",
            resource_id=self.resource_id,
            last_status=self.last_status,
        )


class AsyncReconciler:
    """Polls a resource until it converges on a target status.

    The reconciler holds no per-resource state: every reconcile() call has its
    own deadline and hit counter, so one instance can serve many concurrent
    waits. The probe and whatever connection it uses belong to the caller.
    """

    def __init__(
        self,
        cancel_event: asyncio.Event | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the reconciler.

        Args:
            cancel_event: Default cancellation signal, typically the provider's
                stop event. reconcile() may override it per call.
            clock: Monotonic time source in seconds.
        """
        self._cancel_event = cancel_event
        self._clock = clock

    async def reconcile(
        self,
        resource_id: str,
        probe: StatusProbe,
        policy: PollPolicy,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> ReconciliationOutcome:
        """Poll ``probe`` until the policy reaches a terminal condition.

        Args:
            resource_id: ARM ID returned by the mutating call. Not validated
                here; an invalid ID surfaces as probe errors.
            probe: Performs one status check per call.
            policy: Status sets, cadence and deadline.
            cancel_event: Overrides the instance cancellation signal.

        Returns:
            The terminal ReconciliationOutcome.
        """
        cancel = cancel_event if cancel_event is not None else self._cancel_event
        start = self._clock()
        deadline = start + policy.timeout_seconds
        consecutive_hits = 0
        probe_count = 0
        last: ProbeResult | None = None

        def outcome(
            status: OutcomeStatus, error: ReconcileError | None = None
        ) -> ReconciliationOutcome:
            return ReconciliationOutcome(
                resource_id=resource_id,
                status=status,
                observation=last,
                last_status=last.status if last is not None else None,
                error=error,
                probe_count=probe_count,
                duration_seconds=self._clock() - start,
            )

        def cancelled() -> ReconciliationOutcome:
            logger.warning(
                "Reconciliation cancelled",
                extra={"resource_id": resource_id, "probe_count": probe_count},
            )
            return outcome(
                OutcomeStatus.FAILED,
                ReconcileCancelledError(
                    f"cancelled while waiting for {resource_id}",
                    resource_id=resource_id,
                    last_status=last.status if last is not None else None,
                ),
            )

        logger.info(
            "Waiting for resource to converge",
            extra={
                "resource_id": resource_id,
                "pending": sorted(policy.pending_statuses),
                "target": sorted(policy.target_statuses),
                "required_hits": policy.required_consecutive_target_hits,
                "interval_seconds": policy.min_interval_seconds,
                "timeout_seconds": policy.timeout_seconds,
            },
        )

        if policy.delay_seconds > 0:
            if await self._wait(min(policy.delay_seconds, policy.timeout_seconds), cancel):
                return cancelled()

        while True:
            if self._clock() >= deadline:
                logger.warning(
                    "Timed out waiting for resource",
                    extra={
                        "resource_id": resource_id,
                        "last_status": last.status if last is not None else None,
                        "probe_count": probe_count,
                        "timeout_seconds": policy.timeout_seconds,
                    },
                )
                return outcome(OutcomeStatus.TIMED_OUT)

            if cancel is not None and cancel.is_set():
                return cancelled()

            try:
                last = await probe(resource_id)
            except Exception as e:
                last = ProbeResult.failed(e)
            probe_count += 1

            if last.is_error:
                # Only "not found" is retried; anything else is surfaced as-is
                cause = last.error or RuntimeError("probe failed")
                error = TransportError(resource_id, cause, last.status)
                logger.error(
                    "Status probe failed",
                    extra={
                        "resource_id": resource_id,
                        "error": str(last.error),
                        "error_type": type(last.error).__name__,
                        "probe_count": probe_count,
                    },
                )
                return outcome(OutcomeStatus.FAILED, error)

            if last.is_not_found:
                logger.debug(
                    "Resource not visible yet",
                    extra={"resource_id": resource_id, "probe_count": probe_count},
                )
                consecutive_hits = 0
            else:
                status = last.status or ""
                match policy.classify(status):
                    case StatusClass.TARGET:
                        consecutive_hits += 1
                        logger.debug(
                            "Target status observed",
                            extra={
                                "resource_id": resource_id,
                                "status": status,
                                "consecutive_hits": consecutive_hits,
                                "required_hits": policy.required_consecutive_target_hits,
                            },
                        )
                        if consecutive_hits >= policy.required_consecutive_target_hits:
                            logger.info(
                                "Resource converged",
                                extra={
                                    "resource_id": resource_id,
                                    "status": status,
                                    "probe_count": probe_count,
                                },
                            )
                            return outcome(OutcomeStatus.SUCCEEDED)

                    case StatusClass.PENDING:
                        logger.debug(
                            "Resource still pending",
                            extra={"resource_id": resource_id, "status": status},
                        )
                        consecutive_hits = 0

                    case StatusClass.UNEXPECTED:
                        logger.error(
                            "Unexpected status while waiting for resource",
                            extra={"resource_id": resource_id, "status": status},
                        )
                        return outcome(
                            OutcomeStatus.FAILED, UnexpectedStatusError(resource_id, status)
                        )

            remaining = deadline - self._clock()
            if remaining <= 0:
                continue
            if await self._wait(min(policy.min_interval_seconds, remaining), cancel):
                return cancelled()

    async def _wait(self, seconds: float, cancel: asyncio.Event | None) -> bool:
        """Sleep for ``seconds`` unless cancelled first.

        Returns:
            True if the cancellation event fired during the wait.
        """
        if cancel is None:
            await asyncio.sleep(seconds)
            return False
        try:
            await asyncio.wait_for(cancel.wait(), timeout=seconds)
        except TimeoutError:
            return False
        return True
