"""Poll policies for waiting on asynchronous provisioning.

A policy names which observed statuses mean "keep waiting" and which mean
"done", how often to look, and how long to look for. Anything outside both
sets is treated as a failure by the reconciler.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from enum import Enum

from .config import (
    DEFAULT_REPLICATION_CONSECUTIVE_HITS,
    DEFAULT_REPLICATION_POLL_INTERVAL_SECONDS,
    ConfigurationError,
)

HTTP_OK = "200"
HTTP_NOT_FOUND = "404"


class StatusClass(str, Enum):
    """Classification of a single observed status under a policy."""

    TARGET = "target"
    PENDING = "pending"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class PollPolicy:
    """How to wait for a remote resource to converge.

    Attributes:
        pending_statuses: Statuses meaning "still provisioning, keep polling".
        target_statuses: Statuses meaning "done". Must not overlap pending.
        min_interval_seconds: Delay between two probes.
        timeout_seconds: Overall deadline, measured from the start of reconcile().
        required_consecutive_target_hits: Target observations needed in a row
            before success is declared. Any non-target observation resets it.
        delay_seconds: Wait before the very first probe.

    min_interval_seconds should be well below timeout_seconds; a policy that
    violates this is accepted but will sample the resource only a few times.
    """

    pending_statuses: frozenset[str]
    target_statuses: frozenset[str]
    min_interval_seconds: float
    timeout_seconds: float
    required_consecutive_target_hits: int = 1
    delay_seconds: float = 0.0

    def __post_init__(self) -> None:
        # Accept any iterable of statuses but store frozensets
        object.__setattr__(self, "pending_statuses", _status_set(self.pending_statuses))
        object.__setattr__(self, "target_statuses", _status_set(self.target_statuses))

        errors: list[str] = []

        if not self.target_statuses:
            errors.append("target_statuses must not be empty")

        overlap = self.pending_statuses & self.target_statuses
        if overlap:
            errors.append(f"pending and target statuses overlap: {sorted(overlap)}")

        if self.min_interval_seconds <= 0:
            errors.append(f"min_interval_seconds must be positive: {self.min_interval_seconds}")

        if self.timeout_seconds <= 0:
            errors.append(f"timeout_seconds must be positive: {self.timeout_seconds}")

        if self.required_consecutive_target_hits < 1:
            errors.append(
                "required_consecutive_target_hits must be at least 1: "
                f"{self.required_consecutive_target_hits}"
            )

        if self.delay_seconds < 0:
            errors.append(f"delay_seconds cannot be negative: {self.delay_seconds}")

        if errors:
            raise ConfigurationError(
                "Invalid poll policy:\n  - " + "\n  - ".join(errors)
            )

    def classify(self, status: str) -> StatusClass:
        """Classify an observed status against this policy."""
        if status in self.target_statuses:
            return StatusClass.TARGET
        if status in self.pending_statuses:
            return StatusClass.PENDING
        return StatusClass.UNEXPECTED

    def with_timeout(self, timeout_seconds: float) -> PollPolicy:
        """Return a copy bound to a different deadline."""
        return replace(self, timeout_seconds=timeout_seconds)


def _status_set(statuses: Iterable[str]) -> frozenset[str]:
    if isinstance(statuses, str):
        # A bare string would otherwise be split into characters
        return frozenset({statuses})
    return frozenset(str(s) for s in statuses)


def replication_policy(
    timeout_seconds: float,
    min_interval_seconds: float = DEFAULT_REPLICATION_POLL_INTERVAL_SECONDS,
    required_consecutive_target_hits: int = DEFAULT_REPLICATION_CONSECUTIVE_HITS,
) -> PollPolicy:
    """Policy for waiting until a freshly created resource is readable everywhere.

    A 404 means the resource has not replicated yet; a 200 has to be seen
    several times in a row because a read can hit a replica that already has
    it and the next read one that does not.
    """
    return PollPolicy(
        pending_statuses=frozenset({HTTP_NOT_FOUND}),
        target_statuses=frozenset({HTTP_OK}),
        min_interval_seconds=min_interval_seconds,
        timeout_seconds=timeout_seconds,
        required_consecutive_target_hits=required_consecutive_target_hits,
    )
