"""Caller-supplied deadlines for store calls."""

from __future__ import annotations

import time
from dataclasses import dataclass

from entity_query.domain.common.errors import QueryTimeoutError


@dataclass(frozen=True)
class Deadline:
    """Absolute point on the monotonic clock after which work must stop."""

    expires_at: float
    budget: float

    @classmethod
    def after(cls, seconds: float) -> Deadline:
        return cls(expires_at=time.monotonic() + seconds, budget=seconds)

    def remaining(self) -> float:
        return max(0.0, self.expires_at - time.monotonic())

    def expired(self) -> bool:
        return time.monotonic() >= self.expires_at

    def check(self, operation: str) -> None:
        """Raise :class:`QueryTimeoutError` if the deadline has passed."""
        if self.expired():
            raise QueryTimeoutError(operation, self.budget)


def resolve_deadline(deadline: Deadline | None, timeout_seconds: float | None) -> Deadline | None:
    """Prefer the caller's deadline; otherwise start one from ``timeout_seconds``."""
    if deadline is not None:
        return deadline
    if timeout_seconds is None:
        return None
    return Deadline.after(timeout_seconds)
