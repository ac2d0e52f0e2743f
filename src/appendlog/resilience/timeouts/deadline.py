"""Resilience – Deadline."""
from __future__ import annotations

import dataclasses
import time


@dataclasses.dataclass(frozen=True)
class Deadline:
    """A point on the monotonic clock by which an append must finish.

    Monotonic time keeps deadlines immune to wall-clock adjustments.
    """

    expires_at: float

    @classmethod
    def after(cls, seconds: float) -> Deadline:
        return cls(expires_at=time.monotonic() + seconds)

    @property
    def remaining_seconds(self) -> float:
        return max(0.0, self.expires_at - time.monotonic())

    @property
    def is_expired(self) -> bool:
        return time.monotonic() >= self.expires_at

    def earliest(self, other: Deadline | None) -> Deadline:
        """Return whichever of the two deadlines expires first."""
        if other is None or self.expires_at <= other.expires_at:
            return self
        return other


__all__ = ["Deadline"]
