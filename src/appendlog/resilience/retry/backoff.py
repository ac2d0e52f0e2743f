"""Resilience – delay schedule between append attempts."""
from __future__ import annotations

import dataclasses
import random


@dataclasses.dataclass(frozen=True)
class Backoff:
    """Capped exponential delays, optionally with full jitter.

    The wait after the *n*-th failed attempt is
    ``min(initial * multiplier ** (n - 1), maximum)``; with ``jitter`` it is
    drawn uniformly from ``[0, that]`` so writers retrying the same stream
    spread out.
    """

    initial: float = 0.05
    multiplier: float = 2.0
    maximum: float = 2.0
    jitter: bool = True

    def __post_init__(self) -> None:
        if self.initial < 0 or self.maximum < 0:
            raise ValueError("backoff delays must be >= 0")
        if self.multiplier < 1:
            raise ValueError("backoff multiplier must be >= 1")

    @classmethod
    def immediate(cls) -> Backoff:
        """No wait between attempts."""
        return cls(initial=0.0, maximum=0.0, jitter=False)

    def delay(self, attempt: int) -> float:
        ceiling = min(self.initial * self.multiplier ** (attempt - 1), self.maximum)
        if self.jitter:
            return random.uniform(0, ceiling)
        return ceiling


__all__ = ["Backoff"]
