"""Resilience – RetryPolicy for transient backend failures."""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

from appendlog.kernel.errors import BaseError
from appendlog.observability.logging import get_logger
from appendlog.resilience.retry.backoff import Backoff

T = TypeVar("T")
logger = get_logger(__name__)


class RetryPolicy:
    """Re-run an async operation while it fails with a retryable error.

    Errors of the appendlog hierarchy decide for themselves through their
    ``retryable`` flag, which is set for :class:`UnavailableError` only:
    conflicts and serialization failures need the caller to act. Other
    exception types are retried when listed in *retry_on*.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        backoff: Backoff | None = None,
        retry_on: tuple[type[BaseException], ...] = (),
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self.backoff = backoff or Backoff()
        self.retry_on = retry_on

    def should_retry(self, exc: Exception) -> bool:
        if isinstance(exc, BaseError):
            return exc.retryable
        return isinstance(exc, self.retry_on)

    async def execute_async(self, func: Callable[[], Awaitable[T]]) -> T:
        attempt = 1
        while True:
            try:
                return await func()
            except Exception as exc:
                if attempt >= self.max_attempts or not self.should_retry(exc):
                    raise
                delay = self.backoff.delay(attempt)
                logger.debug("retry.scheduled", attempt=attempt, delay=round(delay, 3), error=repr(exc))
                await asyncio.sleep(delay)
                attempt += 1


__all__ = ["RetryPolicy"]
