"""Resilience – ambient deadlines and deadline-bounded awaiting."""
from __future__ import annotations

import asyncio
import contextlib
import inspect
from contextvars import ContextVar, Token
from typing import AsyncIterator, Awaitable, TypeVar

from appendlog.kernel.errors import AppendTimeoutError
from appendlog.resilience.timeouts.deadline import Deadline

T = TypeVar("T")

_current: ContextVar[Deadline | None] = ContextVar("appendlog_deadline", default=None)


class DeadlineContext:
    """The deadline in force for the current task and the tasks it spawns.

    Wrap a batch of appends in :meth:`scoped` to bound all of them; a nested
    scope can only shorten the deadline, never extend it.
    """

    @staticmethod
    def get() -> Deadline | None:
        return _current.get()

    @staticmethod
    def set(deadline: Deadline) -> Token[Deadline | None]:
        return _current.set(deadline.earliest(_current.get()))

    @staticmethod
    def reset(token: Token[Deadline | None]) -> None:
        _current.reset(token)

    @staticmethod
    @contextlib.asynccontextmanager
    async def scoped(deadline: Deadline) -> AsyncIterator[Deadline]:
        token = DeadlineContext.set(deadline)
        try:
            yield _current.get()  # type: ignore[misc]
        finally:
            _current.reset(token)


async def deadline_aware(work: Awaitable[T], deadline: Deadline | None = None) -> T:
    """Await *work*, cancelling it when *deadline* (or the ambient one) passes.

    The cancellation is delivered inside *work*, so the scopes it holds roll
    back and release their resources before :class:`AppendTimeoutError` is
    raised to the caller.
    """
    deadline = deadline or _current.get()
    if deadline is None:
        return await work
    if deadline.is_expired:
        if inspect.iscoroutine(work):
            work.close()
        raise AppendTimeoutError("Deadline already exceeded before the append started")
    budget = deadline.remaining_seconds
    try:
        return await asyncio.wait_for(work, timeout=budget)
    except TimeoutError:
        raise AppendTimeoutError(
            f"Append cancelled after {budget:.3f}s", detail={"budget_seconds": round(budget, 3)}
        ) from None


__all__ = ["DeadlineContext", "deadline_aware"]
