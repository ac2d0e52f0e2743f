"""Application event sourcing – storage ports used by the append coordinator.

Each port is only meaningful inside an :class:`AppendScope`: the registry
and log operations of one append share a single atomic unit.
"""

from __future__ import annotations

import abc
from uuid import UUID

from appendlog.application.event_sourcing.records import EventRecord, StreamRecord
from appendlog.application.uow import UnitOfWork
from appendlog.resilience.timeouts import Deadline


class StreamRegistry(abc.ABC):
    """Port: per-stream version and type bookkeeping."""

    @abc.abstractmethod
    async def get_version(self, stream_id: UUID, *, for_update: bool = False) -> int | None:
        """Return the stream's current version, or ``None`` if it does not exist.

        With ``for_update`` the backend takes an exclusive lock on the stream
        row, held until the enclosing scope ends.
        """

    @abc.abstractmethod
    async def get(self, stream_id: UUID) -> StreamRecord | None:
        """Return the full stream row, or ``None``."""

    @abc.abstractmethod
    async def create(self, stream_id: UUID, stream_type: str, initial_version: int) -> None:
        """Register a new stream.

        Raises:
            StreamAlreadyExistsError: if *stream_id* is already present.
        """

    @abc.abstractmethod
    async def advance_version(self, stream_id: UUID, new_version: int) -> None:
        """Set the stored version unconditionally; the caller owns correctness."""


class EventLog(abc.ABC):
    """Port: append-only, per-stream ordered event rows."""

    @abc.abstractmethod
    async def insert(self, event: EventRecord) -> None:
        """Insert one event row.

        Raises:
            DuplicateVersionError: if ``(event.stream_id, event.version)`` exists.
        """

    @abc.abstractmethod
    async def list_by_stream(self, stream_id: UUID, from_version: int = 0) -> list[EventRecord]:
        """Return events of *stream_id* with ``version > from_version``, ascending."""


class AppendScope(UnitOfWork, abc.ABC):
    """One atomic unit exposing the registry and the log bound to it."""

    streams: StreamRegistry
    events: EventLog


class PersistenceGateway(abc.ABC):
    """Port: hands out atomic scopes against a storage backend."""

    lock_streams: bool = True
    """Whether appends should lock the stream row (strategy a) in addition to
    relying on the ``(stream_id, version)`` uniqueness backstop (strategy b)."""

    append_timeout_seconds: float | None = None
    """Default append deadline for this backend; ``None`` leaves the choice to
    the coordinator."""

    @abc.abstractmethod
    def begin(self, deadline: Deadline | None = None) -> AppendScope:
        """Return a new, not yet entered, atomic scope.

        A backend whose lock waits block outside the event loop bounds them by
        *deadline*, so that cancelling the scope is not held up by them.
        """


__all__ = ["AppendScope", "EventLog", "PersistenceGateway", "StreamRegistry"]
