"""Application event sourcing – in-process persistence gateway.

Useful for tests and local development. Writes are staged inside the scope
and applied on commit, so a rolled back scope leaves no trace. The
``(stream_id, version)`` and stream-id uniqueness rules are checked both when
a row is staged and again at commit, which is what stops concurrent scopes
when per-stream locking is disabled.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import AsyncIterator
from uuid import UUID

from appendlog.application.event_sourcing.ports import (
    AppendScope,
    EventLog,
    PersistenceGateway,
    StreamRegistry,
)
from appendlog.application.event_sourcing.records import EventRecord, StreamRecord
from appendlog.kernel.errors import DuplicateVersionError, InvariantViolationError, StreamAlreadyExistsError
from appendlog.resilience.timeouts import Deadline


class InMemoryPersistenceGateway(PersistenceGateway):
    """Dictionary-backed :class:`PersistenceGateway`.

    Parameters
    ----------
    lock_streams:
        Serialize scopes touching the same stream with a per-stream
        :class:`asyncio.Lock` taken on ``get_version(..., for_update=True)``.
    latency:
        Seconds each storage operation sleeps; ``0`` still yields to the event
        loop so concurrent scopes interleave the way real I/O would.
    append_timeout_seconds:
        Default append deadline for coordinators built over this gateway.
    """

    def __init__(
        self,
        *,
        lock_streams: bool = True,
        latency: float = 0.0,
        append_timeout_seconds: float | None = None,
    ) -> None:
        self.lock_streams = lock_streams
        self.latency = latency
        self.append_timeout_seconds = append_timeout_seconds
        self._streams: dict[UUID, StreamRecord] = {}
        # stream_id -> events ordered by version
        self._events: dict[UUID, list[EventRecord]] = {}
        self._locks: dict[UUID, asyncio.Lock] = {}
        # stream_id -> scopes holding or awaiting its lock
        self._lock_users: dict[UUID, int] = {}

    def begin(self, deadline: Deadline | None = None) -> "InMemoryAppendScope":
        # Scopes only ever wait on the event loop, so cancellation alone
        # enforces the deadline.
        return InMemoryAppendScope(self)

    @contextlib.asynccontextmanager
    async def stream_lock(self, stream_id: UUID) -> AsyncIterator[None]:
        """Hold the per-stream lock; its entry is dropped once nobody needs it."""
        lock = self._locks.setdefault(stream_id, asyncio.Lock())
        self._lock_users[stream_id] = self._lock_users.get(stream_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[stream_id] -= 1
            if not self._lock_users[stream_id]:
                del self._lock_users[stream_id]
                del self._locks[stream_id]

    # ------------------------------------------------------------------
    # Inspection helpers
    # ------------------------------------------------------------------

    def stream(self, stream_id: UUID) -> StreamRecord | None:
        """Return the committed stream row, if any."""
        return self._streams.get(stream_id)

    def events(self, stream_id: UUID) -> list[EventRecord]:
        """Return committed events of *stream_id* in version order."""
        return list(self._events.get(stream_id, []))

    def event_count(self) -> int:
        return sum(len(events) for events in self._events.values())

    def lock_count(self) -> int:
        """Number of streams whose lock is currently held or awaited."""
        return len(self._locks)

    def _has_version(self, stream_id: UUID, version: int) -> bool:
        return any(e.version == version for e in self._events.get(stream_id, []))

    def _apply(
        self,
        created: dict[UUID, StreamRecord],
        versions: dict[UUID, int],
        inserted: list[EventRecord],
    ) -> None:
        # Validate everything before mutating anything.
        for stream_id in created:
            if stream_id in self._streams:
                raise StreamAlreadyExistsError(stream_id)
        for event in inserted:
            if self._has_version(event.stream_id, event.version):
                raise DuplicateVersionError(event.stream_id, event.version)

        self._streams.update(created)
        for stream_id, version in versions.items():
            current = self._streams[stream_id]
            self._streams[stream_id] = StreamRecord(id=current.id, type=current.type, version=version)
        for event in inserted:
            stream_events = self._events.setdefault(event.stream_id, [])
            stream_events.append(event)
            stream_events.sort(key=lambda e: e.version)


class _InMemoryStreamRegistry(StreamRegistry):
    def __init__(self, scope: "InMemoryAppendScope") -> None:
        self._scope = scope

    async def get_version(self, stream_id: UUID, *, for_update: bool = False) -> int | None:
        if for_update:
            await self._scope.lock_stream(stream_id)
        record = await self.get(stream_id)
        return None if record is None else record.version

    async def get(self, stream_id: UUID) -> StreamRecord | None:
        await self._scope.pause()
        return self._scope.lookup_stream(stream_id)

    async def create(self, stream_id: UUID, stream_type: str, initial_version: int) -> None:
        await self._scope.pause()
        self._scope.stage_stream(StreamRecord(id=stream_id, type=stream_type, version=initial_version))

    async def advance_version(self, stream_id: UUID, new_version: int) -> None:
        await self._scope.pause()
        self._scope.stage_version(stream_id, new_version)


class _InMemoryEventLog(EventLog):
    def __init__(self, scope: "InMemoryAppendScope") -> None:
        self._scope = scope

    async def insert(self, event: EventRecord) -> None:
        await self._scope.pause()
        self._scope.stage_event(event)

    async def list_by_stream(self, stream_id: UUID, from_version: int = 0) -> list[EventRecord]:
        await self._scope.pause()
        return [e for e in self._scope.visible_events(stream_id) if e.version > from_version]


class InMemoryAppendScope(AppendScope):
    """Atomic scope over :class:`InMemoryPersistenceGateway`.

    Reads see committed state overlaid with this scope's staged writes.
    """

    def __init__(self, gateway: InMemoryPersistenceGateway) -> None:
        self._gateway = gateway
        self._created: dict[UUID, StreamRecord] = {}
        self._versions: dict[UUID, int] = {}
        self._inserted: list[EventRecord] = []
        self._held: set[UUID] = set()
        self._lock_stack = contextlib.AsyncExitStack()
        self.streams = _InMemoryStreamRegistry(self)
        self.events = _InMemoryEventLog(self)

    async def pause(self) -> None:
        """Stand in for one storage round trip."""
        await asyncio.sleep(self._gateway.latency)

    async def lock_stream(self, stream_id: UUID) -> None:
        if stream_id in self._held:
            return
        await self._lock_stack.enter_async_context(self._gateway.stream_lock(stream_id))
        self._held.add(stream_id)

    def lookup_stream(self, stream_id: UUID) -> StreamRecord | None:
        record = self._created.get(stream_id) or self._gateway.stream(stream_id)
        if record is None:
            return None
        version = self._versions.get(stream_id, record.version)
        return StreamRecord(id=record.id, type=record.type, version=version)

    def visible_events(self, stream_id: UUID) -> list[EventRecord]:
        staged = [e for e in self._inserted if e.stream_id == stream_id]
        return sorted(self._gateway.events(stream_id) + staged, key=lambda e: e.version)

    def stage_stream(self, record: StreamRecord) -> None:
        if self.lookup_stream(record.id) is not None:
            raise StreamAlreadyExistsError(record.id)
        self._created[record.id] = record

    def stage_version(self, stream_id: UUID, version: int) -> None:
        if self.lookup_stream(stream_id) is None:
            raise InvariantViolationError(
                f"Cannot advance unknown stream '{stream_id}'", detail={"stream_id": str(stream_id)}
            )
        self._versions[stream_id] = version

    def stage_event(self, event: EventRecord) -> None:
        if any(e.version == event.version for e in self.visible_events(event.stream_id)):
            raise DuplicateVersionError(event.stream_id, event.version)
        self._inserted.append(event)

    async def commit(self) -> None:
        # No await between validation and mutation: commit is atomic on the loop.
        self._gateway._apply(self._created, self._versions, self._inserted)  # noqa: SLF001
        self._reset()

    async def rollback(self) -> None:
        self._reset()

    async def close(self) -> None:
        self._held.clear()
        await self._lock_stack.aclose()

    def _reset(self) -> None:
        self._created = {}
        self._versions = {}
        self._inserted = []


__all__ = ["InMemoryAppendScope", "InMemoryPersistenceGateway"]
