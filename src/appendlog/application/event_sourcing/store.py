"""Application event sourcing – EventStore facade.

Sits in front of :class:`AppendCoordinator` and does the work the coordinator
deliberately leaves to collaborators: tagging event values, serializing them,
retrying transient failures, and reading streams back.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from appendlog.application.event_sourcing.coordinator import AppendCoordinator, AppendResult
from appendlog.application.event_sourcing.ports import PersistenceGateway
from appendlog.application.event_sourcing.records import EventRecord
from appendlog.application.event_sourcing.serialization import EventSerializer, JsonEventSerializer
from appendlog.application.event_sourcing.tagging import TypeTagger
from appendlog.kernel.errors import SerializationError, UnavailableError
from appendlog.kernel.types import Err, as_uuid
from appendlog.resilience.retry import RetryPolicy
from appendlog.resilience.timeouts import Deadline


class EventStore:
    """Typed append and read API over a :class:`PersistenceGateway`.

    Example::

        store = EventStore(gateway, tagger=tagger)
        result = await store.append_event(order_id, OrderCreated(...), 0, stream_type=Order)
        if result.is_ok():
            ...
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        *,
        coordinator: AppendCoordinator | None = None,
        serializer: EventSerializer | None = None,
        tagger: TypeTagger | None = None,
    ) -> None:
        self._gateway = gateway
        self._coordinator = coordinator or AppendCoordinator(gateway)
        self._tagger = tagger or TypeTagger()
        self._serializer = serializer or JsonEventSerializer(self._tagger)

    @property
    def coordinator(self) -> AppendCoordinator:
        return self._coordinator

    async def append_event(
        self,
        stream_id: UUID | str,
        event: Any,
        expected_version: int = 0,
        *,
        stream_type: type | str,
        event_type: str | None = None,
        deadline: Deadline | None = None,
        retry: RetryPolicy | None = None,
    ) -> AppendResult:
        """Serialize *event* and append it to *stream_id*.

        *stream_type* and *event_type* are resolved through the tagger; pass
        strings to bypass it. A serialization failure is returned as
        ``Err(SerializationError)`` without touching storage. With *retry*,
        :class:`UnavailableError` outcomes are retried under that policy.
        """
        try:
            payload = self._serializer.serialize(event)
        except SerializationError as exc:
            return Err(exc)

        stream_tag = self._tagger.tag_for(stream_type)
        event_tag = event_type or self._tagger.tag_for(event)

        async def attempt() -> AppendResult:
            result = await self._coordinator.append(
                stream_tag, stream_id, event_tag, payload, expected_version, deadline=deadline
            )
            if isinstance(result, Err) and isinstance(result.error, UnavailableError):
                raise result.error
            return result

        policy = retry or RetryPolicy(max_attempts=1)
        try:
            return await policy.execute_async(attempt)
        except UnavailableError as exc:
            return Err(exc)

    async def read_stream(self, stream_id: UUID | str, from_version: int = 0) -> list[EventRecord]:
        """Return the stream's events with ``version > from_version``, ascending."""
        async with self._gateway.begin() as scope:
            return await scope.events.list_by_stream(as_uuid(stream_id), from_version)

    async def load_events(self, stream_id: UUID | str) -> list[Any]:
        """Return the decoded event values of the stream, in version order."""
        records = await self.read_stream(stream_id)
        return [self._serializer.deserialize(r.data, r.type) for r in records]

    async def stream_version(self, stream_id: UUID | str) -> int:
        """Return the stream's current version; 0 when it has never been appended to."""
        async with self._gateway.begin() as scope:
            version = await scope.streams.get_version(as_uuid(stream_id))
        return version or 0


__all__ = ["EventStore"]
