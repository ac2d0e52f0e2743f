"""Application event sourcing – persisted record shapes."""

from __future__ import annotations

import dataclasses
from datetime import datetime
from uuid import UUID


@dataclasses.dataclass(frozen=True)
class StreamRecord:
    """A row of the stream registry."""

    id: UUID
    """Caller-supplied stream identifier (primary key)."""

    type: str
    """Classification tag, set once when the stream is created."""

    version: int
    """Number of events appended so far; 0 for a stream with no events."""


@dataclasses.dataclass(frozen=True)
class EventRecord:
    """An event as persisted in the event log.

    ``data`` is the opaque serialised payload; the log never interprets it.
    """

    id: UUID
    stream_id: UUID

    type: str
    """Tag describing the payload shape (e.g. ``"orders.OrderCreated"``)."""

    version: int
    """1-based position of this event within its stream."""

    data: bytes

    created_at: datetime
    """Time the append was executed."""


__all__ = ["EventRecord", "StreamRecord"]
