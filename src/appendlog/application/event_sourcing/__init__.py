"""Application – Event Sourcing append path."""

from appendlog.application.event_sourcing.coordinator import (
    AppendCoordinator,
    AppendError,
    AppendResult,
)
from appendlog.application.event_sourcing.memory import (
    InMemoryAppendScope,
    InMemoryPersistenceGateway,
)
from appendlog.application.event_sourcing.ports import (
    AppendScope,
    EventLog,
    PersistenceGateway,
    StreamRegistry,
)
from appendlog.application.event_sourcing.records import EventRecord, StreamRecord
from appendlog.application.event_sourcing.serialization import EventSerializer, JsonEventSerializer
from appendlog.application.event_sourcing.store import EventStore
from appendlog.application.event_sourcing.tagging import TypeTagger

__all__ = [
    "AppendCoordinator",
    "AppendError",
    "AppendResult",
    "AppendScope",
    "EventLog",
    "EventRecord",
    "EventSerializer",
    "EventStore",
    "InMemoryAppendScope",
    "InMemoryPersistenceGateway",
    "JsonEventSerializer",
    "PersistenceGateway",
    "StreamRecord",
    "StreamRegistry",
    "TypeTagger",
]
