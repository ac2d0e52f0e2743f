"""Application event sourcing – event payload serializers."""

from __future__ import annotations

import abc
import dataclasses
import enum
import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from appendlog.application.event_sourcing.tagging import TypeTagger
from appendlog.kernel.errors import SerializationError


class EventSerializer(abc.ABC):
    """Port: turn event values into the opaque bytes stored by the log, and back."""

    @abc.abstractmethod
    def serialize(self, value: Any) -> bytes: ...

    @abc.abstractmethod
    def deserialize(self, data: bytes, event_type: str) -> Any: ...


def _default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class JsonEventSerializer(EventSerializer):
    """UTF-8 JSON serializer.

    Dataclass events are encoded field by field. On the way back, payloads
    whose ``event_type`` resolves through the *tagger* to a dataclass are
    rebuilt as that dataclass; everything else comes back as plain JSON
    values.
    """

    def __init__(self, tagger: TypeTagger | None = None) -> None:
        self._tagger = tagger or TypeTagger()

    def serialize(self, value: Any) -> bytes:
        try:
            return json.dumps(value, default=_default, separators=(",", ":")).encode()
        except (TypeError, ValueError) as exc:
            raise SerializationError(
                f"Cannot serialize {type(value).__name__}: {exc}", cause=exc
            ) from exc

    def deserialize(self, data: bytes, event_type: str) -> Any:
        try:
            decoded = json.loads(data)
        except (UnicodeDecodeError, ValueError) as exc:
            raise SerializationError(
                f"Cannot deserialize payload of {event_type!r}: {exc}", cause=exc
            ) from exc
        cls = self._tagger.resolve(event_type)
        if cls is None or not dataclasses.is_dataclass(cls) or not isinstance(decoded, dict):
            return decoded
        try:
            return cls(**decoded)
        except TypeError as exc:
            raise SerializationError(
                f"Payload of {event_type!r} does not match {cls.__qualname__}: {exc}", cause=exc
            ) from exc


__all__ = ["EventSerializer", "JsonEventSerializer"]
