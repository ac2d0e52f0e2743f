"""Identifier helpers: UUID coercion and injectable id generators."""

from __future__ import annotations

import uuid
from typing import Protocol

from appendlog.kernel.errors.domain import ValidationError


class IdGenerator(Protocol):
    """Port: produce a new unique identifier for each call."""

    def new_id(self) -> uuid.UUID: ...


class Uuid4Generator:
    """Random 128-bit identifiers (UUID version 4)."""

    def new_id(self) -> uuid.UUID:
        return uuid.uuid4()


def as_uuid(value: uuid.UUID | str) -> uuid.UUID:
    """Coerce *value* into a :class:`uuid.UUID`.

    Raises :class:`ValidationError` for strings that are not valid UUIDs.
    """
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError as exc:
        raise ValidationError(f"Invalid stream identifier: {value!r}", cause=exc) from exc


__all__ = ["IdGenerator", "Uuid4Generator", "as_uuid"]
