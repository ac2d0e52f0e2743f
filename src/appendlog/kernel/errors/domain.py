"""Domain errors – stream invariants and optimistic-concurrency conflicts."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from appendlog.kernel.errors.base import BaseError


class DomainError(BaseError):
    """Raised when a stream rule / invariant is violated."""

    default_code = "domain_error"


class InvariantViolationError(DomainError):
    """A stream invariant was violated; indicates a bug, never a normal outcome."""

    default_code = "invariant_violation"


class ValidationError(DomainError):
    """Input data does not meet validation rules."""

    default_code = "validation_error"


class ConflictError(DomainError):
    """The operation conflicts with existing state."""

    default_code = "conflict"


class ConcurrencyConflictError(ConflictError):
    """The caller's expected version does not match the stream's actual version.

    ``actual`` is ``None`` when the conflict was detected by the storage
    uniqueness backstop, where the winning version is not known to the loser.
    """

    default_code = "concurrency_conflict"

    def __init__(
        self,
        stream_id: UUID,
        expected: int,
        actual: int | None,
        **kwargs: Any,
    ) -> None:
        if actual is None:
            msg = (
                f"Concurrency conflict on stream '{stream_id}': "
                f"expected version {expected} was superseded by a concurrent append"
            )
        else:
            msg = (
                f"Concurrency conflict on stream '{stream_id}': "
                f"expected version {expected}, found {actual}"
            )
        kwargs.setdefault("detail", {"stream_id": str(stream_id), "expected": expected, "actual": actual})
        super().__init__(msg, **kwargs)
        self.stream_id = stream_id
        self.expected = expected
        self.actual = actual


class DuplicateVersionError(ConflictError):
    """An event with the same ``(stream_id, version)`` already exists."""

    default_code = "duplicate_version"

    def __init__(self, stream_id: UUID, version: int, **kwargs: Any) -> None:
        super().__init__(
            f"Stream '{stream_id}' already has an event at version {version}",
            **kwargs,
        )
        self.stream_id = stream_id
        self.version = version


class StreamAlreadyExistsError(ConflictError):
    """A stream row with the given id is already registered."""

    default_code = "stream_already_exists"

    def __init__(self, stream_id: UUID, **kwargs: Any) -> None:
        super().__init__(f"Stream '{stream_id}' already exists", **kwargs)
        self.stream_id = stream_id


__all__ = [
    "ConcurrencyConflictError",
    "ConflictError",
    "DomainError",
    "DuplicateVersionError",
    "InvariantViolationError",
    "StreamAlreadyExistsError",
    "ValidationError",
]
