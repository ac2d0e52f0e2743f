"""Application event sourcing – AppendCoordinator.

The compare-and-advance append, executed as one atomic unit:

1. read the stream's current version (locking the row when the gateway
   serializes per stream);
2. register the stream at version 0 if it has never been seen;
3. compare with the caller's expected version and abort on mismatch;
4. insert the event at ``current + 1``;
5. advance the stream to ``current + 1``;
6. commit.

A concurrent writer that slipped past step 3 with the same expected version
is stopped by the storage uniqueness constraints; those violations surface as
:class:`ConcurrencyConflictError`, the same as a plain mismatch.
"""

from __future__ import annotations

from typing import TypeAlias
from uuid import UUID

from appendlog.application.event_sourcing.ports import PersistenceGateway
from appendlog.application.event_sourcing.records import EventRecord
from appendlog.kernel.errors import (
    AppendTimeoutError,
    ConcurrencyConflictError,
    DuplicateVersionError,
    SerializationError,
    StreamAlreadyExistsError,
    UnavailableError,
    ValidationError,
)
from appendlog.kernel.time import Clock, SystemClock
from appendlog.kernel.types import Err, IdGenerator, Ok, Result, Uuid4Generator, as_uuid
from appendlog.observability.logging import get_logger
from appendlog.resilience.deadline import DeadlineContext, deadline_aware
from appendlog.resilience.timeouts import Deadline

logger = get_logger(__name__)

AppendError: TypeAlias = ConcurrencyConflictError | SerializationError | UnavailableError
AppendResult: TypeAlias = Result[EventRecord, AppendError]

DEFAULT_APPEND_TIMEOUT_SECONDS = 5.0


class AppendCoordinator:
    """Appends single events to streams under optimistic concurrency control.

    Parameters
    ----------
    gateway:
        Source of atomic scopes (SQLAlchemy, in-memory, ...).
    id_generator:
        Produces event ids; defaults to random UUID4.
    clock:
        Stamps ``created_at``; defaults to the system UTC clock.
    timeout_seconds:
        Deadline applied when the call passes none; defaults to the gateway's
        ``append_timeout_seconds``, then to five seconds. An earlier ambient
        :class:`DeadlineContext` deadline always takes precedence.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        *,
        id_generator: IdGenerator | None = None,
        clock: Clock | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._gateway = gateway
        self._ids = id_generator or Uuid4Generator()
        self._clock = clock or SystemClock()
        if timeout_seconds is None:
            timeout_seconds = gateway.append_timeout_seconds
        self._timeout_seconds = DEFAULT_APPEND_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds

    @property
    def timeout_seconds(self) -> float:
        return self._timeout_seconds

    async def append(
        self,
        stream_type: str,
        stream_id: UUID | str,
        event_type: str,
        payload: bytes,
        expected_version: int,
        *,
        deadline: Deadline | None = None,
    ) -> AppendResult:
        """Append one event to *stream_id* if it is still at *expected_version*.

        Returns ``Ok(EventRecord)`` with the written event, or ``Err`` carrying
        a :class:`ConcurrencyConflictError`, :class:`SerializationError` or
        :class:`UnavailableError` (:class:`AppendTimeoutError` on deadline
        expiry). Any ``Err`` leaves the store unchanged, with one exception: a
        deadline that fires while the commit is in flight yields
        :class:`AppendTimeoutError` even if the commit reached storage. Re-read
        the stream version before deciding to retry; a blind retry with the same
        expected version fails with :class:`ConcurrencyConflictError` rather
        than writing twice.

        Raises:
            ValidationError: for a negative *expected_version* or a malformed
                stream id.
        """
        if expected_version < 0:
            raise ValidationError(f"expected_version must be >= 0, got {expected_version}")
        sid = as_uuid(stream_id)
        log = logger.bind(stream_id=str(sid), stream_type=stream_type, expected_version=expected_version)

        if not isinstance(payload, (bytes, bytearray, memoryview)):
            error = SerializationError(
                f"Payload for stream '{sid}' must be bytes, got {type(payload).__name__}"
            )
            log.error("append.serialization_failed", error=error.message)
            return Err(error)

        dl = (deadline or Deadline.after(self._timeout_seconds)).earliest(DeadlineContext.get())
        try:
            event = await deadline_aware(
                self._append_in_scope(stream_type, sid, event_type, bytes(payload), expected_version, dl),
                dl,
            )
        except ConcurrencyConflictError as exc:
            log.info("append.conflict", actual_version=exc.actual)
            return Err(exc)
        except AppendTimeoutError as exc:
            log.warning("append.timeout", error=exc.message)
            return Err(exc)
        except UnavailableError as exc:
            log.warning("append.unavailable", error=exc.message)
            return Err(exc)
        except SerializationError as exc:
            log.error("append.serialization_failed", error=exc.message)
            return Err(exc)

        log.debug("append.committed", event_id=str(event.id), version=event.version, event_type=event_type)
        return Ok(event)

    async def _append_in_scope(
        self,
        stream_type: str,
        stream_id: UUID,
        event_type: str,
        payload: bytes,
        expected_version: int,
        deadline: Deadline,
    ) -> EventRecord:
        try:
            async with self._gateway.begin(deadline) as scope:
                current = await scope.streams.get_version(
                    stream_id, for_update=self._gateway.lock_streams
                )
                if current is None:
                    await scope.streams.create(stream_id, stream_type, 0)
                    current = 0

                if current != expected_version:
                    raise ConcurrencyConflictError(stream_id, expected_version, current)

                next_version = current + 1
                event = EventRecord(
                    id=self._ids.new_id(),
                    stream_id=stream_id,
                    type=event_type,
                    version=next_version,
                    data=payload,
                    created_at=self._clock.now(),
                )
                await scope.events.insert(event)
                await scope.streams.advance_version(stream_id, next_version)
        except (DuplicateVersionError, StreamAlreadyExistsError) as exc:
            # A concurrent append to the same stream committed first.
            raise ConcurrencyConflictError(stream_id, expected_version, None, cause=exc) from exc
        return event


__all__ = ["DEFAULT_APPEND_TIMEOUT_SECONDS", "AppendCoordinator", "AppendError", "AppendResult"]
