"""Unit tests for the SQLAlchemy adapter against a file-backed SQLite database.

Each test drives a single event loop: pooled aiosqlite connections are bound
to the loop that opened them.
"""
from __future__ import annotations

import asyncio
import time
import uuid
from datetime import UTC, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable

import pytest
from sqlalchemy import func, insert, inspect, select

from appendlog.adapters.sqlalchemy import (
    SqlAlchemyPersistenceGateway,
    SqlAlchemySessionFactory,
    create_schema,
    drop_schema,
    events_table,
    streams_table,
)
from appendlog.adapters.sqlalchemy.session import SQLITE_BUSY_TIMEOUT_MS, busy_timeout_ms
from appendlog.application.event_sourcing import AppendCoordinator, EventRecord, EventStore
from appendlog.config.settings import EventStoreSettings
from appendlog.kernel.errors import (
    ConcurrencyConflictError,
    DuplicateVersionError,
    InvariantViolationError,
    StreamAlreadyExistsError,
    UnavailableError,
)
from appendlog.kernel.time import FrozenClock
from appendlog.kernel.types import Err, Ok
from appendlog.resilience.timeouts import Deadline

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------

def _url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'events.db'}"


def _run(
    tmp_path: Path,
    body: Callable[[SqlAlchemyPersistenceGateway], Awaitable[Any]],
    *,
    lock_streams: bool = True,
) -> Any:
    async def run() -> Any:
        gateway = SqlAlchemyPersistenceGateway(
            SqlAlchemySessionFactory(_url(tmp_path)), lock_streams=lock_streams
        )
        await create_schema(gateway.session_factory.engine)
        try:
            return await body(gateway)
        finally:
            await gateway.dispose()

    return asyncio.run(run())


async def _count(gateway: SqlAlchemyPersistenceGateway, table: Any) -> int:
    async with gateway.session_factory.engine.connect() as conn:
        return (await conn.execute(select(func.count()).select_from(table))).scalar_one()


async def _stream_version(gateway: SqlAlchemyPersistenceGateway, stream_id: uuid.UUID) -> int | None:
    async with gateway.begin() as scope:
        return await scope.streams.get_version(stream_id)


def _event(stream_id: uuid.UUID, version: int) -> EventRecord:
    return EventRecord(
        id=uuid.uuid4(), stream_id=stream_id, type="E", version=version, data=b"{}", created_at=NOW
    )


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

class TestSchema:
    def test_create_schema_creates_both_tables(self, tmp_path: Path) -> None:
        async def body(gateway: SqlAlchemyPersistenceGateway) -> tuple[set[str], list[Any]]:
            async with gateway.session_factory.engine.connect() as conn:
                names = await conn.run_sync(lambda c: set(inspect(c).get_table_names()))
                uniques = await conn.run_sync(lambda c: inspect(c).get_unique_constraints("events"))
            return names, uniques

        names, uniques = _run(tmp_path, body)
        assert {"streams", "events"} <= names
        assert any(set(u["column_names"]) == {"stream_id", "version"} for u in uniques)

    def test_create_schema_is_idempotent(self, tmp_path: Path) -> None:
        async def body(gateway: SqlAlchemyPersistenceGateway) -> None:
            await create_schema(gateway.session_factory.engine)

        _run(tmp_path, body)

    def test_drop_schema_removes_tables(self, tmp_path: Path) -> None:
        async def body(gateway: SqlAlchemyPersistenceGateway) -> set[str]:
            engine = gateway.session_factory.engine
            await drop_schema(engine)
            async with engine.connect() as conn:
                return await conn.run_sync(lambda c: set(inspect(c).get_table_names()))

        assert _run(tmp_path, body) == set()


# ---------------------------------------------------------------------------
# Append path
# ---------------------------------------------------------------------------

class TestSqlAlchemyAppend:
    def test_order_scenario(self, tmp_path: Path) -> None:
        sid = uuid.uuid4()

        async def body(gateway: SqlAlchemyPersistenceGateway) -> tuple[Any, ...]:
            coordinator = AppendCoordinator(gateway, clock=FrozenClock(NOW))
            r1 = await coordinator.append("Order", sid, "Created", b"P1", 0)
            r2 = await coordinator.append("Order", sid, "Updated", b"P2", 0)
            r3 = await coordinator.append("Order", sid, "Updated", b"P2", 1)
            async with gateway.begin() as scope:
                stream = await scope.streams.get(sid)
                events = await scope.events.list_by_stream(sid)
            return r1, r2, r3, stream, events

        r1, r2, r3, stream, events = _run(tmp_path, body)

        assert isinstance(r1, Ok) and r1.value.version == 1
        assert isinstance(r2, Err) and isinstance(r2.error, ConcurrencyConflictError)
        assert r2.error.actual == 1
        assert isinstance(r3, Ok) and r3.value.version == 2
        assert stream.type == "Order"
        assert stream.version == 2
        assert [(e.type, e.data, e.version) for e in events] == [
            ("Created", b"P1", 1),
            ("Updated", b"P2", 2),
        ]
        assert events[0].created_at == NOW

    def test_conflict_on_new_stream_leaves_no_rows(self, tmp_path: Path) -> None:
        sid = uuid.uuid4()

        async def body(gateway: SqlAlchemyPersistenceGateway) -> tuple[Any, int, int]:
            result = await AppendCoordinator(gateway).append("Order", sid, "E", b"{}", 2)
            return result, await _count(gateway, streams_table), await _count(gateway, events_table)

        result, streams, events = _run(tmp_path, body)
        assert isinstance(result, Err)
        assert isinstance(result.error, ConcurrencyConflictError)
        assert (streams, events) == (0, 0)

    @pytest.mark.parametrize("lock_streams", [True, False])
    def test_concurrent_appends_have_one_winner(self, tmp_path: Path, lock_streams: bool) -> None:
        sid = uuid.uuid4()

        async def body(gateway: SqlAlchemyPersistenceGateway) -> tuple[list[Any], int | None, int]:
            coordinator = AppendCoordinator(gateway)
            (await coordinator.append("Order", sid, "Created", b"seed", 0)).unwrap()
            results = await asyncio.gather(
                *(coordinator.append("Order", sid, "Updated", f"w{i}".encode(), 1) for i in range(5))
            )
            return list(results), await _stream_version(gateway, sid), await _count(gateway, events_table)

        results, version, events = _run(tmp_path, body, lock_streams=lock_streams)

        assert sum(r.is_ok() for r in results) == 1
        losers = [r for r in results if r.is_err()]
        assert all(isinstance(r.error, ConcurrencyConflictError) for r in losers)
        assert version == 2
        assert events == 2

    def test_sequential_appends_are_contiguous(self, tmp_path: Path) -> None:
        sid = uuid.uuid4()

        async def body(gateway: SqlAlchemyPersistenceGateway) -> list[int]:
            coordinator = AppendCoordinator(gateway)
            for expected in range(10):
                (await coordinator.append("Order", sid, "E", b"{}", expected)).unwrap()
            async with gateway.begin() as scope:
                return [e.version for e in await scope.events.list_by_stream(sid)]

        assert _run(tmp_path, body) == list(range(1, 11))

    def test_unique_constraint_backstop_reports_conflict(self, tmp_path: Path) -> None:
        sid = uuid.uuid4()

        async def body(gateway: SqlAlchemyPersistenceGateway) -> tuple[Any, int | None]:
            coordinator = AppendCoordinator(gateway)
            (await coordinator.append("Order", sid, "Created", b"{}", 0)).unwrap()
            # An event row at version 2 that the stream row does not yet reflect.
            async with gateway.session_factory.engine.begin() as conn:
                await conn.execute(
                    insert(events_table).values(
                        id=uuid.uuid4(), data=b"x", stream_id=sid, type="E", version=2, created_at=NOW
                    )
                )
            result = await coordinator.append("Order", sid, "Updated", b"{}", 1)
            return result, await _stream_version(gateway, sid)

        result, version = _run(tmp_path, body)
        assert isinstance(result, Err)
        assert isinstance(result.error, ConcurrencyConflictError)
        assert result.error.actual is None
        assert isinstance(result.error.cause, DuplicateVersionError)
        assert version == 1

    def test_event_store_round_trip(self, tmp_path: Path) -> None:
        sid = uuid.uuid4()

        async def body(
            gateway: SqlAlchemyPersistenceGateway,
        ) -> tuple[list[EventRecord], list[EventRecord], list[Any], int]:
            store = EventStore(gateway)
            first = await store.append_event(sid, {"n": 1}, 0, stream_type="Order", event_type="Created")
            second = await store.append_event(sid, {"n": 2}, 1, stream_type="Order", event_type="Updated")
            written = [first.unwrap(), second.unwrap()]
            read = await store.read_stream(sid)
            return written, read, await store.load_events(sid), await store.stream_version(sid)

        written, read, values, version = _run(tmp_path, body)
        assert read == written
        assert all(r.created_at.tzinfo is not None for r in read)
        assert values == [{"n": 1}, {"n": 2}]
        assert version == 2

    def test_created_at_is_returned_in_utc(self, tmp_path: Path) -> None:
        sid = uuid.uuid4()
        local = datetime(2025, 3, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))

        async def body(gateway: SqlAlchemyPersistenceGateway) -> datetime:
            coordinator = AppendCoordinator(gateway, clock=FrozenClock(local))
            (await coordinator.append("Order", sid, "E", b"{}", 0)).unwrap()
            async with gateway.begin() as scope:
                return (await scope.events.list_by_stream(sid))[0].created_at

        created_at = _run(tmp_path, body)
        assert created_at == NOW
        assert created_at.utcoffset() == timedelta(0)


# ---------------------------------------------------------------------------
# Registry / log / unit of work
# ---------------------------------------------------------------------------

class TestSqlAlchemyScope:
    def test_duplicate_version_insert_raises(self, tmp_path: Path) -> None:
        sid = uuid.uuid4()

        async def body(gateway: SqlAlchemyPersistenceGateway) -> None:
            async with gateway.begin() as scope:
                await scope.streams.create(sid, "Order", 0)
                await scope.events.insert(_event(sid, 1))
                await scope.events.insert(_event(sid, 1))

        with pytest.raises(DuplicateVersionError):
            _run(tmp_path, body)

    def test_duplicate_stream_create_raises(self, tmp_path: Path) -> None:
        sid = uuid.uuid4()

        async def body(gateway: SqlAlchemyPersistenceGateway) -> None:
            async with gateway.begin() as scope:
                await scope.streams.create(sid, "Order", 0)
            async with gateway.begin() as scope:
                await scope.streams.create(sid, "Order", 0)

        with pytest.raises(StreamAlreadyExistsError):
            _run(tmp_path, body)

    def test_failed_scope_rolls_back(self, tmp_path: Path) -> None:
        sid = uuid.uuid4()

        async def body(gateway: SqlAlchemyPersistenceGateway) -> int:
            with pytest.raises(RuntimeError):
                async with gateway.begin() as scope:
                    await scope.streams.create(sid, "Order", 0)
                    await scope.events.insert(_event(sid, 1))
                    raise RuntimeError("boom")
            return await _count(gateway, events_table) + await _count(gateway, streams_table)

        assert _run(tmp_path, body) == 0

    def test_advancing_unknown_stream_raises_invariant_violation(self, tmp_path: Path) -> None:
        async def body(gateway: SqlAlchemyPersistenceGateway) -> None:
            async with gateway.begin() as scope:
                await scope.streams.advance_version(uuid.uuid4(), 1)

        with pytest.raises(InvariantViolationError):
            _run(tmp_path, body)

    def test_session_is_closed_after_scope(self, tmp_path: Path) -> None:
        async def body(gateway: SqlAlchemyPersistenceGateway) -> Any:
            scope = gateway.begin()
            async with scope:
                await scope.streams.get_version(uuid.uuid4())
            return scope.session

        assert _run(tmp_path, body) is None


# ---------------------------------------------------------------------------
# Failures and configuration
# ---------------------------------------------------------------------------

class TestSqlAlchemyFailures:
    def test_unreachable_database_is_unavailable(self, tmp_path: Path) -> None:
        url = f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'dir' / 'events.db'}"

        async def run() -> Any:
            gateway = SqlAlchemyPersistenceGateway(SqlAlchemySessionFactory(url))
            try:
                return await AppendCoordinator(gateway).append("Order", uuid.uuid4(), "E", b"{}", 0)
            finally:
                await gateway.dispose()

        result = asyncio.run(run())
        assert isinstance(result, Err)
        assert isinstance(result.error, UnavailableError)


class TestFromSettings:
    def test_from_settings_creates_schema(self, tmp_path: Path) -> None:
        settings = EventStoreSettings(database_url=_url(tmp_path), create_schema=True, lock_streams=False)

        async def run() -> tuple[bool, Any]:
            gateway = await SqlAlchemyPersistenceGateway.from_settings(settings)
            try:
                result = await AppendCoordinator(gateway).append("Order", uuid.uuid4(), "E", b"{}", 0)
                return gateway.lock_streams, result
            finally:
                await gateway.dispose()

        lock_streams, result = asyncio.run(run())
        assert lock_streams is False
        assert result.is_ok()

    def test_from_settings_without_schema_leaves_database_empty(self, tmp_path: Path) -> None:
        settings = EventStoreSettings(database_url=_url(tmp_path))

        async def run() -> set[str]:
            gateway = await SqlAlchemyPersistenceGateway.from_settings(settings)
            try:
                async with gateway.session_factory.engine.connect() as conn:
                    return await conn.run_sync(lambda c: set(inspect(c).get_table_names()))
            finally:
                await gateway.dispose()

        assert asyncio.run(run()) == set()

    def test_from_settings_carries_append_timeout(self, tmp_path: Path) -> None:
        settings = EventStoreSettings(database_url=_url(tmp_path), append_timeout_seconds=0.25)

        async def run() -> tuple[float | None, float]:
            gateway = await SqlAlchemyPersistenceGateway.from_settings(settings)
            try:
                return gateway.append_timeout_seconds, EventStore(gateway).coordinator.timeout_seconds
            finally:
                await gateway.dispose()

        assert asyncio.run(run()) == (0.25, 0.25)


# ---------------------------------------------------------------------------
# Deadlines against a locked database
# ---------------------------------------------------------------------------

class TestSqlAlchemyDeadlines:
    def test_deadline_bounds_wait_for_write_lock(self, tmp_path: Path) -> None:
        sid = uuid.uuid4()

        async def body(gateway: SqlAlchemyPersistenceGateway) -> tuple[Any, float]:
            locked = asyncio.Event()

            async def hold_write_lock() -> None:
                async with gateway.begin() as scope:
                    await scope.streams.get_version(sid, for_update=True)
                    locked.set()
                    await asyncio.sleep(2)

            holder = asyncio.create_task(hold_write_lock())
            await locked.wait()
            started = time.monotonic()
            result = await AppendCoordinator(gateway).append(
                "Order", sid, "E", b"{}", 0, deadline=Deadline.after(0.3)
            )
            elapsed = time.monotonic() - started
            await holder
            return result, elapsed

        result, elapsed = _run(tmp_path, body)
        assert isinstance(result, Err)
        assert isinstance(result.error, UnavailableError)
        assert elapsed < 1.5

    def test_append_after_lock_is_released_succeeds(self, tmp_path: Path) -> None:
        sid = uuid.uuid4()

        async def body(gateway: SqlAlchemyPersistenceGateway) -> Any:
            locked = asyncio.Event()

            async def hold_write_lock() -> None:
                async with gateway.begin() as scope:
                    await scope.streams.get_version(sid, for_update=True)
                    locked.set()
                    await asyncio.sleep(0.1)

            holder = asyncio.create_task(hold_write_lock())
            await locked.wait()
            result = await AppendCoordinator(gateway).append(
                "Order", sid, "E", b"{}", 0, deadline=Deadline.after(2)
            )
            await holder
            return result

        assert _run(tmp_path, body).is_ok()

    @pytest.mark.parametrize(
        ("remaining", "expected"),
        [(0.3, 300), (60.0, SQLITE_BUSY_TIMEOUT_MS), (0.0, 1)],
    )
    def test_busy_timeout_follows_remaining_time(self, remaining: float, expected: int) -> None:
        assert busy_timeout_ms(remaining) == expected
