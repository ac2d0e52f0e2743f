"""Integration tests for the SQLAlchemy adapter – Postgres.

Uses testcontainers to spawn a real PostgreSQL instance.
Run with: PYTHONPATH=src pytest tests/integration/test_postgres.py -m integration -v
"""
from __future__ import annotations

import asyncio
import uuid
from typing import Any

import pytest
from testcontainers.postgres import PostgresContainer

from appendlog.adapters.sqlalchemy import (
    SqlAlchemyPersistenceGateway,
    SqlAlchemySessionFactory,
    create_schema,
)
from appendlog.application.event_sourcing import AppendCoordinator, EventStore
from appendlog.kernel.errors import ConcurrencyConflictError


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------

def _pg_url(container: Any) -> str:
    """Return an asyncpg-compatible URL from a PostgresContainer."""
    raw = container.get_connection_url()
    # testcontainers returns psycopg2 URL; swap driver for asyncpg
    return raw.replace("psycopg2", "asyncpg", 1)


@pytest.fixture(scope="module")
def pg_url() -> Any:
    with PostgresContainer("postgres:16-alpine") as container:
        yield _pg_url(container)


async def _gateway(url: str, *, lock_streams: bool = True) -> SqlAlchemyPersistenceGateway:
    factory = SqlAlchemySessionFactory(url, pool_size=20)
    await create_schema(factory.engine)
    return SqlAlchemyPersistenceGateway(factory, lock_streams=lock_streams)


# ---------------------------------------------------------------------------
# Append path against a real database
# ---------------------------------------------------------------------------

@pytest.mark.integration
class TestPostgresAppend:
    def test_order_scenario(self, pg_url: str) -> None:
        sid = uuid.uuid4()

        async def run() -> tuple[Any, ...]:
            gateway = await _gateway(pg_url)
            try:
                coordinator = AppendCoordinator(gateway)
                r1 = await coordinator.append("Order", sid, "Created", b"P1", 0)
                r2 = await coordinator.append("Order", sid, "Updated", b"P2", 0)
                r3 = await coordinator.append("Order", sid, "Updated", b"P2", 1)
                async with gateway.begin() as scope:
                    events = await scope.events.list_by_stream(sid)
                return r1, r2, r3, events
            finally:
                await gateway.dispose()

        r1, r2, r3, events = asyncio.run(run())
        assert r1.is_ok()
        assert isinstance(r2.error, ConcurrencyConflictError)
        assert r3.is_ok()
        assert [(e.data, e.version) for e in events] == [(b"P1", 1), (b"P2", 2)]
        assert events[0].created_at.tzinfo is not None

    @pytest.mark.parametrize("lock_streams", [True, False])
    def test_concurrent_appends_have_one_winner(self, pg_url: str, lock_streams: bool) -> None:
        sid = uuid.uuid4()

        async def run() -> tuple[list[Any], int]:
            gateway = await _gateway(pg_url, lock_streams=lock_streams)
            try:
                coordinator = AppendCoordinator(gateway)
                (await coordinator.append("Order", sid, "Created", b"seed", 0)).unwrap()
                results = await asyncio.gather(
                    *(coordinator.append("Order", sid, "Updated", b"{}", 1) for _ in range(10))
                )
                return list(results), await EventStore(gateway).stream_version(sid)
            finally:
                await gateway.dispose()

        results, version = asyncio.run(run())
        assert sum(r.is_ok() for r in results) == 1
        assert all(isinstance(r.error, ConcurrencyConflictError) for r in results if r.is_err())
        assert version == 2

    def test_concurrent_first_appends_to_new_stream(self, pg_url: str) -> None:
        sid = uuid.uuid4()

        async def run() -> list[Any]:
            gateway = await _gateway(pg_url, lock_streams=False)
            try:
                coordinator = AppendCoordinator(gateway)
                return list(
                    await asyncio.gather(
                        *(coordinator.append("Order", sid, "Created", b"{}", 0) for _ in range(5))
                    )
                )
            finally:
                await gateway.dispose()

        results = asyncio.run(run())
        assert sum(r.is_ok() for r in results) == 1
