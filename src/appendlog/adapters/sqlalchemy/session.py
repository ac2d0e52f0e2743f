"""SQLAlchemy adapter – SqlAlchemySessionFactory."""
from __future__ import annotations

from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

SQLITE_BUSY_TIMEOUT_MS = 5000
# Connection execution option carrying a per-scope busy timeout.
BUSY_TIMEOUT_OPTION = "appendlog_busy_timeout_ms"


def busy_timeout_ms(remaining_seconds: float) -> int:
    """Busy timeout for a scope with *remaining_seconds* left, capped at the default."""
    return max(1, min(SQLITE_BUSY_TIMEOUT_MS, int(remaining_seconds * 1000)))


def _install_sqlite_transactions(engine: AsyncEngine) -> None:
    # SQLite has no row locks and its driver defers BEGIN until the first
    # write, so concurrent scopes could both read a version before either
    # writes. Take the write lock when the scope starts instead.
    #
    # The lock wait runs on the driver thread where cancellation cannot reach
    # it, so each BEGIN first narrows busy_timeout to the scope's deadline.
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:  # noqa: ARG001
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS}")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn: Any) -> None:
        timeout_ms = conn.get_execution_options().get(BUSY_TIMEOUT_OPTION, SQLITE_BUSY_TIMEOUT_MS)
        conn.exec_driver_sql(f"PRAGMA busy_timeout={int(timeout_ms)}")
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class SqlAlchemySessionFactory:
    """Creates async SQLAlchemy sessions from an engine URL.

    On SQLite every transaction opens with ``BEGIN IMMEDIATE``, which is how
    that backend serializes appends to a stream.
    """

    def __init__(self, database_url: str, **engine_kwargs: Any) -> None:
        self._engine = create_async_engine(database_url, **engine_kwargs)
        if self._engine.dialect.name == "sqlite":
            _install_sqlite_transactions(self._engine)
        self._session_factory = async_sessionmaker(self._engine, class_=AsyncSession, expire_on_commit=False)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    def __call__(self) -> AsyncSession:
        return self._session_factory()

    async def dispose(self) -> None:
        await self._engine.dispose()


__all__ = ["BUSY_TIMEOUT_OPTION", "SqlAlchemySessionFactory", "busy_timeout_ms"]
