"""SQLAlchemy adapter – table definitions for streams and events.

Schema::

    streams(id UUID PK, type TEXT, version BIGINT)
    events(id UUID PK, data BLOB, stream_id UUID FK -> streams.id,
           type TEXT, version BIGINT, created_at TIMESTAMPTZ,
           UNIQUE (stream_id, version))

The ``events_stream_and_version`` constraint is the storage backstop against
two appends writing the same version of a stream.
"""
from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    ForeignKey,
    LargeBinary,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.types import TypeDecorator


class UtcDateTime(TypeDecorator[datetime]):
    """``DateTime(timezone=True)`` that always hands back aware UTC values.

    SQLite stores timestamps without an offset; values are normalized to UTC
    on the way in and tagged as UTC on the way out.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Any) -> datetime | None:
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value

    def process_result_value(self, value: datetime | None, dialect: Any) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


metadata = MetaData()

streams_table = Table(
    "streams",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("type", Text, nullable=False),
    Column("version", BigInteger, nullable=False),
)

events_table = Table(
    "events",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("data", LargeBinary, nullable=False),
    Column("stream_id", Uuid, ForeignKey("streams.id"), nullable=False),
    Column("type", Text, nullable=False),
    Column("version", BigInteger, nullable=False),
    Column("created_at", UtcDateTime, nullable=False),
    UniqueConstraint("stream_id", "version", name="events_stream_and_version"),
)


async def create_schema(bind: Any) -> None:
    """Create the ``streams`` and ``events`` tables if they do not exist.

    Parameters
    ----------
    bind:
        An :class:`~sqlalchemy.ext.asyncio.AsyncEngine` or a synchronous
        :class:`~sqlalchemy.engine.Engine`.
    """
    if hasattr(bind, "sync_engine"):
        async with bind.begin() as conn:
            await conn.run_sync(metadata.create_all, checkfirst=True)
    else:
        metadata.create_all(bind, checkfirst=True)


async def drop_schema(bind: Any) -> None:
    """Drop both tables; intended for test teardown."""
    if hasattr(bind, "sync_engine"):
        async with bind.begin() as conn:
            await conn.run_sync(metadata.drop_all, checkfirst=True)
    else:
        metadata.drop_all(bind, checkfirst=True)


__all__ = ["UtcDateTime", "create_schema", "drop_schema", "events_table", "metadata", "streams_table"]
