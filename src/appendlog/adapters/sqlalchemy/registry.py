"""SQLAlchemy adapter – SqlAlchemyStreamRegistry."""
from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError

from appendlog.adapters.sqlalchemy.errors import translate_db_errors
from appendlog.adapters.sqlalchemy.schema import streams_table
from appendlog.application.event_sourcing.ports import StreamRegistry
from appendlog.application.event_sourcing.records import StreamRecord
from appendlog.kernel.errors import InvariantViolationError, StreamAlreadyExistsError


class SqlAlchemyStreamRegistry(StreamRegistry):
    """Stream rows in the ``streams`` table, bound to one session.

    ``get_version(..., for_update=True)`` issues ``SELECT ... FOR UPDATE``;
    dialects without row locks (SQLite) ignore the clause and rely on their
    own write serialization.
    """

    def __init__(self, session: Any) -> None:
        self._session = session

    async def get_version(self, stream_id: UUID, *, for_update: bool = False) -> int | None:
        stmt = select(streams_table.c.version).where(streams_table.c.id == stream_id)
        if for_update:
            stmt = stmt.with_for_update()
        with translate_db_errors("read stream version"):
            result = await self._session.execute(stmt)
            return result.scalar_one_or_none()

    async def get(self, stream_id: UUID) -> StreamRecord | None:
        stmt = select(streams_table).where(streams_table.c.id == stream_id)
        with translate_db_errors("read stream"):
            row = (await self._session.execute(stmt)).one_or_none()
        if row is None:
            return None
        return StreamRecord(id=row.id, type=row.type, version=row.version)

    async def create(self, stream_id: UUID, stream_type: str, initial_version: int) -> None:
        stmt = insert(streams_table).values(id=stream_id, type=stream_type, version=initial_version)
        try:
            with translate_db_errors("create stream"):
                await self._session.execute(stmt)
        except IntegrityError as exc:
            raise StreamAlreadyExistsError(stream_id, cause=exc) from exc

    async def advance_version(self, stream_id: UUID, new_version: int) -> None:
        stmt = (
            update(streams_table)
            .where(streams_table.c.id == stream_id)
            .values(version=new_version)
        )
        with translate_db_errors("advance stream version"):
            result = await self._session.execute(stmt)
        if result.rowcount != 1:
            raise InvariantViolationError(
                f"Cannot advance unknown stream '{stream_id}'",
                detail={"stream_id": str(stream_id), "rows_matched": result.rowcount},
            )


__all__ = ["SqlAlchemyStreamRegistry"]
