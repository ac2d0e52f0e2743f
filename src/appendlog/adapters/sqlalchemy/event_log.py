"""SQLAlchemy adapter – SqlAlchemyEventLog."""
from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError

from appendlog.adapters.sqlalchemy.errors import translate_db_errors
from appendlog.adapters.sqlalchemy.schema import events_table
from appendlog.application.event_sourcing.ports import EventLog
from appendlog.application.event_sourcing.records import EventRecord
from appendlog.kernel.errors import DuplicateVersionError


class SqlAlchemyEventLog(EventLog):
    """Append-only event rows in the ``events`` table, bound to one session.

    The ``events_stream_and_version`` unique constraint makes the database
    reject a second event at the same stream version; that rejection is
    reported as :class:`DuplicateVersionError`.
    """

    def __init__(self, session: Any) -> None:
        self._session = session

    async def insert(self, event: EventRecord) -> None:
        stmt = insert(events_table).values(
            id=event.id,
            data=event.data,
            stream_id=event.stream_id,
            type=event.type,
            version=event.version,
            created_at=event.created_at,
        )
        try:
            with translate_db_errors("insert event"):
                await self._session.execute(stmt)
        except IntegrityError as exc:
            raise DuplicateVersionError(event.stream_id, event.version, cause=exc) from exc

    async def list_by_stream(self, stream_id: UUID, from_version: int = 0) -> list[EventRecord]:
        stmt = (
            select(events_table)
            .where(events_table.c.stream_id == stream_id)
            .where(events_table.c.version > from_version)
            .order_by(events_table.c.version)
        )
        with translate_db_errors("list events"):
            rows = (await self._session.execute(stmt)).fetchall()
        return [
            EventRecord(
                id=row.id,
                stream_id=row.stream_id,
                type=row.type,
                version=row.version,
                data=bytes(row.data),
                created_at=row.created_at,
            )
            for row in rows
        ]


__all__ = ["SqlAlchemyEventLog"]
