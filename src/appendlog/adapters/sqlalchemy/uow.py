"""SQLAlchemy adapter – SqlAlchemyUnitOfWork."""
from __future__ import annotations

from typing import Any, Self

from appendlog.adapters.sqlalchemy.errors import translate_db_errors
from appendlog.adapters.sqlalchemy.event_log import SqlAlchemyEventLog
from appendlog.adapters.sqlalchemy.registry import SqlAlchemyStreamRegistry
from appendlog.adapters.sqlalchemy.session import BUSY_TIMEOUT_OPTION, busy_timeout_ms
from appendlog.application.event_sourcing.ports import AppendScope
from appendlog.resilience.timeouts import Deadline


class SqlAlchemyUnitOfWork(AppendScope):
    """SQLAlchemy async unit of work: one session, one transaction.

    The session is opened on ``__aenter__`` and closed on every exit path;
    the transaction commits when the body completes and rolls back when it
    raises or is cancelled.

    With a *deadline* the connection is checked out and its transaction begun
    on entry, with driver-level lock waits bounded by the time remaining.
    """

    def __init__(self, session_factory: Any, deadline: Deadline | None = None) -> None:
        self._factory = session_factory
        self._deadline = deadline
        self.session: Any = None

    async def __aenter__(self) -> Self:
        self.session = self._factory()
        try:
            with translate_db_errors("begin transaction"):
                await self.session.begin()
                if self._deadline is not None:
                    options = {BUSY_TIMEOUT_OPTION: busy_timeout_ms(self._deadline.remaining_seconds)}
                    await self.session.connection(execution_options=options)
        except BaseException:
            await self.session.close()
            raise
        self.streams = SqlAlchemyStreamRegistry(self.session)
        self.events = SqlAlchemyEventLog(self.session)
        return self

    async def commit(self) -> None:
        with translate_db_errors("commit"):
            await self.session.commit()

    async def rollback(self) -> None:
        with translate_db_errors("rollback"):
            await self.session.rollback()

    async def close(self) -> None:
        if self.session is not None:
            await self.session.close()
            self.session = None


__all__ = ["SqlAlchemyUnitOfWork"]
