"""SQLAlchemy adapter – SqlAlchemyPersistenceGateway."""
from __future__ import annotations

from appendlog.adapters.sqlalchemy.schema import create_schema
from appendlog.adapters.sqlalchemy.session import SqlAlchemySessionFactory
from appendlog.adapters.sqlalchemy.uow import SqlAlchemyUnitOfWork
from appendlog.application.event_sourcing.ports import PersistenceGateway
from appendlog.config.settings import EventStoreSettings
from appendlog.observability.logging import get_logger
from appendlog.resilience.timeouts import Deadline

logger = get_logger(__name__)


class SqlAlchemyPersistenceGateway(PersistenceGateway):
    """:class:`PersistenceGateway` that opens one session per atomic scope.

    Parameters
    ----------
    session_factory:
        Callable returning a new :class:`~sqlalchemy.ext.asyncio.AsyncSession`.
    lock_streams:
        Lock the stream row with ``SELECT ... FOR UPDATE`` during appends.
        With ``False`` the unique constraints alone arbitrate concurrent
        writers.
    append_timeout_seconds:
        Default append deadline for coordinators built over this gateway.
    """

    def __init__(
        self,
        session_factory: SqlAlchemySessionFactory,
        *,
        lock_streams: bool = True,
        append_timeout_seconds: float | None = None,
    ) -> None:
        self._factory = session_factory
        self.lock_streams = lock_streams
        self.append_timeout_seconds = append_timeout_seconds

    @classmethod
    async def from_settings(cls, settings: EventStoreSettings) -> "SqlAlchemyPersistenceGateway":
        """Build the engine, optionally create the schema, and return a gateway."""
        factory = SqlAlchemySessionFactory(settings.database_url, echo=settings.echo_sql)
        if settings.create_schema:
            await create_schema(factory.engine)
            logger.info("schema.ready", url=factory.engine.url.render_as_string(hide_password=True))
        return cls(
            factory,
            lock_streams=settings.lock_streams,
            append_timeout_seconds=settings.append_timeout_seconds,
        )

    @property
    def session_factory(self) -> SqlAlchemySessionFactory:
        return self._factory

    def begin(self, deadline: Deadline | None = None) -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(self._factory, deadline)

    async def dispose(self) -> None:
        await self._factory.dispose()


__all__ = ["SqlAlchemyPersistenceGateway"]
