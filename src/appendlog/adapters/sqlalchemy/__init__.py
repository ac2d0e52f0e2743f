"""SQLAlchemy adapter – persistence gateway, stream registry and event log."""
from appendlog.adapters.sqlalchemy.event_log import SqlAlchemyEventLog
from appendlog.adapters.sqlalchemy.gateway import SqlAlchemyPersistenceGateway
from appendlog.adapters.sqlalchemy.registry import SqlAlchemyStreamRegistry
from appendlog.adapters.sqlalchemy.schema import create_schema, drop_schema, events_table, streams_table
from appendlog.adapters.sqlalchemy.session import SqlAlchemySessionFactory
from appendlog.adapters.sqlalchemy.uow import SqlAlchemyUnitOfWork

__all__ = [
    "SqlAlchemyEventLog",
    "SqlAlchemyPersistenceGateway",
    "SqlAlchemySessionFactory",
    "SqlAlchemyStreamRegistry",
    "SqlAlchemyUnitOfWork",
    "create_schema",
    "drop_schema",
    "events_table",
    "streams_table",
]
