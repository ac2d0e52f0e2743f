"""
appendlog – append path of an event-sourced log store.

Import path convention::

    from appendlog.application.event_sourcing import AppendCoordinator, EventStore
    from appendlog.adapters.sqlalchemy import SqlAlchemyPersistenceGateway
    from appendlog.kernel.errors import ConcurrencyConflictError
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
