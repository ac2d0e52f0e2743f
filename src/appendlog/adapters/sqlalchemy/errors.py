"""SQLAlchemy adapter – driver error translation.

Connection loss, lock timeouts, pool exhaustion and similar backend trouble
become :class:`UnavailableError` (retryable); values the driver refuses to
bind become :class:`SerializationError`. Integrity violations are handled by
the registry and log themselves, which know which constraint they touched.
"""
from __future__ import annotations

import contextlib
from typing import Iterator

from sqlalchemy import exc as sa_exc

from appendlog.kernel.errors import SerializationError, UnavailableError


@contextlib.contextmanager
def translate_db_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except sa_exc.IntegrityError:
        raise
    except sa_exc.DataError as exc:
        raise SerializationError(f"{operation}: value rejected by the database", cause=exc) from exc
    except sa_exc.StatementError as exc:
        if isinstance(exc.orig, (TypeError, ValueError)):
            raise SerializationError(f"{operation}: cannot bind value", cause=exc) from exc
        if isinstance(exc, sa_exc.ProgrammingError):
            raise
        raise UnavailableError(f"{operation}: database unavailable", cause=exc) from exc
    except (sa_exc.DisconnectionError, sa_exc.TimeoutError, OSError) as exc:
        raise UnavailableError(f"{operation}: database unavailable", cause=exc) from exc


__all__ = ["translate_db_errors"]
