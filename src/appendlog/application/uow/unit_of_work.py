"""Unit of Work port – the atomic boundary every append runs inside."""

from __future__ import annotations

import abc
from typing import Any, Self


class UnitOfWork(abc.ABC):
    """Port: transactional unit of work.

    Entering the unit acquires whatever the backend needs (a session, a
    lock table); leaving it commits on success and rolls back when the body
    raises, including on cancellation. Resources are released on every exit
    path.
    """

    @abc.abstractmethod
    async def commit(self) -> None: ...

    @abc.abstractmethod
    async def rollback(self) -> None: ...

    async def close(self) -> None:
        """Release resources held by the unit. Default: nothing to release."""

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        try:
            if exc_type is None:
                await self.commit()
            else:
                await self.rollback()
        finally:
            await self.close()


__all__ = ["UnitOfWork"]
