"""Result[T, E] – Ok and Err variants returned by the append path.

Conflicts are expected outcomes under optimistic concurrency, so the append
path reports them as ``Err`` values instead of raising. Both variants are
frozen dataclasses and support structural pattern matching::

    match await coordinator.append(...):
        case Ok(event):
            ...
        case Err(ConcurrencyConflictError() as conflict):
            ...
"""

from __future__ import annotations

import dataclasses
from typing import Generic, NoReturn, TypeAlias, TypeVar

T = TypeVar("T")
E = TypeVar("E", bound=Exception)


@dataclasses.dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result variant."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:  # noqa: ARG002
        return self.value


@dataclasses.dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Error result variant; ``unwrap`` re-raises the carried exception."""

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> NoReturn:
        raise self.error

    def unwrap_or(self, default: T) -> T:
        return default


Result: TypeAlias = Ok[T] | Err[E]

__all__ = ["Err", "Ok", "Result"]
