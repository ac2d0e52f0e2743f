"""Config settings – Settings base class."""
from __future__ import annotations

import dataclasses
from typing import ClassVar


@dataclasses.dataclass
class Settings:
    """Dataclass settings read from ``<_prefix>_<FIELD>`` variables.

    Subclasses declare fields with defaults and check them in
    :meth:`_validate`, which runs on construction.
    """

    _prefix: ClassVar[str] = ""

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        pass

    @classmethod
    def env_name(cls, field_name: str) -> str:
        """Return the environment variable that holds *field_name*."""
        return "_".join(part for part in (cls._prefix, field_name) if part).upper()


__all__ = ["Settings"]
