"""Config settings – EventStoreSettings."""
from __future__ import annotations

import dataclasses
import logging
from typing import ClassVar

from appendlog.config.settings.base import Settings
from appendlog.config.validation import InvalidSettingValueError


@dataclasses.dataclass
class EventStoreSettings(Settings):
    """Runtime settings for the append path.

    Loaded from ``APPENDLOG_*`` environment variables by
    :class:`~appendlog.config.settings.loaders.EnvSettingsLoader`.
    """

    _prefix: ClassVar[str] = "APPENDLOG"

    database_url: str = "sqlite+aiosqlite:///appendlog.db"
    append_timeout_seconds: float = 5.0
    # Serialize appends per stream with a row lock; the unique
    # (stream_id, version) constraint stays active either way.
    lock_streams: bool = True
    echo_sql: bool = False
    create_schema: bool = False
    log_level: str = "INFO"
    log_json: bool = True

    def _validate(self) -> None:
        if not self.database_url:
            raise InvalidSettingValueError("database_url", self.database_url, "must not be empty")
        if self.append_timeout_seconds <= 0:
            raise InvalidSettingValueError(
                "append_timeout_seconds", self.append_timeout_seconds, "must be positive"
            )
        if self.log_level.upper() not in logging.getLevelNamesMapping():
            raise InvalidSettingValueError("log_level", self.log_level, "unknown logging level")


__all__ = ["EventStoreSettings"]
