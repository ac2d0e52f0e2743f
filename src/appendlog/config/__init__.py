"""Config – 12-factor settings and loaders."""

from appendlog.config.settings import (
    DotenvSettingsLoader,
    EnvSettingsLoader,
    EventStoreSettings,
    Settings,
    SettingsLoader,
)
from appendlog.config.validation import (
    ConfigError,
    InvalidSettingValueError,
    MissingRequiredSettingError,
)

__all__ = [
    "ConfigError",
    "DotenvSettingsLoader",
    "EnvSettingsLoader",
    "EventStoreSettings",
    "InvalidSettingValueError",
    "MissingRequiredSettingError",
    "Settings",
    "SettingsLoader",
]
