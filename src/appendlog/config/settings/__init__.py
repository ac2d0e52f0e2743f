"""Config settings – 12-factor env-based configuration."""
from appendlog.config.settings.base import Settings
from appendlog.config.settings.loaders import DotenvSettingsLoader, EnvSettingsLoader, SettingsLoader
from appendlog.config.settings.store import EventStoreSettings

__all__ = ["DotenvSettingsLoader", "EnvSettingsLoader", "EventStoreSettings", "Settings", "SettingsLoader"]
