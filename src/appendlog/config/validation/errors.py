"""Config validation errors."""
from appendlog.kernel.errors import BaseError


class ConfigError(BaseError):
    """The event store could not be configured."""

    default_code = "config_error"


class MissingRequiredSettingError(ConfigError):
    """A setting without a default has no value in the environment."""

    default_code = "missing_required_setting"

    def __init__(self, setting_name: str) -> None:
        super().__init__(f"No value for required setting {setting_name}", detail={"setting": setting_name})
        self.setting_name = setting_name


class InvalidSettingValueError(ConfigError):
    """A setting has a value, but not one the event store can use."""

    default_code = "invalid_setting_value"

    def __init__(self, setting_name: str, value: object, reason: str) -> None:
        super().__init__(
            f"{setting_name}={value!r} rejected: {reason}",
            detail={"setting": setting_name, "reason": reason},
        )
        self.setting_name = setting_name
        self.value = value
        self.reason = reason


__all__ = ["ConfigError", "InvalidSettingValueError", "MissingRequiredSettingError"]
