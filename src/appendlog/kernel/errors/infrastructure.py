"""Infrastructure errors – I/O failures and payload encoding."""

from __future__ import annotations

from appendlog.kernel.errors.base import BaseError


class InfrastructureError(BaseError):
    """Infrastructure / I/O failure that is not a stream rule violation."""

    default_code = "infrastructure_error"


class SerializationError(InfrastructureError):
    """Failed to serialize or deserialize a payload. Not retryable."""

    default_code = "serialization_error"


class UnavailableError(InfrastructureError):
    """The persistence backend could not complete the atomic unit.

    Safe to retry: a failed unit leaves no partial state behind.
    """

    default_code = "unavailable"
    retryable = True


class AppendTimeoutError(UnavailableError):
    """The append did not finish before its deadline."""

    default_code = "append_timeout"


__all__ = [
    "AppendTimeoutError",
    "InfrastructureError",
    "SerializationError",
    "UnavailableError",
]
