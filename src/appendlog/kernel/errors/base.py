"""Root of the appendlog error hierarchy.

Every error carries a machine-readable ``code`` and a ``detail`` mapping so
append outcomes can be logged as structured fields. ``retryable`` marks the
failures a caller may repeat as-is: an append that failed with one of them
left nothing behind.
"""

from __future__ import annotations

import json
from typing import Any, ClassVar


class BaseError(Exception):
    """Base class of every error raised by appendlog.

    Args:
        message: Human-readable description.
        code: Machine-readable slug; ``default_code`` of the class when omitted.
        detail: Structured context, kept JSON-friendly.
        cause: Lower-level exception this error translates.
    """

    default_code: ClassVar[str] = "appendlog_error"
    retryable: ClassVar[bool] = False

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        detail: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code if code is not None else self.default_code
        self.detail: dict[str, Any] = dict(detail) if detail else {}
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.code}: {self.message}>"

    def to_dict(self) -> dict[str, Any]:
        """Return the error as log-friendly fields."""
        fields: dict[str, Any] = {"code": self.code, "message": self.message, "detail": self.detail}
        if self.retryable:
            fields["retryable"] = True
        if self.cause is not None:
            fields["cause"] = repr(self.cause)
        return fields


__all__ = ["BaseError"]
