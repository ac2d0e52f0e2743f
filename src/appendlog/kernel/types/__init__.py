"""Kernel types – Result variants and identifier helpers."""
from appendlog.kernel.types.ids import IdGenerator, Uuid4Generator, as_uuid
from appendlog.kernel.types.result import Err, Ok, Result

__all__ = ["Err", "IdGenerator", "Ok", "Result", "Uuid4Generator", "as_uuid"]
