"""Kernel error hierarchy – public re-export surface.

Hierarchy::

    BaseError
    ├── DomainError              (domain.py)
    │   ├── InvariantViolationError
    │   ├── ValidationError
    │   └── ConflictError
    │       ├── ConcurrencyConflictError
    │       ├── DuplicateVersionError
    │       └── StreamAlreadyExistsError
    └── InfrastructureError      (infrastructure.py)
        ├── SerializationError
        └── UnavailableError
            └── AppendTimeoutError
"""

from appendlog.kernel.errors.base import BaseError
from appendlog.kernel.errors.domain import (
    ConcurrencyConflictError,
    ConflictError,
    DomainError,
    DuplicateVersionError,
    InvariantViolationError,
    StreamAlreadyExistsError,
    ValidationError,
)
from appendlog.kernel.errors.infrastructure import (
    AppendTimeoutError,
    InfrastructureError,
    SerializationError,
    UnavailableError,
)

__all__ = [
    "AppendTimeoutError",
    "BaseError",
    "ConcurrencyConflictError",
    "ConflictError",
    "DomainError",
    "DuplicateVersionError",
    "InfrastructureError",
    "InvariantViolationError",
    "SerializationError",
    "StreamAlreadyExistsError",
    "UnavailableError",
    "ValidationError",
]
