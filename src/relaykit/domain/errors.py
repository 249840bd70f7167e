"""Error taxonomy — expected failures as values, defects as exceptions.

Expected failures (not found, validation, conflict, ...) travel inside a
:class:`~relaykit.domain.result.Failure` as an :class:`Error`. Python
exceptions are reserved for programming and configuration defects.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class ErrorKind(StrEnum):
    """Kind tag of an expected failure."""

    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    CANCELLED = "cancelled"
    UNEXPECTED = "unexpected"


class FieldError(BaseModel):
    """One failed validation rule for a single request field."""

    model_config = {"frozen": True}

    field: str
    message: str
    code: str = "invalid"


class Error(BaseModel):
    """Structured failure payload carried by a Failure result.

    Attributes:
        kind: Failure category, enough for a boundary adapter to pick a
            status or exit code.
        message: Human-readable summary.
        metadata: Optional structured context (ids, exception type, ...).
        field_errors: Per-field detail for validation failures.
    """

    model_config = {"frozen": True}

    kind: ErrorKind
    message: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    field_errors: tuple[FieldError, ...] = ()

    @classmethod
    def not_found(cls, message: str, **metadata: Any) -> Error:
        return cls(kind=ErrorKind.NOT_FOUND, message=message, metadata=metadata)

    @classmethod
    def validation(
        cls,
        field_errors: Iterable[FieldError],
        message: str | None = None,
        **metadata: Any,
    ) -> Error:
        """Build a validation error enumerating every failed field."""
        errors = tuple(field_errors)
        if message is None:
            fields = ", ".join(e.field for e in errors)
            message = f"Validation failed for: {fields}" if fields else "Validation failed"
        return cls(
            kind=ErrorKind.VALIDATION,
            message=message,
            metadata=metadata,
            field_errors=errors,
        )

    @classmethod
    def conflict(cls, message: str, **metadata: Any) -> Error:
        return cls(kind=ErrorKind.CONFLICT, message=message, metadata=metadata)

    @classmethod
    def unauthorized(cls, message: str = "Authentication required", **metadata: Any) -> Error:
        return cls(kind=ErrorKind.UNAUTHORIZED, message=message, metadata=metadata)

    @classmethod
    def forbidden(cls, message: str = "Operation not permitted", **metadata: Any) -> Error:
        return cls(kind=ErrorKind.FORBIDDEN, message=message, metadata=metadata)

    @classmethod
    def cancelled(cls, message: str = "Operation was cancelled", **metadata: Any) -> Error:
        return cls(kind=ErrorKind.CANCELLED, message=message, metadata=metadata)

    @classmethod
    def unexpected(cls, message: str, **metadata: Any) -> Error:
        return cls(kind=ErrorKind.UNEXPECTED, message=message, metadata=metadata)

    @classmethod
    def from_exception(cls, exc: BaseException) -> Error:
        """Wrap an unanticipated exception as an Unexpected error."""
        return cls.unexpected(
            str(exc) or exc.__class__.__name__,
            exception_type=exc.__class__.__name__,
        )


# ---------------------------------------------------------------------------
# Exceptions (defects, never expected outcomes)
# ---------------------------------------------------------------------------


class RelayError(Exception):
    """Base class for every exception raised by relaykit."""


class InvalidResultStateError(RelayError):
    """Accessing the value of a Failure, or the error of a Success."""


class OperationCancelledError(RelayError):
    """Raised at a cancellation checkpoint once the token is cancelled.

    The mediator converts it into a ``cancelled`` Failure; it never escapes
    ``Mediator.send``.
    """

    def __init__(self, reason: str = "Operation was cancelled") -> None:
        super().__init__(reason)
        self.reason = reason


class RelayConfigurationError(RelayError):
    """Startup/configuration defect. Fatal, never converted into a Result."""


class HandlerNotFoundError(RelayConfigurationError):
    """No handler is registered for the dispatched request key."""

    def __init__(self, request_key: str) -> None:
        super().__init__(f"No handler registered for request type {request_key!r}")
        self.request_key = request_key


class DuplicateRegistrationError(RelayConfigurationError):
    """A second handler was registered for an already-bound request key."""

    def __init__(self, request_key: str) -> None:
        super().__init__(f"A handler is already registered for request type {request_key!r}")
        self.request_key = request_key


class RegistryFrozenError(RelayConfigurationError):
    """Registration attempted after the bootstrap phase ended."""


class UnknownBehaviorError(RelayConfigurationError):
    """A configured pipeline behavior name has no factory."""

    def __init__(self, name: str, available: Iterable[str]) -> None:
        known = ", ".join(sorted(available)) or "(none)"
        super().__init__(f"Unknown pipeline behavior {name!r}; available: {known}")
        self.name = name
