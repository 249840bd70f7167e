"""Result — the universal return type of every handler and behavior.

INVARIANT: A Result is exactly one of Success or Failure, never both.
Expected failures travel as ``Failure(Error)`` values; exceptions are only
raised for programming errors such as reading ``value`` from a Failure.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, NoReturn

from relaykit.domain.errors import Error, InvalidResultStateError


class Result[T](ABC):
    """Tagged union of :class:`Success` and :class:`Failure`.

    Usage::

        result = repo_lookup(order_id).map(to_dto)
        payload = result.match(lambda dto: dto.model_dump(), lambda err: err.message)
    """

    __slots__ = ()

    @property
    @abstractmethod
    def is_success(self) -> bool: ...

    @property
    def is_failure(self) -> bool:
        return not self.is_success

    @property
    @abstractmethod
    def value(self) -> T:
        """Success payload. Raises InvalidResultStateError on a Failure."""

    @property
    @abstractmethod
    def error(self) -> Error:
        """Failure payload. Raises InvalidResultStateError on a Success."""

    @abstractmethod
    def map[U](self, func: Callable[[T], U]) -> Result[U]:
        """Transform the success value; a Failure is returned unchanged."""

    @abstractmethod
    def bind[U](self, func: Callable[[T], Result[U]]) -> Result[U]:
        """Chain a Result-returning step; a Failure short-circuits."""

    @abstractmethod
    def map_error(self, func: Callable[[Error], Error]) -> Result[T]:
        """Transform the error; a Success is returned unchanged."""

    @abstractmethod
    def match[U](self, on_success: Callable[[T], U], on_failure: Callable[[Error], U]) -> U:
        """Call exactly one of the two functions and return its output."""

    @abstractmethod
    def unwrap_or(self, default: T) -> T: ...

    def ensure(self, predicate: Callable[[T], bool], error: Error) -> Result[T]:
        """Turn a Success into ``Failure(error)`` when *predicate* rejects its value."""
        if self.is_success and not predicate(self.value):
            return Failure(error)
        return self

    @staticmethod
    def from_optional[U](value: U | None, error: Error) -> Result[U]:
        """``Success(value)`` unless *value* is None, then ``Failure(error)``."""
        if value is None:
            return Failure(error)
        return Success(value)


@dataclass(frozen=True, slots=True)
class Success[T](Result[T]):
    """A successful outcome carrying ``value`` (None for payload-less commands)."""

    _value: T = None  # type: ignore[assignment]

    @property
    def is_success(self) -> bool:
        return True

    @property
    def value(self) -> T:
        return self._value

    @property
    def error(self) -> NoReturn:
        msg = "Success has no error; check is_failure first"
        raise InvalidResultStateError(msg)

    def map[U](self, func: Callable[[T], U]) -> Result[U]:
        return Success(func(self._value))

    def bind[U](self, func: Callable[[T], Result[U]]) -> Result[U]:
        result = func(self._value)
        if not isinstance(result, Result):
            msg = f"bind() function must return a Result, got {type(result).__name__}"
            raise TypeError(msg)
        return result

    def map_error(self, func: Callable[[Error], Error]) -> Result[T]:
        return self

    def match[U](self, on_success: Callable[[T], U], on_failure: Callable[[Error], U]) -> U:
        return on_success(self._value)

    def unwrap_or(self, default: T) -> T:
        return self._value

    def __repr__(self) -> str:
        return f"Success({self._value!r})"


@dataclass(frozen=True, slots=True)
class Failure(Result[Any]):
    """A failed outcome carrying a structured :class:`Error`."""

    _error: Error

    @property
    def is_success(self) -> bool:
        return False

    @property
    def value(self) -> NoReturn:
        msg = f"Failure has no value ({self._error.kind}: {self._error.message})"
        raise InvalidResultStateError(msg)

    @property
    def error(self) -> Error:
        return self._error

    def map[U](self, func: Callable[[Any], U]) -> Result[U]:
        return self

    def bind[U](self, func: Callable[[Any], Result[U]]) -> Result[U]:
        return self

    def map_error(self, func: Callable[[Error], Error]) -> Result[Any]:
        return Failure(func(self._error))

    def match[U](self, on_success: Callable[[Any], U], on_failure: Callable[[Error], U]) -> U:
        return on_failure(self._error)

    def unwrap_or(self, default: Any) -> Any:
        return default

    def __repr__(self) -> str:
        return f"Failure({self._error.kind.value}: {self._error.message!r})"


def outcome_tag(result: Result[Any]) -> str:
    """Short outcome label for logs: ``success`` or ``failure:<kind>``."""
    if result.is_success:
        return "success"
    return f"failure:{result.error.kind.value}"
