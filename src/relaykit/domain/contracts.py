"""Collaborator contracts consumed by handlers and behaviors.

The mediator never talks to storage or caches itself; handlers receive
implementations of these protocols through their own construction.
In-memory implementations live in :mod:`relaykit.infrastructure`.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from relaykit.domain.errors import FieldError
    from relaykit.domain.specification import Specification


@runtime_checkable
class Repository[E](Protocol):
    """Collection-like access to aggregates of one type."""

    def find_by_id(self, entity_id: Hashable) -> E | None: ...

    def add(self, entity: E) -> None: ...

    def remove(self, entity: E) -> None: ...

    def query(self, specification: Specification[E]) -> list[E]: ...


@runtime_checkable
class UnitOfWork(Protocol):
    """Transaction boundary around one or more repositories."""

    def save_changes(self) -> int:
        """Persist pending changes. Returns the number of changes written."""
        ...

    def rollback(self) -> None: ...


@runtime_checkable
class Cache(Protocol):
    """Key/value cache with lazy population."""

    def get_or_set(self, key: str, factory: Callable[[], Any], ttl: float | None = None) -> Any:
        """Return the cached value for *key*, computing it with *factory* on a miss."""
        ...

    def invalidate(self, key: str) -> None: ...


@runtime_checkable
class Validator(Protocol):
    """Checks one request and reports every failed field."""

    def validate(self, request: Any) -> Sequence[FieldError]: ...
