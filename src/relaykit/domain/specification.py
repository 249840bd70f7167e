"""Composable query predicates for :meth:`Repository.query`."""

from __future__ import annotations

from collections.abc import Callable


class Specification[E]:
    """A named predicate over entities, composable with ``&``, ``|`` and ``~``.

    Examples:
        >>> big = Specification(lambda o: o.total > 100, name="big")
        >>> mine = Specification(lambda o: o.customer_id == 7, name="mine")
        >>> (big & ~mine).name
        '(big and not mine)'
    """

    def __init__(self, predicate: Callable[[E], bool], *, name: str | None = None) -> None:
        self._predicate = predicate
        self.name = name or getattr(predicate, "__name__", "specification")

    def is_satisfied_by(self, candidate: E) -> bool:
        return bool(self._predicate(candidate))

    def __call__(self, candidate: E) -> bool:
        return self.is_satisfied_by(candidate)

    def __and__(self, other: Specification[E]) -> Specification[E]:
        return Specification(
            lambda c: self.is_satisfied_by(c) and other.is_satisfied_by(c),
            name=f"({self.name} and {other.name})",
        )

    def __or__(self, other: Specification[E]) -> Specification[E]:
        return Specification(
            lambda c: self.is_satisfied_by(c) or other.is_satisfied_by(c),
            name=f"({self.name} or {other.name})",
        )

    def __invert__(self) -> Specification[E]:
        return Specification(lambda c: not self.is_satisfied_by(c), name=f"not {self.name}")

    def __repr__(self) -> str:
        return f"Specification({self.name})"


def field_equals[E](field: str, expected: object) -> Specification[E]:
    """Specification matching entities whose attribute *field* equals *expected*."""
    return Specification(lambda c: getattr(c, field) == expected, name=f"{field}=={expected!r}")
