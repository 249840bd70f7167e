"""Validators for the validation behavior.

Two flavours:

* :class:`RuleValidator` — a list of per-field predicates.
* :class:`PydanticValidator` — re-validates the request against a pydantic
  model that declares the constraints, mapping each ``ValidationError`` entry
  to a :class:`FieldError`.

Both report every failed field, never just the first.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError

from relaykit.domain.errors import FieldError


@dataclass(frozen=True, slots=True)
class Rule:
    """One field rule: *predicate* must return True for the request to pass."""

    field: str
    predicate: Callable[[Any], bool]
    message: str
    code: str = "invalid"

    def check(self, request: Any) -> FieldError | None:
        if self.predicate(request):
            return None
        return FieldError(field=self.field, message=self.message, code=self.code)


class RuleValidator:
    """Validator built from a list of :class:`Rule` objects.

    Usage::

        RuleValidator([
            Rule("total", lambda r: r.total > 0, "must be greater than zero"),
            Rule("customer_id", lambda r: r.customer_id > 0, "must be positive"),
        ])
    """

    def __init__(self, rules: Iterable[Rule] = ()) -> None:
        self._rules = list(rules)

    def rule(
        self,
        field: str,
        predicate: Callable[[Any], bool],
        message: str,
        *,
        code: str = "invalid",
    ) -> RuleValidator:
        """Append a rule; returns self for chaining."""
        self._rules.append(Rule(field, predicate, message, code))
        return self

    def validate(self, request: Any) -> list[FieldError]:
        errors: list[FieldError] = []
        for rule in self._rules:
            error = rule.check(request)
            if error is not None:
                errors.append(error)
        return errors

    def __len__(self) -> int:
        return len(self._rules)


class PydanticValidator:
    """Validate a request's fields against a constraint model."""

    def __init__(self, model_cls: type[BaseModel]) -> None:
        self._model_cls = model_cls

    def validate(self, request: Any) -> list[FieldError]:
        dump = getattr(request, "model_dump", None)
        data = dump() if callable(dump) else dict(vars(request))
        try:
            self._model_cls.model_validate(data)
        except ValidationError as exc:
            return field_errors_from(exc)
        return []


def field_errors_from(exc: ValidationError) -> list[FieldError]:
    """One FieldError per pydantic error entry, keyed by the dotted location."""
    return [
        FieldError(
            field=".".join(str(part) for part in err["loc"]) or "__root__",
            message=err["msg"],
            code=err["type"],
        )
        for err in exc.errors()
    ]
