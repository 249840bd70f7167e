"""Built-in pipeline behaviors: logging, validation, caching, transactions.

Each behavior has a ``name`` used by the ``[pipeline] behaviors`` setting.
BEHAVIOR_FACTORIES maps those names to constructors taking a
:class:`BehaviorDeps` bundle (registry, settings, collaborators).
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from relaykit.dispatch._helpers import now_iso, redact, request_payload
from relaykit.domain.errors import Error, FieldError
from relaykit.domain.requests import Command
from relaykit.domain.result import Failure, Result, outcome_tag

if TYPE_CHECKING:
    from relaykit.config.models import LoggingConfig
    from relaykit.dispatch.mediator import DispatchContext
    from relaykit.dispatch.pipeline import Next, PipelineBehavior
    from relaykit.dispatch.registry import HandlerRegistry
    from relaykit.domain.contracts import Cache, UnitOfWork

logger = logging.getLogger(__name__)

DEFAULT_REDACT_FIELDS = ("password", "secret", "token", "api_key", "authorization")


class LoggingBehavior:
    """Record type, timing, and outcome of every request.

    The request payload is only logged when *log_payload* is True, and then
    fields named in *redact_fields* are masked.
    """

    name = "logging"

    def __init__(
        self,
        *,
        log_payload: bool = False,
        redact_fields: Iterable[str] = DEFAULT_REDACT_FIELDS,
        logger_name: str = "relaykit.pipeline",
    ) -> None:
        self._log_payload = log_payload
        self._redact_fields = tuple(redact_fields)
        self._log = structlog.get_logger(logger_name)

    def __call__(self, request: Any, context: DispatchContext, next_: Next) -> Result[Any]:
        fields: dict[str, Any] = {
            "request_type": context.request_key,
            "request_id": context.request_id,
            "depth": context.depth,
        }
        started_at = now_iso()
        start = time.perf_counter()
        if self._log_payload:
            self._log.info(
                "request.started",
                started_at=started_at,
                payload=redact(request_payload(request), self._redact_fields),
                **fields,
            )
        else:
            self._log.info("request.started", started_at=started_at, **fields)

        try:
            result = next_()
        except Exception as exc:
            self._log.warning(
                "request.raised",
                started_at=started_at,
                finished_at=now_iso(),
                duration_ms=_elapsed_ms(start),
                exception_type=exc.__class__.__name__,
                **fields,
            )
            raise

        outcome = outcome_tag(result) if isinstance(result, Result) else "invalid"
        self._log.info(
            "request.completed",
            started_at=started_at,
            finished_at=now_iso(),
            duration_ms=_elapsed_ms(start),
            outcome=outcome,
            **fields,
        )
        return result


class ValidationBehavior:
    """Run every validator registered for the request; fail with all field errors.

    INVARIANT: On any failed rule the continuation is never invoked.
    """

    name = "validation"

    def __init__(self, validators_for: Callable[[str], Iterable[Any]]) -> None:
        self._validators_for = validators_for

    def __call__(self, request: Any, context: DispatchContext, next_: Next) -> Result[Any]:
        field_errors: list[FieldError] = []
        for validator in self._validators_for(context.request_key):
            field_errors.extend(validator.validate(request))

        if field_errors:
            logger.debug(
                "Validation rejected %s with %d field error(s)",
                context.request_key,
                len(field_errors),
            )
            return Failure(Error.validation(field_errors, request_type=context.request_key))
        return next_()


class _UncacheableResultError(Exception):
    """Carries a failure out of a cache factory so it is never stored."""

    def __init__(self, result: Result[Any]) -> None:
        super().__init__("uncacheable result")
        self.result = result


class CachingBehavior:
    """Serve queries exposing ``cache_key()`` from the cache. Only successes are cached."""

    name = "caching"

    def __init__(self, cache: Cache, *, default_ttl: float | None = 300.0) -> None:
        self._cache = cache
        self._default_ttl = default_ttl

    def __call__(self, request: Any, context: DispatchContext, next_: Next) -> Result[Any]:
        key_fn = getattr(request, "cache_key", None)
        if not callable(key_fn):
            return next_()

        context.checkpoint()
        ttl = getattr(request, "cache_ttl", None)
        if ttl is None:
            ttl = self._default_ttl

        def factory() -> Result[Any]:
            result = next_()
            if not isinstance(result, Result) or result.is_failure:
                raise _UncacheableResultError(result)
            return result

        try:
            return self._cache.get_or_set(key_fn(), factory, ttl)
        except _UncacheableResultError as exc:
            return exc.result


class TransactionBehavior:
    """Commit the unit of work after a successful command; roll back otherwise.

    Queries pass straight through.
    """

    name = "transaction"

    def __init__(self, unit_of_work: UnitOfWork) -> None:
        self._uow = unit_of_work

    def __call__(self, request: Any, context: DispatchContext, next_: Next) -> Result[Any]:
        if not isinstance(request, Command):
            return next_()

        try:
            result = next_()
        except Exception:
            self._uow.rollback()
            raise

        if not isinstance(result, Result) or result.is_failure:
            self._uow.rollback()
            return result

        try:
            context.checkpoint()
            written = self._uow.save_changes()
        except Exception:
            self._uow.rollback()
            raise
        logger.debug("Committed %d change(s) for %s", written, context.request_key)
        return result


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 3)


# ---------------------------------------------------------------------------
# Named factories (used by bootstrap to honour the configured order)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BehaviorDeps:
    """Everything a behavior factory may need to build its behavior."""

    registry: HandlerRegistry
    logging_config: LoggingConfig
    cache: Cache | None = None
    cache_ttl: float | None = 300.0
    unit_of_work: UnitOfWork | None = None


BehaviorFactory = Callable[[BehaviorDeps], "PipelineBehavior"]


def _logging_factory(deps: BehaviorDeps) -> PipelineBehavior:
    return LoggingBehavior(
        log_payload=deps.logging_config.log_payload,
        redact_fields=deps.logging_config.redact_fields,
    )


def _validation_factory(deps: BehaviorDeps) -> PipelineBehavior:
    return ValidationBehavior(deps.registry.validators_for)


def _caching_factory(deps: BehaviorDeps) -> PipelineBehavior:
    if deps.cache is None:
        from relaykit.infrastructure.cache import MemoryCache

        return CachingBehavior(MemoryCache(), default_ttl=deps.cache_ttl)
    return CachingBehavior(deps.cache, default_ttl=deps.cache_ttl)


def _transaction_factory(deps: BehaviorDeps) -> PipelineBehavior:
    if deps.unit_of_work is None:
        from relaykit.domain.errors import RelayConfigurationError

        msg = "The 'transaction' behavior needs a unit_of_work collaborator"
        raise RelayConfigurationError(msg)
    return TransactionBehavior(deps.unit_of_work)


BEHAVIOR_FACTORIES: dict[str, BehaviorFactory] = {
    "logging": _logging_factory,
    "validation": _validation_factory,
    "caching": _caching_factory,
    "transaction": _transaction_factory,
}
