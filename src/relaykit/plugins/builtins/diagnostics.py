"""Built-in diagnostics plugin.

Registers two queries useful for smoke-testing a deployment:

* ``diagnostics.ping`` echoes a message back.
* ``diagnostics.stats`` reports per-request-type outcome counters,
  collected through the ``post_dispatch`` hook.
"""

from __future__ import annotations

import threading
from collections import Counter
from typing import TYPE_CHECKING, Any, ClassVar

import pluggy
from pydantic import Field

from relaykit.domain.requests import Query
from relaykit.domain.result import Result, Success
from relaykit.infrastructure.validation import Rule, RuleValidator

if TYPE_CHECKING:
    from relaykit.dispatch.mediator import DispatchContext
    from relaykit.dispatch.registry import HandlerRegistry

hookimpl = pluggy.HookimplMarker("relaykit")


class Ping(Query):
    """Round-trip check through the full pipeline."""

    request_tag: ClassVar[str] = "diagnostics.ping"

    message: str = "pong"


class DispatchStats(Query):
    """Outcome counters since the process started."""

    request_tag: ClassVar[str] = "diagnostics.stats"

    request_type: str | None = Field(default=None, description="Limit to one request type.")


class DiagnosticsPlugin:
    """Registers the diagnostics queries and tracks dispatch outcomes."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: dict[str, Counter[str]] = {}

    @hookimpl
    def register_handlers(self, registry: HandlerRegistry) -> None:
        registry.register(Ping, self._ping)
        registry.register_validator(
            Ping,
            RuleValidator([Rule("message", lambda r: bool(r.message.strip()), "must not be blank")]),
        )
        registry.register(DispatchStats, self._stats)

    @hookimpl
    def post_dispatch(self, request_type: str, outcome: str, duration_ms: float) -> None:
        with self._lock:
            self._counts.setdefault(request_type, Counter())[outcome] += 1

    def _ping(self, request: Ping, context: DispatchContext) -> Result[dict[str, Any]]:
        return Success({"reply": request.message, "request_id": context.request_id})

    def _stats(self, request: DispatchStats, context: DispatchContext) -> Result[dict[str, Any]]:
        with self._lock:
            snapshot = {key: dict(counter) for key, counter in self._counts.items()}
        if request.request_type is not None:
            snapshot = {k: v for k, v in snapshot.items() if k == request.request_type}
        return Success({"counts": snapshot})
