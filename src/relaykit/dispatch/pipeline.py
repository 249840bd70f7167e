"""Pipeline — nests ordered behaviors around a terminal handler.

For behaviors ``[b0, b1, b2]`` and terminal ``h`` a call evaluates as::

    b0(req, ctx, next=lambda: b1(req, ctx, next=lambda: b2(req, ctx, next=lambda: h(req, ctx))))

The same ``ctx`` object reaches every behavior and the handler, so the
cancellation token and deadline are propagated unchanged.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from relaykit.dispatch.mediator import DispatchContext
    from relaykit.domain.result import Result

Next = Callable[[], "Result[Any]"]
Terminal = Callable[[Any, "DispatchContext"], "Result[Any]"]


class PipelineBehavior(Protocol):
    """Cross-cutting wrapper around request execution.

    A behavior may run logic before and/or after ``next_()``, or return a
    Failure without calling it to short-circuit the rest of the chain.
    """

    def __call__(self, request: Any, context: DispatchContext, next_: Next) -> Result[Any]: ...


def behavior_name(behavior: Any) -> str:
    """Display name for a behavior instance or function."""
    name = getattr(behavior, "name", None)
    if isinstance(name, str) and name:
        return name
    return getattr(behavior, "__name__", behavior.__class__.__name__)


class Pipeline:
    """An immutable, ordered behavior chain built once at startup."""

    def __init__(self, behaviors: Sequence[PipelineBehavior] = ()) -> None:
        self._behaviors: tuple[PipelineBehavior, ...] = tuple(behaviors)

    @property
    def behaviors(self) -> tuple[PipelineBehavior, ...]:
        return self._behaviors

    @property
    def names(self) -> list[str]:
        return [behavior_name(b) for b in self._behaviors]

    def invoke(self, request: Any, context: DispatchContext, terminal: Terminal) -> Result[Any]:
        """Run *request* through every behavior, outermost first, then *terminal*."""

        def step(index: int) -> Result[Any]:
            if index == len(self._behaviors):
                return terminal(request, context)
            return self._behaviors[index](request, context, lambda: step(index + 1))

        return step(0)

    def __len__(self) -> int:
        return len(self._behaviors)

    def __repr__(self) -> str:
        return f"Pipeline({' -> '.join(self.names) or 'empty'})"


def build_pipeline(behaviors: Sequence[PipelineBehavior]) -> Pipeline:
    return Pipeline(behaviors)
