"""Pluggy hook specifications for relaykit setup and dispatch events.

Two setup-time hooks let plugins contribute handlers and named pipeline
behaviors during bootstrap (before the registry is frozen). One lifecycle
hook is fired after every ``Mediator.send``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from relaykit.dispatch.behaviors import BehaviorFactory
    from relaykit.dispatch.registry import HandlerRegistry

hookspec = pluggy.HookspecMarker("relaykit")


class RelayHookSpec:
    """Hook specifications for the relaykit plugin system."""

    @hookspec
    def register_handlers(self, registry: HandlerRegistry) -> None:
        """Register request handlers, validators, and event handlers."""

    @hookspec
    def register_behaviors(self) -> dict[str, BehaviorFactory] | None:
        """Return behavior name -> factory mappings usable in ``[pipeline] behaviors``."""

    @hookspec
    def post_dispatch(
        self,
        request_type: str,
        outcome: str,
        duration_ms: float,
    ) -> None:
        """Called after every dispatched request with its outcome tag."""
