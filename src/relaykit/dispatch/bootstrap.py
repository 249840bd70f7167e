"""Bootstrap — assemble a Mediator from settings, plugins, and app code.

This is the single-threaded initialization phase: handlers are registered,
behaviors are built in the configured order, and the registry is frozen
before the mediator is handed out.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING

from relaykit.dispatch.behaviors import BEHAVIOR_FACTORIES, BehaviorDeps, BehaviorFactory
from relaykit.dispatch.mediator import Mediator
from relaykit.dispatch.pipeline import build_pipeline
from relaykit.dispatch.registry import HandlerRegistry
from relaykit.domain.errors import UnknownBehaviorError
from relaykit.infrastructure.cache import MemoryCache

if TYPE_CHECKING:
    from relaykit.config.settings import RelaySettings
    from relaykit.domain.contracts import Cache, UnitOfWork
    from relaykit.plugins.manager import PluginManager

logger = logging.getLogger(__name__)

BUILTIN_DIAGNOSTICS = "diagnostics-builtin"


def build_mediator(
    settings: RelaySettings | None = None,
    *,
    register: Callable[[HandlerRegistry], None] | None = None,
    registry: HandlerRegistry | None = None,
    plugin_manager: PluginManager | None = None,
    discover_plugins: bool = True,
    behaviors: Mapping[str, BehaviorFactory] | None = None,
    cache: Cache | None = None,
    unit_of_work: UnitOfWork | None = None,
) -> Mediator:
    """Build a ready-to-use, frozen Mediator.

    Args:
        settings: Resolved settings; loaded via walk-up discovery when None.
        register: Application callback registering its own handlers.
        registry: Pre-populated registry to extend (a fresh one by default).
        plugin_manager: Manager to use; a new one is created when None.
        discover_plugins: Load entry-point and local-directory plugins.
        behaviors: Extra named behavior factories (override plugin ones).
        cache: Collaborator for the ``caching`` behavior.
        unit_of_work: Collaborator for the ``transaction`` behavior.

    Raises:
        UnknownBehaviorError: A configured behavior name has no factory.
        DuplicateRegistrationError: Two sources registered the same request type.
    """
    if settings is None:
        from relaykit.config.settings import RelaySettings

        settings = RelaySettings.load()

    registry = registry if registry is not None else HandlerRegistry()
    pm = plugin_manager if plugin_manager is not None else _default_plugin_manager(settings)
    if discover_plugins and not pm.is_loaded:
        pm.discover_and_load(local_dir=settings.plugin_dir, disabled=settings.plugins.disabled)

    if register is not None:
        register(registry)
    pm.collect_handlers(registry)

    factories: dict[str, BehaviorFactory] = dict(BEHAVIOR_FACTORIES)
    factories.update(pm.collect_behaviors(reserved=BEHAVIOR_FACTORIES))
    if behaviors:
        factories.update(behaviors)

    if cache is None:
        cache = MemoryCache(
            max_entries=settings.cache.max_entries,
            default_ttl=settings.cache.default_ttl_seconds,
        )
    deps = BehaviorDeps(
        registry=registry,
        logging_config=settings.logging,
        cache=cache,
        cache_ttl=settings.cache.default_ttl_seconds,
        unit_of_work=unit_of_work,
    )

    pipeline_behaviors = []
    for name in settings.pipeline.behaviors:
        factory = factories.get(name)
        if factory is None:
            raise UnknownBehaviorError(name, factories)
        pipeline_behaviors.append(factory(deps))

    mediator = Mediator(
        registry,
        build_pipeline(pipeline_behaviors),
        plugin_manager=pm,
        max_depth=settings.dispatch.max_depth,
        default_timeout=settings.dispatch.default_timeout_seconds,
    )
    logger.debug(
        "Mediator ready: %d handler(s), pipeline %s",
        len(registry),
        mediator.pipeline,
    )
    return mediator


def _default_plugin_manager(settings: RelaySettings) -> PluginManager:
    """A PluginManager with the built-in diagnostics plugin (unless disabled)."""
    from relaykit.plugins.builtins.diagnostics import DiagnosticsPlugin
    from relaykit.plugins.manager import PluginManager

    pm = PluginManager()
    if BUILTIN_DIAGNOSTICS not in settings.plugins.disabled:
        pm.register_plugin(DiagnosticsPlugin(), name=BUILTIN_DIAGNOSTICS)
    return pm
