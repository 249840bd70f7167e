"""Plugin discovery and loading.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints,
plus local directory discovery from ``.relaykit/plugins/``.
Capabilities: request/event handlers, named pipeline behaviors, and the
``post_dispatch`` lifecycle hook.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

import pluggy

from relaykit.domain.errors import RelayConfigurationError
from relaykit.plugins.hookspecs import RelayHookSpec

if TYPE_CHECKING:
    from relaykit.dispatch.behaviors import BehaviorFactory
    from relaykit.dispatch.registry import HandlerRegistry

PROJECT_NAME = "relaykit"
ENTRY_POINT_GROUP = "relaykit.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, loading, and hook dispatch."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(RelayHookSpec)
        self._loaded: bool = False

    def discover_and_load(
        self,
        *,
        local_dir: Path | None = None,
        disabled: Iterable[str] = (),
    ) -> list[str]:
        """Discover plugins from entry points and an optional local directory.

        Uses pluggy's native setuptools entry_point discovery for the
        ``relaykit.plugins`` group, then scans *local_dir* (typically
        ``.relaykit/plugins/``) for single-file Python plugins. Names in
        *disabled* are blocked before loading.

        Returns a list of loaded plugin names.
        """
        for name in disabled:
            self._pm.set_blocked(name)
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._normalize_plugin_instances()
        if local_dir is not None:
            self._discover_local(local_dir)
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly (e.g. built-in plugins)."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        """Unregister a plugin instance."""
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        """Whether discover_and_load() has been called."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        """Access the hook relay for dispatching events."""
        return self._pm.hook

    def get_plugins(self) -> list[object]:
        """Return all registered plugins."""
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        """Return names of all registered plugins."""
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    # ------------------------------------------------------------------
    # Setup-time collection
    # ------------------------------------------------------------------

    def collect_handlers(self, registry: HandlerRegistry) -> None:
        """Let every plugin register its handlers on *registry*.

        A plugin raising an ordinary exception is skipped with a warning.
        Configuration errors (duplicate registrations) are fatal and propagate.
        """
        for plugin in self._pm.get_plugins():
            plugin_name = self._pm.get_name(plugin) or plugin.__class__.__name__
            hook = getattr(plugin, "register_handlers", None)
            if hook is None:
                continue
            try:
                hook(registry=registry)
            except RelayConfigurationError:
                raise
            except Exception:
                logger.warning(
                    "Failed to collect handlers from plugin %s",
                    plugin_name,
                    exc_info=True,
                )

    def collect_behaviors(self, reserved: Iterable[str] = ()) -> dict[str, BehaviorFactory]:
        """Gather named behavior factories contributed by plugins.

        Names in *reserved* (the built-ins) and names already claimed by an
        earlier plugin are skipped with a warning.
        """
        taken = set(reserved)
        factories: dict[str, BehaviorFactory] = {}
        for plugin in self._pm.get_plugins():
            plugin_name = self._pm.get_name(plugin) or plugin.__class__.__name__
            hook = getattr(plugin, "register_behaviors", None)
            if hook is None:
                continue

            try:
                factory_map = hook()
            except Exception:
                logger.warning(
                    "Failed to collect behaviors from plugin %s",
                    plugin_name,
                    exc_info=True,
                )
                continue

            if factory_map is None:
                continue
            if not isinstance(factory_map, dict):
                logger.warning("Plugin %s returned non-dict behavior registrations", plugin_name)
                continue

            for name, factory in factory_map.items():
                if name in taken or not callable(factory):
                    logger.warning(
                        "Skipping behavior registration %r from plugin %s",
                        name,
                        plugin_name,
                    )
                    continue
                taken.add(name)
                factories[name] = factory
        return factories

    # ------------------------------------------------------------------
    # Local directory discovery
    # ------------------------------------------------------------------

    def _discover_local(self, local_dir: Path) -> None:
        """Scan *local_dir* for single-file Python plugins.

        Each ``*.py`` file (excluding ``_``-prefixed names) is loaded as a
        module. Classes inside the module that carry pluggy hookimpl-decorated
        methods are instantiated and registered.

        Errors are logged as warnings but never raised; a broken local plugin
        must not prevent the rest of the system from starting.
        """
        if not local_dir.is_dir():
            return

        for py_file in sorted(local_dir.glob("*.py")):
            if py_file.name.startswith("_"):
                continue
            module_name = f"relaykit_local_plugin_{py_file.stem}"
            try:
                spec = importlib.util.spec_from_file_location(module_name, py_file)
                if spec is None or spec.loader is None:
                    logger.warning("Could not create module spec for %s", py_file)
                    continue
                module = importlib.util.module_from_spec(spec)
                sys.modules[module_name] = module
                spec.loader.exec_module(module)
            except Exception:
                logger.warning("Failed to load local plugin %s", py_file, exc_info=True)
                sys.modules.pop(module_name, None)
                continue

            for _attr_name, obj in inspect.getmembers(module, inspect.isclass):
                if obj.__module__ != module_name:
                    continue
                if not self._has_hook_impls(obj):
                    continue
                try:
                    instance = obj()
                    self.register_plugin(instance, name=f"{module_name}.{obj.__name__}")
                except Exception:
                    logger.warning(
                        "Failed to instantiate plugin class %s from %s",
                        obj.__name__,
                        py_file,
                        exc_info=True,
                    )

    def _normalize_plugin_instances(self) -> None:
        """Replace registered plugin classes with instantiated objects.

        Entry-point loading may register a plugin class directly. Hook dispatch
        against class objects leaves ``self`` unbound and fails at runtime.
        """
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin):
                continue
            if not self._has_hook_impls(plugin):
                continue

            plugin_name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)

            try:
                instance = plugin()
            except Exception:
                logger.warning(
                    "Failed to instantiate entry-point plugin %s",
                    plugin_name,
                    exc_info=True,
                )
                continue

            self._pm.register(instance, name=plugin_name)
            logger.debug("Instantiated entry-point plugin: %s", plugin_name)

    @staticmethod
    def _has_hook_impls(cls: type) -> bool:
        """Check whether *cls* has any methods decorated with ``@hookimpl``.

        Pluggy's ``HookimplMarker("relaykit")`` sets a ``relaykit_impl``
        attribute on decorated methods.
        """
        for name in dir(cls):
            if name.startswith("_"):
                continue
            method = getattr(cls, name, None)
            if callable(method) and getattr(method, "relaykit_impl", None):
                return True
        return False
