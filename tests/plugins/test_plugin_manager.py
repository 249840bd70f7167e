"""Tests for PluginManager — discovery, registration, and hook relay."""

from __future__ import annotations

from pathlib import Path
from typing import Any, ClassVar

import pluggy
import pytest

from relaykit.dispatch.registry import HandlerRegistry
from relaykit.domain.errors import DuplicateRegistrationError
from relaykit.domain.requests import Query
from relaykit.domain.result import Success
from relaykit.plugins.manager import PluginManager

hookimpl = pluggy.HookimplMarker("relaykit")


class Echo(Query):
    request_tag: ClassVar[str] = "test.echo"

    text: str


class _EchoPlugin:
    @hookimpl
    def register_handlers(self, registry: HandlerRegistry) -> None:
        registry.register(Echo, lambda r, c: Success(r.text))


class _BrokenPlugin:
    @hookimpl
    def register_handlers(self, registry: HandlerRegistry) -> None:
        raise RuntimeError("plugin bug")


class _BehaviorPlugin:
    def __init__(self, names: dict[str, Any]) -> None:
        self._names = names

    @hookimpl
    def register_behaviors(self) -> dict[str, Any]:
        return self._names


class _BadBehaviorPlugin:
    @hookimpl
    def register_behaviors(self) -> Any:
        return ["not", "a", "dict"]


def _noop_factory(deps: Any) -> Any:
    return lambda request, context, next_: next_()


class TestPluginManager:
    """Tests for the PluginManager class."""

    def test_hook_relay_accessible(self):
        pm = PluginManager()
        assert hasattr(pm.hook, "register_handlers")
        assert hasattr(pm.hook, "register_behaviors")
        assert hasattr(pm.hook, "post_dispatch")

    def test_register_plugin(self):
        pm = PluginManager()
        plugin = _EchoPlugin()
        pm.register_plugin(plugin, name="echo")
        assert "echo" in pm.list_plugin_names()
        assert plugin in pm.get_plugins()

    def test_default_name_is_class_name(self):
        pm = PluginManager()
        pm.register_plugin(_EchoPlugin())
        assert pm.list_plugin_names() == ["_EchoPlugin"]

    def test_unregister(self):
        pm = PluginManager()
        plugin = _EchoPlugin()
        pm.register_plugin(plugin)
        pm.unregister(plugin)
        assert pm.get_plugins() == []

    def test_discover_and_load_marks_loaded(self, tmp_path: Path):
        pm = PluginManager()
        assert not pm.is_loaded
        pm.discover_and_load(local_dir=tmp_path / "missing")
        assert pm.is_loaded

    def test_disabled_names_blocked(self):
        pm = PluginManager()
        pm.discover_and_load(disabled=["echo"])
        pm.register_plugin(_EchoPlugin(), name="echo")
        assert "echo" not in pm.list_plugin_names()


class TestCollectHandlers:
    def test_plugins_register_handlers(self, registry: HandlerRegistry):
        pm = PluginManager()
        pm.register_plugin(_EchoPlugin())
        pm.collect_handlers(registry)
        assert registry.resolve(Echo)(Echo(text="hi"), None) == Success("hi")

    def test_broken_plugin_is_a_warning(
        self, registry: HandlerRegistry, caplog: pytest.LogCaptureFixture
    ):
        pm = PluginManager()
        pm.register_plugin(_BrokenPlugin())
        pm.register_plugin(_EchoPlugin())
        pm.collect_handlers(registry)
        assert Echo in registry
        assert "Failed to collect handlers from plugin _BrokenPlugin" in caplog.text

    def test_duplicate_registration_propagates(self, registry: HandlerRegistry):
        pm = PluginManager()
        pm.register_plugin(_EchoPlugin(), name="first")
        pm.register_plugin(_EchoPlugin(), name="second")
        with pytest.raises(DuplicateRegistrationError):
            pm.collect_handlers(registry)


class TestCollectBehaviors:
    def test_collects_named_factories(self):
        pm = PluginManager()
        pm.register_plugin(_BehaviorPlugin({"audit": _noop_factory}))
        assert pm.collect_behaviors() == {"audit": _noop_factory}

    def test_reserved_and_duplicate_names_skipped(self, caplog: pytest.LogCaptureFixture):
        pm = PluginManager()
        pm.register_plugin(_BehaviorPlugin({"logging": _noop_factory}), name="a")
        pm.register_plugin(_BehaviorPlugin({"audit": _noop_factory}), name="b")
        pm.register_plugin(_BehaviorPlugin({"audit": _noop_factory}), name="c")
        factories = pm.collect_behaviors(reserved=["logging"])
        assert list(factories) == ["audit"]
        assert "Skipping behavior registration 'logging'" in caplog.text

    def test_non_callable_skipped(self):
        pm = PluginManager()
        pm.register_plugin(_BehaviorPlugin({"audit": "nope"}))
        assert pm.collect_behaviors() == {}

    def test_non_dict_return_ignored(self, caplog: pytest.LogCaptureFixture):
        pm = PluginManager()
        pm.register_plugin(_BadBehaviorPlugin())
        assert pm.collect_behaviors() == {}
        assert "non-dict" in caplog.text


# -- Local directory discovery -------------------------------------------------

_VALID_PLUGIN_SRC = """\
import pluggy

hookimpl = pluggy.HookimplMarker("relaykit")

calls: list[str] = []


class OutcomeTap:
    \"\"\"Records every dispatch outcome.\"\"\"

    @hookimpl
    def post_dispatch(self, request_type: str, outcome: str, duration_ms: float) -> None:
        calls.append(outcome)
"""

_SYNTAX_ERROR_SRC = """\
def broken(
    # missing closing paren and colon
"""

_NO_HOOKS_SRC = """\
class PlainClass:
    def hello(self) -> str:
        return "world"
"""


class TestLocalDiscovery:
    def test_loads_valid_plugin(self, tmp_path: Path):
        (tmp_path / "tap.py").write_text(_VALID_PLUGIN_SRC)
        pm = PluginManager()
        names = pm.discover_and_load(local_dir=tmp_path)
        assert "relaykit_local_plugin_tap.OutcomeTap" in names

        pm.hook.post_dispatch(request_type="x", outcome="success", duration_ms=1.0)
        plugin = pm.get_plugins()[0]
        assert type(plugin).__name__ == "OutcomeTap"

    def test_syntax_error_is_skipped(self, tmp_path: Path, caplog: pytest.LogCaptureFixture):
        (tmp_path / "broken.py").write_text(_SYNTAX_ERROR_SRC)
        (tmp_path / "tap_ok.py").write_text(_VALID_PLUGIN_SRC)
        pm = PluginManager()
        names = pm.discover_and_load(local_dir=tmp_path)
        assert names == ["relaykit_local_plugin_tap_ok.OutcomeTap"]
        assert "Failed to load local plugin" in caplog.text

    def test_classes_without_hooks_ignored(self, tmp_path: Path):
        (tmp_path / "plain.py").write_text(_NO_HOOKS_SRC)
        pm = PluginManager()
        assert pm.discover_and_load(local_dir=tmp_path) == []

    def test_underscore_files_skipped(self, tmp_path: Path):
        (tmp_path / "_private.py").write_text(_VALID_PLUGIN_SRC)
        pm = PluginManager()
        assert pm.discover_and_load(local_dir=tmp_path) == []
