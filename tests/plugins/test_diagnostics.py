"""Tests for the built-in diagnostics plugin."""

from __future__ import annotations

from relaykit.config.settings import RelaySettings
from relaykit.dispatch.bootstrap import build_mediator
from relaykit.dispatch.registry import HandlerRegistry
from relaykit.domain.errors import ErrorKind
from relaykit.plugins.builtins.diagnostics import DiagnosticsPlugin, DispatchStats, Ping


class TestDiagnosticsPlugin:
    def test_registers_queries(self, registry: HandlerRegistry) -> None:
        DiagnosticsPlugin().register_handlers(registry)
        assert "diagnostics.ping" in registry.registered_keys()
        assert "diagnostics.stats" in registry.registered_keys()
        assert len(registry.validators_for(Ping)) == 1

    def test_ping_round_trip(self, settings: RelaySettings) -> None:
        mediator = build_mediator(settings, discover_plugins=False)
        result = mediator.send(Ping())
        assert result.value["reply"] == "pong"
        assert len(result.value["request_id"]) == 32

    def test_blank_ping_rejected(self, settings: RelaySettings) -> None:
        mediator = build_mediator(settings, discover_plugins=False)
        result = mediator.send(Ping(message=" "))
        assert result.error.kind == ErrorKind.VALIDATION
        assert result.error.field_errors[0].field == "message"

    def test_stats_count_outcomes(self, settings: RelaySettings) -> None:
        mediator = build_mediator(settings, discover_plugins=False)
        mediator.send(Ping())
        mediator.send(Ping())
        mediator.send(Ping(message=""))

        counts = mediator.send(DispatchStats(request_type="diagnostics.ping")).value["counts"]
        assert counts == {"diagnostics.ping": {"success": 2, "failure:validation": 1}}

    def test_stats_unfiltered(self) -> None:
        plugin = DiagnosticsPlugin()
        plugin.post_dispatch(request_type="a", outcome="success", duration_ms=1.0)
        plugin.post_dispatch(request_type="b", outcome="failure:not_found", duration_ms=1.0)
        result = plugin._stats(DispatchStats(), None)  # type: ignore[arg-type]
        assert result.value["counts"] == {
            "a": {"success": 1},
            "b": {"failure:not_found": 1},
        }
