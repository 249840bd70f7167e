"""Tests for the send command."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from relaykit.cli import cli


@pytest.mark.usefixtures("_isolated_project", "_restore_logging")
class TestSendCommand:
    def test_ping(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["send", "diagnostics.ping", "--data", '{"message": "hi"}'])
        assert result.exit_code == 0
        assert "OK: diagnostics.ping" in result.output
        assert "reply: hi" in result.output

    def test_json_envelope(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "send", "diagnostics.ping"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["ok"] is True
        assert data["op"] == "diagnostics.ping"
        assert data["data"]["reply"] == "pong"

    def test_validation_failure_exit_code(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["send", "diagnostics.ping", "--data", '{"message": " "}'])
        assert result.exit_code == 4
        assert "[validation]" in result.output
        assert "message: must not be blank" in result.output

    def test_schema_error_reported_as_validation(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["send", "diagnostics.ping", "--data", '{"bogus": 1}'])
        assert result.exit_code == 4
        assert "bogus" in result.output

    def test_unknown_request_type(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["send", "nope.missing"])
        assert result.exit_code == 1
        assert "No handler registered for request type 'nope.missing'" in result.output

    @pytest.mark.parametrize("data", ["{not json", "[1, 2]"])
    def test_bad_data(self, cli_runner: CliRunner, data: str) -> None:
        result = cli_runner.invoke(cli, ["send", "diagnostics.ping", "--data", data])
        assert result.exit_code == 2
        assert "--data" in result.output

    def test_timeout_option_accepted(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["send", "diagnostics.stats", "--timeout", "5"])
        assert result.exit_code == 0
        assert "OK: diagnostics.stats" in result.output
