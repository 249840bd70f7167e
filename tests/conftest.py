"""Shared pytest fixtures for relaykit tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog
from click.testing import CliRunner

from relaykit.config.settings import RelaySettings
from relaykit.dispatch.registry import HandlerRegistry


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def registry() -> HandlerRegistry:
    """Fresh, unfrozen handler registry."""
    return HandlerRegistry()


@pytest.fixture
def project_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Temporary project directory with no config and no ``RELAYKIT_*`` env vars."""
    monkeypatch.delenv("RELAYKIT_CONFIG", raising=False)
    monkeypatch.delenv("RELAYKIT_PIPELINE__BEHAVIORS", raising=False)
    return tmp_path


@pytest.fixture
def settings(project_root: Path) -> RelaySettings:
    """Default settings rooted at a temporary directory."""
    return RelaySettings.load(project_root=project_root)


@pytest.fixture
def _isolated_project(project_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp project root so the CLI finds no stray config.

    Use via ``@pytest.mark.usefixtures("_isolated_project")`` on command test
    classes.
    """
    monkeypatch.chdir(project_root)


@pytest.fixture
def _restore_logging() -> Generator[None]:
    """Undo ``configure_logging`` side effects made by CLI invocations."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    relay = logging.getLogger("relaykit")
    relay_level = relay.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    relay.setLevel(relay_level)
    structlog.reset_defaults()
