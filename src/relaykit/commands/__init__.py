"""Subcommand modules for relaykit.

Provides register_commands() which uses deferred imports to keep
``relaykit --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register command groups and standalone commands on the root CLI group."""
    # --- Groups ---
    from relaykit.commands.config_cmd import config

    cli.add_command(config)

    # --- Standalone commands ---
    from relaykit.commands.handlers import handlers
    from relaykit.commands.send import send

    cli.add_command(handlers)
    cli.add_command(send)
