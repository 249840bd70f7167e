"""Command: list registered request types and the pipeline order."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from relaykit.commands._base import RelayCommand
from relaykit.output.formatters import format_handlers

if TYPE_CHECKING:
    from relaykit.commands._context import AppContext


@click.command(
    cls=RelayCommand,
    examples="""\
  relaykit handlers
  relaykit --json handlers""",
)
@click.pass_obj
def handlers(app: AppContext) -> None:
    """List registered request types and the behavior order."""
    mediator = app.mediator
    click.echo(
        format_handlers(
            mediator.registry.registered_keys(),
            mediator.behavior_names,
            json_output=app.settings.json_output,
        )
    )
