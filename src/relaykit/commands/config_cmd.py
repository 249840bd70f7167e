"""Command group: inspect resolved configuration."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import click

from relaykit.commands._base import RelayGroup

if TYPE_CHECKING:
    from relaykit.commands._context import AppContext

_SECTIONS = ("pipeline", "logging", "cache", "dispatch", "plugins")


@click.group(
    cls=RelayGroup,
    examples="""\
  relaykit config show
  relaykit --json config show
  relaykit -c ./relaykit.toml config show""",
)
def config() -> None:
    """Inspect relaykit configuration."""


@config.command()
@click.pass_obj
def show(app: AppContext) -> None:
    """Print the merged settings (TOML, env vars, and defaults)."""
    settings = app.settings
    data = {name: getattr(settings, name).model_dump(mode="json") for name in _SECTIONS}
    source = str(settings.config_path) if settings.config_path else None

    if settings.json_output:
        click.echo(json.dumps({"config_path": source, **data}, indent=2))
        return

    click.echo(f"config: {source or '(defaults)'}")
    for section, values in data.items():
        click.echo(f"[{section}]")
        for key, value in values.items():
            click.echo(f"  {key} = {json.dumps(value)}")
