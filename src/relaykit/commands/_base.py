"""Click base classes for relaykit commands.

``relaykit send --examples`` prints canned invocations (request tags such as
``diagnostics.ping`` with ``--data`` payloads) instead of dispatching, and
exits 0 before the mediator is ever bootstrapped. Commands opt in by passing
``examples=`` to ``@click.command(cls=RelayCommand)``. Subcommands of a
:class:`RelayGroup` such as ``relaykit config`` get the same option by default.
"""

from __future__ import annotations

from typing import Any

import click


def _add_examples_option(cmd: click.Command | click.Group, examples: str) -> None:
    """Add ``--examples``; eager, so the flag short-circuits argument parsing
    and runs before any callback that would build the mediator.
    """

    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class RelayCommand(click.Command):
    """A relaykit subcommand (``send``, ``handlers``, ``config show``) with ``--examples``."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


class RelayGroup(click.Group):
    """A relaykit command group (``relaykit config``) with ``--examples``.

    ``command_class = RelayCommand`` lets ``@group.command(examples=...)``
    declare examples without ``cls=``.
    """

    command_class = RelayCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)
