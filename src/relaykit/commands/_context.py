"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Provides lazy Mediator bootstrap and centralized
result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from relaykit.output.formatters import exit_code_for, format_result

if TYPE_CHECKING:
    from relaykit.config.settings import RelaySettings
    from relaykit.dispatch.mediator import Mediator
    from relaykit.domain.result import Result


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The mediator is built lazily on first use so ``--help`` and
    ``--version`` never trigger plugin discovery.
    """

    def __init__(self, settings: RelaySettings) -> None:
        self.settings = settings
        self._mediator: Mediator | None = None

        from relaykit.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def mediator(self) -> Mediator:
        """The mediator instance (bootstrapped on first access)."""
        if self._mediator is None:
            from relaykit.dispatch.bootstrap import build_mediator

            self._mediator = build_mediator(self.settings)
        return self._mediator

    def emit(self, result: Result[Any], *, op: str) -> None:
        """Format and output a Result with correct exit semantics.

        * Success: writes to stdout, returns normally.
        * Failure: writes to stderr, exits with the code mapped from the
          error kind.
        """
        output = format_result(result, op=op, json_output=self.settings.json_output)
        if result.is_success:
            click.echo(output)
        else:
            click.echo(output, err=True)
            raise SystemExit(exit_code_for(result))
