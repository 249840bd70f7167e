"""Command: dispatch one request and print its Result."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import click
from pydantic import ValidationError

from relaykit.commands._base import RelayCommand
from relaykit.domain.errors import Error, HandlerNotFoundError
from relaykit.domain.result import Failure
from relaykit.infrastructure.validation import field_errors_from

if TYPE_CHECKING:
    from relaykit.commands._context import AppContext


@click.command(
    cls=RelayCommand,
    examples="""\
  relaykit send diagnostics.ping
  relaykit send diagnostics.ping --data '{"message": "hello"}'
  relaykit --json send diagnostics.stats --timeout 2""",
)
@click.argument("request_type")
@click.option("--data", "data", default="{}", help="Request fields as a JSON object.")
@click.option("--timeout", type=float, default=None, help="Deadline in seconds.")
@click.pass_obj
def send(app: AppContext, request_type: str, data: str, timeout: float | None) -> None:
    """Dispatch REQUEST_TYPE through the pipeline."""
    try:
        payload: Any = json.loads(data)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"not valid JSON: {exc}", param_hint="--data") from exc
    if not isinstance(payload, dict):
        raise click.BadParameter("must be a JSON object", param_hint="--data")

    mediator = app.mediator
    try:
        request_cls = mediator.registry.request_class(request_type)
    except HandlerNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc
    if request_cls is None or not hasattr(request_cls, "model_validate"):
        msg = f"Request type {request_type!r} cannot be built from JSON"
        raise click.ClickException(msg)

    try:
        request = request_cls.model_validate(payload)
    except ValidationError as exc:
        app.emit(Failure(Error.validation(field_errors_from(exc))), op=request_type)
        return

    app.emit(mediator.send(request, timeout=timeout), op=request_type)
