"""Rich/JSON output helpers — the CLI's boundary mapping of Results.

The CLI renders a Result for humans (Rich text) or machines (--json) and
maps the error kind to a process exit code. ``STATUS_CODES`` offers the
equivalent HTTP mapping for web adapters.
"""

from __future__ import annotations

import json as _json
from collections.abc import Sequence
from typing import Any

from pydantic_core import to_jsonable_python
from rich.markup import escape
from rich.table import Table

from relaykit.domain.errors import ErrorKind
from relaykit.domain.result import Result
from relaykit.output.console import create_console, get_output

EXIT_CODES: dict[ErrorKind, int] = {
    ErrorKind.UNEXPECTED: 1,
    ErrorKind.NOT_FOUND: 3,
    ErrorKind.VALIDATION: 4,
    ErrorKind.CONFLICT: 5,
    ErrorKind.UNAUTHORIZED: 6,
    ErrorKind.FORBIDDEN: 7,
    ErrorKind.CANCELLED: 8,
}

STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.VALIDATION: 422,
    ErrorKind.CONFLICT: 409,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.CANCELLED: 499,
    ErrorKind.UNEXPECTED: 500,
}


def exit_code_for(result: Result[Any]) -> int:
    """0 for a success, otherwise the code mapped from the error kind."""
    if result.is_success:
        return 0
    return EXIT_CODES.get(result.error.kind, 1)


def result_to_dict(result: Result[Any], *, op: str) -> dict[str, Any]:
    """JSON-ready envelope: ``{ok, op, data}`` or ``{ok, op, error}``."""
    if result.is_success:
        return {"ok": True, "op": op, "data": to_jsonable_python(result.value)}
    return {"ok": False, "op": op, "error": result.error.model_dump(mode="json")}


def _format_data_human(data: Any) -> str:
    """Format result data as indented key-value pairs."""
    if not isinstance(data, dict):
        return f"  {_json.dumps(to_jsonable_python(data))}"
    lines: list[str] = []
    for key, value in data.items():
        if isinstance(value, (dict, list)):
            compact = _json.dumps(to_jsonable_python(value), separators=(",", ":"))
            lines.append(f"  {key}: {compact}")
        else:
            lines.append(f"  {key}: {value}")
    return "\n".join(lines)


def format_result(result: Result[Any], *, op: str, json_output: bool = False) -> str:
    """Format a Result for display.

    Args:
        result: The dispatch result to format.
        op: Operation label (usually the request type).
        json_output: If True, return JSON; otherwise return human-readable text.
    """
    if json_output:
        return _json.dumps(result_to_dict(result, op=op), indent=2)
    if result.is_success:
        parts = [f"OK: {op}"]
        if result.value is not None:
            parts.append(_format_data_human(to_jsonable_python(result.value)))
        return "\n".join(parts)

    error = result.error
    parts = [f"ERROR: {op} [{error.kind.value}] {error.message}"]
    parts.extend(f"  {fe.field}: {fe.message}" for fe in error.field_errors)
    return "\n".join(parts)


def format_handlers(
    keys: Sequence[str],
    behaviors: Sequence[str],
    *,
    json_output: bool = False,
) -> str:
    """Render registered request types and the pipeline order."""
    if json_output:
        return _json.dumps({"request_types": list(keys), "behaviors": list(behaviors)}, indent=2)

    console = create_console(no_color=True)
    order = " -> ".join(behaviors) or "(none)"
    console.print(f"[relay.key]pipeline:[/] [relay.behavior]{escape(order)}[/]")
    table = Table(show_header=True, header_style="relay.op", box=None)
    table.add_column("#", justify="right")
    table.add_column("request type", style="relay.type")
    for index, key in enumerate(keys, start=1):
        table.add_row(str(index), escape(key))
    console.print(table)
    return get_output(console).rstrip()
