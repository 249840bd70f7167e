"""Shared dispatch-layer helper functions."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

REDACTED = "***"


def now_iso() -> str:
    """Current UTC time as standard ISO 8601 (for log timestamps)."""
    return datetime.now(UTC).isoformat()


def request_payload(request: Any) -> dict[str, Any]:
    """Best-effort field dump of a request for logging."""
    dump = getattr(request, "model_dump", None)
    if callable(dump):
        return dump(mode="json")
    return dict(getattr(request, "__dict__", {}))


def redact(payload: dict[str, Any], fields: Iterable[str]) -> dict[str, Any]:
    """Replace sensitive values with ``***``. Matching is case-insensitive.

    Nested mappings are scrubbed, including those inside lists and tuples.

    Examples:
        >>> redact({"user": "ann", "Password": "x"}, ["password"])
        {'user': 'ann', 'Password': '***'}
        >>> redact({"auth": {"token": "t", "ok": 1}}, ["token"])
        {'auth': {'token': '***', 'ok': 1}}
        >>> redact({"users": [{"name": "ann", "token": "t"}]}, ["token"])
        {'users': [{'name': 'ann', 'token': '***'}]}
    """
    return _scrub(payload, {f.lower() for f in fields})


def _scrub(value: Any, sensitive: set[str]) -> Any:
    if isinstance(value, dict):
        return {
            key: REDACTED if str(key).lower() in sensitive else _scrub(item, sensitive)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return type(value)(_scrub(item, sensitive) for item in value)
    return value
