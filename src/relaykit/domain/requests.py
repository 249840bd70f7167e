"""Request, Command, Query, and DomainEvent base models.

Requests are frozen pydantic models. Each request class is identified by a
stable *request key*: its ``request_tag`` class attribute when set,
otherwise ``"<module>.<QualName>"``. The key (not the Python class object)
is what the registry indexes, so tags survive module moves and can be
addressed from the CLI.
"""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict


class Request(BaseModel):
    """Immutable input value dispatched through the mediator."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    request_tag: ClassVar[str] = ""


class Command(Request):
    """A request that changes state. May return ``Success(None)``."""


class Query(Request):
    """A request that reads state and returns a payload."""


class CacheableQuery(Query):
    """A query whose successful result may be served from the cache.

    Subclasses override :meth:`cache_key` when the default (request key plus
    field values) is not a good identity.
    """

    cache_ttl: ClassVar[float | None] = None

    def cache_key(self) -> str:
        fields = ",".join(f"{k}={v!r}" for k, v in sorted(self.model_dump().items()))
        return f"{request_key(type(self))}({fields})"


class DomainEvent(BaseModel):
    """Something that happened; published to zero or more event handlers."""

    model_config = ConfigDict(frozen=True)

    request_tag: ClassVar[str] = ""


def request_key(request_type: type[Any] | str) -> str:
    """Return the registry key for a request class (or pass a tag through)."""
    if isinstance(request_type, str):
        return request_type
    tag = getattr(request_type, "request_tag", "")
    if tag:
        return tag
    return f"{request_type.__module__}.{request_type.__qualname__}"
