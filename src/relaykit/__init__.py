"""relaykit — in-process mediator with composable pipeline behaviors."""

from relaykit.dispatch.bootstrap import build_mediator
from relaykit.dispatch.cancellation import CancellationToken
from relaykit.dispatch.mediator import DispatchContext, Mediator
from relaykit.dispatch.registry import HandlerRegistry
from relaykit.domain.errors import Error, ErrorKind, FieldError
from relaykit.domain.requests import Command, DomainEvent, Query, Request
from relaykit.domain.result import Failure, Result, Success

__version__ = "0.1.0"

__all__ = [
    "CancellationToken",
    "Command",
    "DispatchContext",
    "DomainEvent",
    "Error",
    "ErrorKind",
    "Failure",
    "FieldError",
    "HandlerRegistry",
    "Mediator",
    "Query",
    "Request",
    "Result",
    "Success",
    "__version__",
    "build_mediator",
]
