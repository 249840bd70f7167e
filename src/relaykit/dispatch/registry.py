"""HandlerRegistry — request key to handler lookup table.

Populated during a single-threaded bootstrap phase, then frozen.
INVARIANT: Exactly one handler per request key; zero or more validators and
event handlers per key. After :meth:`HandlerRegistry.freeze` every table is a
read-only mapping, so concurrent reads need no locking.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from relaykit.domain.errors import (
    DuplicateRegistrationError,
    HandlerNotFoundError,
    RegistryFrozenError,
    RelayConfigurationError,
)
from relaykit.domain.requests import request_key

if TYPE_CHECKING:
    from relaykit.dispatch.mediator import DispatchContext
    from relaykit.domain.contracts import Validator
    from relaykit.domain.result import Result

logger = logging.getLogger(__name__)

HandlerFn = Callable[[Any, "DispatchContext"], "Result[Any]"]


def as_handler_fn(handler: Any) -> HandlerFn:
    """Normalize a handler object (``.handle`` method) or callable to a function."""
    handle = getattr(handler, "handle", None)
    if callable(handle):
        return handle
    if callable(handler):
        return handler
    msg = f"Handler must be callable or expose handle(request, context), got {handler!r}"
    raise TypeError(msg)


@dataclass(frozen=True, slots=True)
class Registration:
    """One bound request key.

    Exactly one of ``handler`` / ``factory`` is set. A factory is invoked on
    every dispatch to build a fresh handler.
    """

    key: str
    request_class: type[Any] | None
    handler: HandlerFn | None = None
    factory: Callable[[], Any] | None = None

    def build(self) -> HandlerFn:
        if self.handler is not None:
            return self.handler
        if self.factory is None:
            msg = f"Registration for {self.key} has neither a handler nor a factory"
            raise RelayConfigurationError(msg)
        return as_handler_fn(self.factory())


class HandlerRegistry:
    """Process-wide table of request handlers, validators, and event handlers.

    Usage::

        registry = HandlerRegistry()
        registry.register(CreateOrder, CreateOrderHandler(repo))
        registry.register_validator(CreateOrder, order_rules)
        registry.freeze()
    """

    def __init__(self) -> None:
        self._handlers: dict[str, Registration] | Mapping[str, Registration] = {}
        self._validators: dict[str, list[Validator]] | Mapping[str, Sequence[Validator]] = {}
        self._event_handlers: dict[str, list[HandlerFn]] | Mapping[str, Sequence[HandlerFn]] = {}
        self._frozen = False

    # ------------------------------------------------------------------
    # Registration (bootstrap phase only)
    # ------------------------------------------------------------------

    def register(
        self,
        request_type: type[Any] | str,
        handler: Any = None,
        *,
        factory: Callable[[], Any] | None = None,
    ) -> None:
        """Bind *request_type* to a handler instance or a per-call factory.

        Raises:
            DuplicateRegistrationError: The key is already bound.
            RegistryFrozenError: Called after :meth:`freeze`.
        """
        self._check_mutable()
        if (handler is None) == (factory is None):
            msg = "register() needs exactly one of handler or factory"
            raise TypeError(msg)

        key = request_key(request_type)
        if key in self._handlers:
            raise DuplicateRegistrationError(key)

        request_class = None if isinstance(request_type, str) else request_type
        registration = Registration(
            key=key,
            request_class=request_class,
            handler=as_handler_fn(handler) if handler is not None else None,
            factory=factory,
        )
        self._handlers[key] = registration  # type: ignore[index]
        logger.debug("Registered handler for %s", key)

    def register_validator(self, request_type: type[Any] | str, validator: Validator) -> None:
        """Append *validator* to the rules checked for *request_type*."""
        self._check_mutable()
        key = request_key(request_type)
        self._validators.setdefault(key, []).append(validator)  # type: ignore[union-attr]

    def register_event_handler(self, event_type: type[Any] | str, handler: Any) -> None:
        """Append *handler* to the subscribers of *event_type* (fan-out)."""
        self._check_mutable()
        key = request_key(event_type)
        self._event_handlers.setdefault(key, []).append(as_handler_fn(handler))  # type: ignore[union-attr]
        logger.debug("Registered event handler for %s", key)

    def freeze(self) -> None:
        """End the bootstrap phase. Idempotent."""
        if self._frozen:
            return
        self._handlers = MappingProxyType(dict(self._handlers))
        self._validators = MappingProxyType({k: tuple(v) for k, v in self._validators.items()})
        self._event_handlers = MappingProxyType(
            {k: tuple(v) for k, v in self._event_handlers.items()}
        )
        self._frozen = True

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    # ------------------------------------------------------------------
    # Lookup (hot path)
    # ------------------------------------------------------------------

    def lookup(self, request_type: type[Any] | str) -> Registration:
        """Return the registration for *request_type* without building a handler.

        Raises:
            HandlerNotFoundError: Nothing is registered for the key.
        """
        key = request_key(request_type)
        registration = self._handlers.get(key)
        if registration is None:
            raise HandlerNotFoundError(key)
        return registration

    def resolve(self, request_type: type[Any] | str) -> HandlerFn:
        """Return the handler bound to *request_type*, running its factory if any."""
        return self.lookup(request_type).build()

    def validators_for(self, request_type: type[Any] | str) -> Sequence[Validator]:
        return self._validators.get(request_key(request_type), ())

    def event_handlers_for(self, event_type: type[Any] | str) -> Sequence[HandlerFn]:
        return self._event_handlers.get(request_key(event_type), ())

    def request_class(self, key: str) -> type[Any] | None:
        """The request class registered under *key* (None for tag-only registrations)."""
        registration = self._handlers.get(key)
        if registration is None:
            raise HandlerNotFoundError(key)
        return registration.request_class

    def registered_keys(self) -> list[str]:
        return sorted(self._handlers)

    def __contains__(self, request_type: object) -> bool:
        if not isinstance(request_type, (str, type)):
            return False
        return request_key(request_type) in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def _check_mutable(self) -> None:
        if self._frozen:
            msg = "Registry is frozen; register handlers during bootstrap"
            raise RegistryFrozenError(msg)
