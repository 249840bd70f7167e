"""Mediator — the single entry point routing requests to handlers.

Flow of ``send``::

    caller -> Mediator.send(request)
           -> behaviors (outermost first)
           -> handler(request, context)
           -> Result back out through the behaviors -> caller

INVARIANT: ``send`` always returns exactly one Result. Expected failures and
unanticipated exceptions become Failure values; only configuration defects
(HandlerNotFoundError and friends) are raised.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from relaykit.dispatch.cancellation import CancellationToken
from relaykit.dispatch.pipeline import Pipeline
from relaykit.domain.errors import Error, OperationCancelledError, RelayConfigurationError
from relaykit.domain.requests import request_key
from relaykit.domain.result import Failure, Result, Success, outcome_tag

if TYPE_CHECKING:
    from relaykit.dispatch.registry import HandlerRegistry, Registration
    from relaykit.plugins.manager import PluginManager

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 32


@dataclass(frozen=True, slots=True)
class DispatchContext:
    """Per-call state shared by every behavior and the handler of one ``send``.

    Attributes:
        request_key: Registry key of the request being handled.
        request_id: Unique id of this dispatch (also bound into log context).
        cancellation: Token to check at I/O checkpoints.
        mediator: Dispatcher, for sub-requests via :meth:`send`.
        depth: Nesting level; 0 for a top-level call.
        parent_request_id: ``request_id`` of the dispatch that issued this one.
    """

    request_key: str
    request_id: str
    cancellation: CancellationToken
    mediator: Mediator
    depth: int = 0
    parent_request_id: str | None = None

    def send(self, request: Any, *, timeout: float | None = None) -> Result[Any]:
        """Dispatch a sub-request through the full pipeline with the same token."""
        return self.mediator._dispatch(request, self.cancellation, parent=self, timeout=timeout)

    def publish(self, event: Any) -> Result[int]:
        return self.mediator.publish(event, cancellation=self.cancellation)

    def checkpoint(self) -> None:
        """Raise OperationCancelledError if the call has been cancelled."""
        self.cancellation.raise_if_cancelled()


class Mediator:
    """Resolve handlers from a frozen registry and run them through the pipeline.

    Parameters:
        registry: Handler registry; frozen on construction.
        pipeline: Ordered behaviors applied to every ``send``.
        plugin_manager: Optional; receives ``post_dispatch`` notifications.
        max_depth: Maximum nesting of reentrant sub-requests.
        default_timeout: Deadline (seconds) applied to top-level calls that
            pass no explicit timeout.
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        pipeline: Pipeline | None = None,
        *,
        plugin_manager: PluginManager | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
        default_timeout: float | None = None,
    ) -> None:
        registry.freeze()
        self._registry = registry
        self._pipeline = pipeline or Pipeline()
        self._pm = plugin_manager
        self._max_depth = max_depth
        self._default_timeout = default_timeout

    @property
    def registry(self) -> HandlerRegistry:
        return self._registry

    @property
    def pipeline(self) -> Pipeline:
        return self._pipeline

    @property
    def behavior_names(self) -> list[str]:
        """Configured behavior order, outermost first."""
        return self._pipeline.names

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def send(
        self,
        request: Any,
        *,
        cancellation: CancellationToken | None = None,
        timeout: float | None = None,
    ) -> Result[Any]:
        """Dispatch *request* to its handler through every pipeline behavior.

        Raises:
            HandlerNotFoundError: No handler is registered for the request type.
        """
        token = cancellation if cancellation is not None else CancellationToken()
        if timeout is None:
            timeout = self._default_timeout
        return self._dispatch(request, token, parent=None, timeout=timeout)

    def publish(
        self,
        event: Any,
        *,
        cancellation: CancellationToken | None = None,
    ) -> Result[int]:
        """Deliver *event* to every registered event handler, in registration order.

        Returns ``Success(delivered_count)``, or the first failure with
        ``failed`` / ``delivered`` counts in its metadata. Every handler runs
        even when an earlier one fails; cancellation stops delivery.
        """
        key = request_key(type(event))
        token = cancellation if cancellation is not None else CancellationToken()
        context = DispatchContext(
            request_key=key,
            request_id=uuid.uuid4().hex,
            cancellation=token,
            mediator=self,
        )

        delivered = 0
        failures: list[Error] = []
        for handler in self._registry.event_handlers_for(key):
            if token.is_cancelled:
                reason = token.reason or "Operation was cancelled"
                return Failure(Error.cancelled(reason, delivered=delivered))
            try:
                outcome = handler(event, context)
            except OperationCancelledError as exc:
                return Failure(Error.cancelled(exc.reason, delivered=delivered))
            except RelayConfigurationError:
                raise
            except Exception as exc:
                logger.warning("Event handler for %s raised", key, exc_info=True)
                failures.append(Error.from_exception(exc))
                continue
            if isinstance(outcome, Result) and outcome.is_failure:
                failures.append(outcome.error)
                continue
            delivered += 1

        if failures:
            first = failures[0]
            metadata = {**first.metadata, "failed": len(failures), "delivered": delivered}
            return Failure(first.model_copy(update={"metadata": metadata}))
        return Success(delivered)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _dispatch(
        self,
        request: Any,
        token: CancellationToken,
        *,
        parent: DispatchContext | None,
        timeout: float | None,
    ) -> Result[Any]:
        key = request_key(type(request))
        registration = self._registry.lookup(key)

        if timeout is not None:
            token = token.with_timeout(timeout)
        context = DispatchContext(
            request_key=key,
            request_id=uuid.uuid4().hex,
            cancellation=token,
            mediator=self,
            depth=0 if parent is None else parent.depth + 1,
            parent_request_id=None if parent is None else parent.request_id,
        )

        start = time.perf_counter()
        if context.depth > self._max_depth:
            result: Result[Any] = Failure(
                Error.unexpected(
                    f"Maximum dispatch depth {self._max_depth} exceeded",
                    request_type=key,
                )
            )
        elif token.is_cancelled:
            result = Failure(
                Error.cancelled(token.reason or "Operation was cancelled", request_type=key)
            )
        else:
            with structlog.contextvars.bound_contextvars(request_id=context.request_id):
                result = self._run(request, context, registration)
        self._notify(key, result, (time.perf_counter() - start) * 1000)
        return result

    def _run(
        self, request: Any, context: DispatchContext, registration: Registration
    ) -> Result[Any]:
        def terminal(req: Any, ctx: DispatchContext) -> Result[Any]:
            ctx.checkpoint()
            handler = registration.build()
            return handler(req, ctx)

        try:
            result = self._pipeline.invoke(request, context, terminal)
        except OperationCancelledError as exc:
            return Failure(Error.cancelled(exc.reason, request_type=context.request_key))
        except RelayConfigurationError:
            raise
        except Exception as exc:
            logger.error("Unhandled exception while handling %s", context.request_key, exc_info=True)
            return Failure(
                Error.unexpected(
                    str(exc) or exc.__class__.__name__,
                    exception_type=exc.__class__.__name__,
                    request_type=context.request_key,
                )
            )

        if not isinstance(result, Result):
            return Failure(
                Error.unexpected(
                    f"Handler for {context.request_key} returned "
                    f"{type(result).__name__}, expected a Result",
                    request_type=context.request_key,
                )
            )
        return result

    def _notify(self, key: str, result: Result[Any], duration_ms: float) -> None:
        """Fire the ``post_dispatch`` plugin hook.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        if self._pm is None:
            return
        try:
            self._pm.hook.post_dispatch(
                request_type=key,
                outcome=outcome_tag(result),
                duration_ms=round(duration_ms, 3),
            )
        except Exception:
            logger.warning("post_dispatch hook failed for %s", key, exc_info=True)
