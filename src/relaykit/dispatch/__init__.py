"""Dispatch layer — registry, cancellation, pipeline, behaviors, and mediator."""

from relaykit.dispatch.cancellation import CancellationToken
from relaykit.dispatch.mediator import DispatchContext, Mediator
from relaykit.dispatch.pipeline import Pipeline, PipelineBehavior
from relaykit.dispatch.registry import HandlerRegistry

__all__ = [
    "CancellationToken",
    "DispatchContext",
    "HandlerRegistry",
    "Mediator",
    "Pipeline",
    "PipelineBehavior",
]
