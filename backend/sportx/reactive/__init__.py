"""Streams and event targets underpinning the reactive state containers."""

from .events import (
    BrowsingContext,
    CustomEvent,
    Element,
    ErrorEvent,
    Event,
    EventTarget,
    MessageEvent,
    StorageEvent,
    from_event,
)
from .stream import LoopScheduler, Observer, Scheduler, Stream, Subscription, of

__all__ = [
    "BrowsingContext",
    "CustomEvent",
    "Element",
    "ErrorEvent",
    "Event",
    "EventTarget",
    "LoopScheduler",
    "MessageEvent",
    "Observer",
    "Scheduler",
    "StorageEvent",
    "Stream",
    "Subscription",
    "from_event",
    "of",
]
