"""Ambient notification sources.

A :class:`BrowsingContext` is the process-local equivalent of a browser
window: storage change notifications from other contexts, application custom
events, cross-context messages and uncaught errors are all dispatched on it.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar
from uuid import uuid4

from .stream import Observer, Stream, Teardown

T = TypeVar("T")

EventListener = Callable[["Event"], Any]


@dataclass(kw_only=True)
class Event:
    type: str
    target: EventTarget | None = field(default=None, repr=False, compare=False)


@dataclass(kw_only=True)
class CustomEvent(Event, Generic[T]):
    detail: T | None = None


@dataclass(kw_only=True)
class StorageEvent(Event):
    """A storage area changed in *another* context.

    ``key`` is ``None`` when the whole area was cleared; ``new_value`` is
    ``None`` when the key was removed.
    ``change_id`` is the position of the change in the shared change log.
    """

    type: str = "storage"
    key: str | None = None
    old_value: str | None = None
    new_value: str | None = None
    storage_area: Any = field(default=None, compare=False)
    source: str | None = None
    change_id: int | None = None


@dataclass(kw_only=True)
class MessageEvent(Event, Generic[T]):
    type: str = "message"
    data: T | None = None
    origin: str = ""


@dataclass(kw_only=True)
class ErrorEvent(Event):
    type: str = "error"
    message: str = ""
    error: BaseException | None = None


class EventTarget:
    def __init__(self) -> None:
        self._listeners: dict[str, list[EventListener]] = defaultdict(list)

    def add_event_listener(self, event_type: str, listener: EventListener) -> None:
        listeners = self._listeners[event_type]
        if listener not in listeners:
            listeners.append(listener)

    def remove_event_listener(self, event_type: str, listener: EventListener) -> None:
        listeners = self._listeners.get(event_type)
        if not listeners:
            return
        try:
            listeners.remove(listener)
        except ValueError:
            return
        if not listeners:
            del self._listeners[event_type]

    def listener_count(self, event_type: str) -> int:
        return len(self._listeners.get(event_type, ()))

    def dispatch_event(self, event: Event) -> None:
        event.target = self
        for listener in list(self._listeners.get(event.type, ())):
            listener(event)


class Element(EventTarget):
    """Input-like element emitting ``input`` and ``change`` events."""

    def __init__(self, name: str = "", value: str = "") -> None:
        super().__init__()
        self.name = name
        self.value = value

    def set_value(self, value: str) -> None:
        self.value = value
        self.dispatch_event(Event(type="input"))

    def commit(self) -> None:
        self.dispatch_event(Event(type="change"))


class BrowsingContext(EventTarget):
    def __init__(self, origin: str = "local", context_id: str | None = None) -> None:
        super().__init__()
        self.origin = origin
        self.context_id = context_id or uuid4().hex

    def post_message(self, data: Any, origin: str) -> None:
        self.dispatch_event(MessageEvent(data=data, origin=origin))

    def report_error(self, error: BaseException) -> None:
        self.dispatch_event(ErrorEvent(message=str(error), error=error))

    def __repr__(self) -> str:
        return f"BrowsingContext(origin={self.origin!r}, context_id={self.context_id!r})"


def from_event(target: EventTarget, event_type: str) -> Stream[Event]:
    """Stream of ``event_type`` events dispatched on ``target``.

    The listener is attached per subscription and removed when it is released.
    """

    def producer(observer: Observer[Event]) -> Teardown:
        listener = observer.next
        target.add_event_listener(event_type, listener)
        return lambda: target.remove_event_listener(event_type, listener)

    return Stream(producer)
