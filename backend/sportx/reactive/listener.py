"""Typed, filtered streams over the notifications dispatched on a browsing context."""

from __future__ import annotations

from collections.abc import Collection
from typing import Any

from loguru import logger
from pydantic import ValidationError

from sportx.storage.service import StorageService
from sportx.storage.types import (
    Schema,
    StorageAccessError,
    StorageArea,
    WebStorageName,
    as_type_adapter,
)

from .events import (
    BrowsingContext,
    CustomEvent,
    ErrorEvent,
    Event,
    EventTarget,
    MessageEvent,
    StorageEvent,
    from_event,
)
from .stream import Observer, Scheduler, Stream, Teardown

DEFAULT_DEBOUNCE_MS = 20


def _debug(action: str):
    log = logger.bind(topic="ReactiveEventListener", action=action)
    return lambda event: log.debug("{!r}", event)


def _latest_change_id(area: StorageArea) -> int | None:
    latest = getattr(area, "latest_change_id", None)
    if latest is None:
        return None
    try:
        return latest()
    except StorageAccessError as exc:
        logger.bind(topic="ReactiveEventListener", action="storage_changed").error(
            "Cannot read the storage change position: {}", exc
        )
        return None


class ReactiveEventListener:
    def __init__(
        self,
        window: BrowsingContext,
        storage: StorageService,
        scheduler: Scheduler | None = None,
        *,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        allowed_origins: Collection[str] = (),
    ) -> None:
        self.window = window
        self.storage = storage
        self.scheduler = scheduler
        self.debounce_ms = debounce_ms
        self.allowed_origins = frozenset(allowed_origins)

    def custom_event(self, event_name: str, target: EventTarget | None = None) -> Stream[CustomEvent]:
        """Application-dispatched custom events named ``event_name``."""

        return (
            from_event(target or self.window, event_name)
            .filter(lambda event: isinstance(event, CustomEvent))
            .tap(_debug("custom_event"))
        )

    def _area_events(
        self, area: StorageArea, key: str | None, since: int | None
    ) -> Stream[StorageEvent]:
        def matches(event: Event) -> bool:
            if not isinstance(event, StorageEvent):
                return False
            if event.storage_area is not area:
                return False
            if key is not None and event.key != key:
                return False
            if since is not None and event.change_id is not None and event.change_id <= since:
                return False
            return True

        return from_event(self.window, "storage").filter(matches)

    def storage_changed(
        self, storage_name: WebStorageName, key: str | None = None
    ) -> Stream[StorageEvent]:
        """Storage events raised by writes from *other* contexts.

        Only events coming from the area behind ``storage_name`` (and for
        ``key``, when given) are emitted. A context's own writes never show up
        here, and neither do changes logged before the subscription started.
        """

        area = self.storage.area(storage_name)

        def producer(observer: Observer[StorageEvent]) -> Teardown:
            events = self._area_events(area, key, _latest_change_id(area))
            return events.subscribe(observer.next, observer.error, observer.complete).unsubscribe

        return Stream(producer)

    def storage_item(
        self,
        storage_name: WebStorageName,
        key: str,
        schema: Schema,
        skip_initial: bool = False,
    ) -> Stream[Any | None]:
        """Validated value of ``key``, re-emitted whenever another context changes it.

        Removal, undecodable content and schema mismatches yield ``None``
        instead of terminating the stream.
        """

        adapter = as_type_adapter(schema)
        storage = self.storage.from_storage(storage_name)
        area = self.storage.area(storage_name)
        log = logger.bind(topic="ReactiveEventListener", action="storage_item")

        def decode(event: StorageEvent) -> Any | None:
            if event.new_value is None:
                return None
            try:
                return adapter.validate_json(event.new_value)
            except (ValidationError, ValueError) as exc:
                log.error("Discarding invalid value for {!r}: {}", key, exc)
                return None

        def producer(observer: Observer[Any | None]) -> Teardown | None:
            # Mark the log position before reading so no later change is lost.
            since = _latest_change_id(area)
            if not skip_initial:
                observer.next(storage.get_item(key, adapter))
                if observer.closed:
                    return None
            updates = self._area_events(area, key, since).map(decode)
            return updates.subscribe(observer.next, observer.error, observer.complete).unsubscribe

        return Stream(producer)

    def error_event(self) -> Stream[ErrorEvent]:
        return (
            from_event(self.window, "error")
            .filter(lambda event: isinstance(event, ErrorEvent))
            .tap(_debug("error_event"))
        )

    def message_event(self, allowed_origins: Collection[str] | None = None) -> Stream[MessageEvent]:
        """Messages posted from one of ``allowed_origins`` (the configured origins by default)."""

        origins = self.allowed_origins if allowed_origins is None else frozenset(allowed_origins)
        return (
            from_event(self.window, "message")
            .filter(lambda event: isinstance(event, MessageEvent) and event.origin in origins)
            .tap(_debug("message_event"))
        )

    def input_changed(self, element: EventTarget, debounce_ms: int | None = None) -> Stream[Event]:
        delay = self.debounce_ms if debounce_ms is None else debounce_ms
        return (
            from_event(element, "input")
            .debounce(delay / 1000, self.scheduler)
            .tap(_debug("input_changed"))
        )

    def change_event(self, element: EventTarget, debounce_ms: int | None = None) -> Stream[Event]:
        delay = self.debounce_ms if debounce_ms is None else debounce_ms
        return (
            from_event(element, "change")
            .debounce(delay / 1000, self.scheduler)
            .tap(_debug("change_event"))
        )
