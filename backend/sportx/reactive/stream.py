"""Minimal push-based streams.

A :class:`Stream` wraps a producer function. Subscribing runs the producer
synchronously with an :class:`Observer`; whatever the producer returns is
registered as teardown and runs when the subscription is released, the stream
completes, or it errors. Operators return new cold streams, so every
subscriber gets its own operator state (last value, pending debounce, ...).
"""

from __future__ import annotations

import asyncio
import operator
from collections.abc import Callable
from typing import Any, Generic, Protocol, TypeVar

T = TypeVar("T")
R = TypeVar("R")

Teardown = Callable[[], None]
Producer = Callable[["Observer[T]"], "Teardown | None"]

_MISSING: Any = object()


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything able to run a callback later on the current event loop."""

    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle: ...


class LoopScheduler:
    """Schedule on the asyncio loop running at call time."""

    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


class Subscription:
    """Handle returned by :meth:`Stream.subscribe`."""

    def __init__(self, teardown: Teardown | None = None) -> None:
        self._teardowns: list[Teardown] = [teardown] if teardown else []
        self.closed = False

    def add(self, teardown: Teardown) -> None:
        if self.closed:
            teardown()
            return
        self._teardowns.append(teardown)

    def unsubscribe(self) -> None:
        if self.closed:
            return
        self.closed = True
        teardowns, self._teardowns = self._teardowns, []
        for teardown in reversed(teardowns):
            teardown()


class Observer(Generic[T]):
    def __init__(
        self,
        subscription: Subscription,
        on_next: Callable[[T], Any] | None = None,
        on_error: Callable[[BaseException], Any] | None = None,
        on_complete: Callable[[], Any] | None = None,
    ) -> None:
        self._subscription = subscription
        self._on_next = on_next
        self._on_error = on_error
        self._on_complete = on_complete
        self._stopped = False

    @property
    def closed(self) -> bool:
        return self._stopped or self._subscription.closed

    def next(self, value: T) -> None:
        if self.closed:
            return
        if self._on_next is not None:
            self._on_next(value)

    def error(self, exc: BaseException) -> None:
        if self.closed:
            return
        self._stopped = True
        try:
            if self._on_error is None:
                raise exc
            self._on_error(exc)
        finally:
            self._subscription.unsubscribe()

    def complete(self) -> None:
        if self.closed:
            return
        self._stopped = True
        try:
            if self._on_complete is not None:
                self._on_complete()
        finally:
            self._subscription.unsubscribe()


class Stream(Generic[T]):
    def __init__(self, producer: Producer[T]) -> None:
        self._producer = producer

    def subscribe(
        self,
        on_next: Callable[[T], Any] | None = None,
        on_error: Callable[[BaseException], Any] | None = None,
        on_complete: Callable[[], Any] | None = None,
    ) -> Subscription:
        subscription = Subscription()
        observer = Observer(subscription, on_next, on_error, on_complete)
        teardown = self._producer(observer)
        if teardown is not None:
            subscription.add(teardown)
        return subscription

    # ------------------------------------------------------------------
    # Operators

    def _lift(self, handle: Callable[[Observer[R], T], None]) -> Stream[R]:
        def producer(observer: Observer[R]) -> Teardown:
            inner = self.subscribe(
                lambda value: handle(observer, value), observer.error, observer.complete
            )
            return inner.unsubscribe

        return Stream(producer)

    def map(self, project: Callable[[T], R]) -> Stream[R]:
        return self._lift(lambda observer, value: observer.next(project(value)))

    def filter(self, predicate: Callable[[T], bool]) -> Stream[T]:
        def handle(observer: Observer[T], value: T) -> None:
            if predicate(value):
                observer.next(value)

        return self._lift(handle)

    def ignore_none(self) -> Stream[Any]:
        """Drop ``None`` values."""

        return self.filter(lambda value: value is not None)

    def tap(self, effect: Callable[[T], Any]) -> Stream[T]:
        def handle(observer: Observer[T], value: T) -> None:
            effect(value)
            observer.next(value)

        return self._lift(handle)

    def distinct_until_changed(
        self, comparator: Callable[[T, T], bool] | None = None
    ) -> Stream[T]:
        equals = comparator or operator.eq

        def producer(observer: Observer[T]) -> Teardown:
            last = _MISSING

            def on_next(value: T) -> None:
                nonlocal last
                if last is not _MISSING and equals(last, value):
                    return
                last = value
                observer.next(value)

            return self.subscribe(on_next, observer.error, observer.complete).unsubscribe

        return Stream(producer)

    def start_with(self, initial: Callable[[], T]) -> Stream[T]:
        """Emit ``initial()`` at subscription time, then the source values."""

        def producer(observer: Observer[T]) -> Teardown | None:
            observer.next(initial())
            if observer.closed:
                return None
            return self.subscribe(observer.next, observer.error, observer.complete).unsubscribe

        return Stream(producer)

    def debounce(self, seconds: float, scheduler: Scheduler | None = None) -> Stream[T]:
        """Emit a value only once ``seconds`` pass without another one."""

        timer_source = scheduler or LoopScheduler()

        def producer(observer: Observer[T]) -> Teardown:
            pending: TimerHandle | None = None
            latest = _MISSING

            def cancel_pending() -> None:
                nonlocal pending
                if pending is not None:
                    pending.cancel()
                    pending = None

            def flush() -> None:
                nonlocal pending, latest
                pending = None
                value, latest = latest, _MISSING
                if value is not _MISSING:
                    observer.next(value)

            def on_next(value: T) -> None:
                nonlocal pending, latest
                cancel_pending()
                latest = value
                pending = timer_source.call_later(seconds, flush)

            def on_complete() -> None:
                cancel_pending()
                flush()
                observer.complete()

            inner = self.subscribe(on_next, observer.error, on_complete)

            def teardown() -> None:
                cancel_pending()
                inner.unsubscribe()

            return teardown

        return Stream(producer)


def of(*values: T) -> Stream[T]:
    def producer(observer: Observer[T]) -> None:
        for value in values:
            observer.next(value)
        observer.complete()

    return Stream(producer)
