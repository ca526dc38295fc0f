"""Observable state container with optional storage synchronization."""

from __future__ import annotations

import itertools
import operator
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from loguru import logger
from pydantic import TypeAdapter

from sportx.storage.types import Schema, WebStorageName, as_type_adapter

from .stream import Observer, Stream, Subscription, Teardown

if TYPE_CHECKING:
    from sportx.storage.service import StorageService

    from .listener import ReactiveEventListener

T = TypeVar("T")
R = TypeVar("R")

Selector = Callable[[T], R]
Comparator = Callable[[R, R], bool]
StateUpdater = Callable[[T], T]


class StateDisposedError(RuntimeError):
    """Raised when observing a container that was disposed."""


@dataclass(slots=True)
class StorageBinding(Generic[T]):
    """Where a container mirrors its value: ``key`` inside ``storage_name``."""

    key: str
    schema: Schema
    storage_name: WebStorageName = "localStorage"
    adapter: TypeAdapter[Any] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.adapter = as_type_adapter(self.schema)


@dataclass(slots=True)
class _Selection:
    selector: Callable[[Any], Any]
    comparator: Callable[[Any, Any], bool]
    observer: Observer[Any]
    last: Any


def _identity(value: Any) -> Any:
    return value


class ReactiveState(Generic[T]):
    """Hold one value of type ``T`` and push derived views to observers.

    With a :class:`StorageBinding`, the stored value (when valid) replaces
    ``initial_value``, every synced update is written back, and changes made
    by other contexts flow in through the listener without being written
    again.
    """

    def __init__(
        self,
        initial_value: T,
        binding: StorageBinding[T] | None = None,
        *,
        storage: StorageService | None = None,
        listener: ReactiveEventListener | None = None,
    ) -> None:
        if binding is not None and (storage is None or listener is None):
            raise ValueError("A storage binding requires both a storage service and a listener")

        self._binding = binding
        self._storage = storage
        self._selections: dict[int, _Selection] = {}
        self._handles = itertools.count()
        self._disposed = False
        self._storage_subscription: Subscription | None = None
        self._value: T = initial_value
        # Subscribe before reading so a change landing in between is still replayed.
        self._sync_with_storage(listener)
        self._value = self._resolve_initial_value(initial_value)

    def _resolve_initial_value(self, initial_value: T) -> T:
        if self._binding is None or self._storage is None:
            return initial_value
        stored = self._storage.from_storage(self._binding.storage_name).get_item(
            self._binding.key, self._binding.adapter
        )
        return initial_value if stored is None else stored

    def _sync_with_storage(self, listener: ReactiveEventListener | None) -> None:
        if self._binding is None or listener is None:
            return
        binding = self._binding
        self._storage_subscription = (
            listener.storage_item(binding.storage_name, binding.key, binding.adapter, skip_initial=True)
            .ignore_none()
            .subscribe(lambda value: self.update(value, sync=False))
        )

    @property
    def value(self) -> T:
        return self._value

    @property
    def disposed(self) -> bool:
        return self._disposed

    def select(self, selector: Selector[T, R] | None = None) -> R:
        """Project the current value without subscribing."""

        project = selector or _identity
        return project(self._value)

    def observe(
        self,
        selector: Selector[T, R] | None = None,
        comparator: Comparator[R] | None = None,
    ) -> Stream[R]:
        """Stream the projection now and after every change ``comparator`` sees.

        Each subscription remembers the last value it emitted, so subscribers
        with different selectors never interfere.
        """

        if self._disposed:
            raise StateDisposedError("Cannot observe a disposed ReactiveState")

        project = selector or _identity
        equals = comparator or operator.eq

        def producer(observer: Observer[R]) -> Teardown | None:
            if self._disposed:
                observer.complete()
                return None
            handle = next(self._handles)
            selection = _Selection(project, equals, observer, project(self._value))
            self._selections[handle] = selection
            observer.next(selection.last)
            return lambda: self._selections.pop(handle, None)

        return Stream(producer)

    def update(self, next_value: T | StateUpdater[T], sync: bool = True) -> None:
        """Replace the value and notify observers; identical values are ignored."""

        if self._disposed:
            logger.bind(topic="ReactiveState", action="update").warning(
                "Ignoring update on a disposed ReactiveState"
            )
            return

        current = self._value
        candidate = next_value(current) if callable(next_value) else next_value
        if candidate is current or candidate == current:
            return

        self._value = candidate
        try:
            self._notify()
        finally:
            if self._binding is not None and self._storage is not None and sync:
                # Observers may have updated again while being notified; persist the latest value.
                self._storage.from_storage(self._binding.storage_name).set_item(
                    self._binding.key, self._value
                )

    def _notify(self) -> None:
        log = logger.bind(topic="ReactiveState", action="update")
        for handle, selection in list(self._selections.items()):
            if handle not in self._selections:
                continue
            try:
                projected = selection.selector(self._value)
                if selection.comparator(selection.last, projected):
                    continue
                selection.last = projected
                selection.observer.next(projected)
            except Exception as exc:
                log.exception("Observer failed while handling a state change")
                self._selections.pop(handle, None)
                try:
                    selection.observer.error(exc)
                except Exception:
                    # Nothing downstream handles errors; the failure is logged above.
                    continue

    def dispose(self) -> None:
        """Stop storage synchronization and complete every live subscription."""

        if self._disposed:
            return
        self._disposed = True
        if self._storage_subscription is not None:
            self._storage_subscription.unsubscribe()
            self._storage_subscription = None
        selections = list(self._selections.values())
        self._selections.clear()
        for selection in selections:
            selection.observer.complete()
