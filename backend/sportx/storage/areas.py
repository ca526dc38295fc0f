"""SQLAlchemy-backed storage areas and the cross-context change relay."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import delete, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from sportx.db import create_session_factory, init_storage
from sportx.models import StorageChange, StorageItem
from sportx.reactive.events import BrowsingContext, StorageEvent
from sportx.reactive.stream import Scheduler, TimerHandle

from .types import StorageAccessError


class DatabaseStorageArea:
    """String key/value area persisted in the ``storage_items`` table.

    Every effective change is appended to ``storage_changes`` in the same
    transaction, tagged with ``source`` (the writing context id), so other
    contexts can replay it as a storage event.
    """

    def __init__(self, engine: Engine, *, name: str, source: str) -> None:
        self.name = name
        self.source = source
        self._engine = engine
        self._session_factory = create_session_factory(engine)
        init_storage(engine)

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise StorageAccessError(f"Storage area '{self.name}' is unavailable: {exc}") from exc
        finally:
            session.close()

    def _record_change(
        self,
        session: Session,
        key: str | None,
        old_value: str | None,
        new_value: str | None,
    ) -> None:
        session.add(
            StorageChange(
                area=self.name,
                key=key,
                old_value=old_value,
                new_value=new_value,
                source=self.source,
            )
        )

    def get_item(self, key: str) -> str | None:
        with self._session_scope() as session:
            item = session.get(StorageItem, (self.name, key))
            return item.value if item is not None else None

    def set_item(self, key: str, value: str) -> None:
        try:
            self._write_item(key, value)
        except StorageAccessError as exc:
            if not isinstance(exc.__cause__, IntegrityError):
                raise
            # Another context inserted the key first; overwrite its row.
            self._write_item(key, value)

    def _write_item(self, key: str, value: str) -> None:
        with self._session_scope() as session:
            item = session.get(StorageItem, (self.name, key))
            if item is None:
                session.add(StorageItem(area=self.name, key=key, value=value))
                self._record_change(session, key, None, value)
                return
            if item.value == value:
                return
            old_value = item.value
            item.value = value
            self._record_change(session, key, old_value, value)

    def remove_item(self, key: str) -> None:
        with self._session_scope() as session:
            item = session.get(StorageItem, (self.name, key))
            if item is None:
                return
            old_value = item.value
            session.delete(item)
            self._record_change(session, key, old_value, None)

    def clear(self) -> None:
        with self._session_scope() as session:
            count = session.scalar(
                select(func.count()).select_from(StorageItem).where(StorageItem.area == self.name)
            )
            if not count:
                return
            session.execute(delete(StorageItem).where(StorageItem.area == self.name))
            self._record_change(session, None, None, None)

    def keys(self) -> list[str]:
        with self._session_scope() as session:
            query = (
                select(StorageItem.key)
                .where(StorageItem.area == self.name)
                .order_by(StorageItem.key)
            )
            return list(session.scalars(query))

    def latest_change_id(self) -> int:
        with self._session_scope() as session:
            query = select(func.max(StorageChange.id)).where(StorageChange.area == self.name)
            return session.scalar(query) or 0

    def changes_after(self, change_id: int) -> list[StorageChange]:
        with self._session_scope() as session:
            query = (
                select(StorageChange)
                .where(StorageChange.area == self.name, StorageChange.id > change_id)
                .order_by(StorageChange.id)
            )
            changes = list(session.scalars(query))
            session.expunge_all()
            return changes

    def __repr__(self) -> str:
        return f"DatabaseStorageArea(name={self.name!r}, url={self._engine.url!r})"


class StorageEventRelay:
    """Replay changes written by other contexts as ``storage`` events.

    Rows written through this context's own area are skipped: a context never
    receives storage events for its own writes.
    """

    def __init__(self, area: DatabaseStorageArea, window: BrowsingContext) -> None:
        self.area = area
        self.window = window
        self._cursor = area.latest_change_id()
        self._timer: TimerHandle | None = None

    def poll(self) -> int:
        """Dispatch pending foreign changes; return how many were dispatched."""

        dispatched = 0
        for change in self.area.changes_after(self._cursor):
            self._cursor = change.id
            if change.source == self.area.source:
                continue
            logger.bind(topic="StorageEventRelay", action="poll").debug(
                "Replaying change #{} on '{}' key={!r} from {}",
                change.id,
                self.area.name,
                change.key,
                change.source,
            )
            self.window.dispatch_event(
                StorageEvent(
                    key=change.key,
                    old_value=change.old_value,
                    new_value=change.new_value,
                    storage_area=self.area,
                    source=change.source,
                    change_id=change.id,
                )
            )
            dispatched += 1
        return dispatched

    def start(self, scheduler: Scheduler, interval: float) -> None:
        self.stop()
        log = logger.bind(topic="StorageEventRelay", action="poll")

        def tick() -> None:
            fired = self._timer
            try:
                self.poll()
            except StorageAccessError as exc:
                log.error("Error polling storage changes: {}", exc)
            except Exception:
                log.exception("Storage event listener failed")
            finally:
                # stop() or a restart from inside a listener replaces the handle.
                if fired is not None and self._timer is fired:
                    self._timer = scheduler.call_later(interval, tick)

        self._timer = scheduler.call_later(interval, tick)

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    @property
    def running(self) -> bool:
        return self._timer is not None
