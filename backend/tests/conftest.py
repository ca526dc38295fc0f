from __future__ import annotations

import json
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest
from loguru import logger

from sportx.core.config import Settings
from sportx.db import create_storage_engine
from sportx.reactive.events import BrowsingContext
from sportx.reactive.listener import ReactiveEventListener
from sportx.storage import DatabaseStorageArea, StorageEventRelay, StorageService

DATA_DIR = Path(__file__).parent / "data"


@dataclass
class _Timer:
    when: float
    callback: Callable[[], Any]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class ManualScheduler:
    """Deterministic scheduler: timers only fire when the test advances time."""

    now: float = 0.0
    timers: list[_Timer] = field(default_factory=list)

    def call_later(self, delay: float, callback: Callable[[], Any]) -> _Timer:
        timer = _Timer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [timer for timer in self.timers if not timer.cancelled and timer.when <= target]
            if not due:
                break
            timer = min(due, key=lambda item: item.when)
            self.timers.remove(timer)
            self.now = timer.when
            timer.callback()
        self.now = target

    @property
    def pending(self) -> int:
        return sum(1 for timer in self.timers if not timer.cancelled)


@dataclass
class Tab:
    """One browsing context wired to the shared storage database."""

    window: BrowsingContext
    local_area: DatabaseStorageArea
    session_area: DatabaseStorageArea
    storage: StorageService
    listener: ReactiveEventListener
    relay: StorageEventRelay


@pytest.fixture
def catalog_payload() -> dict[str, Any]:
    path = DATA_DIR / "catalog.json"
    return json.loads(path.read_text(encoding="utf-8"))


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def log_records():
    records: list[dict[str, Any]] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


@pytest.fixture
def test_settings(tmp_path, monkeypatch) -> Settings:
    settings = Settings(
        local_storage_url=f"sqlite:///{tmp_path / 'storage.db'}",
        session_storage_url="sqlite://",
        catalog_base_url=None,
        catalog_path=str(DATA_DIR / "catalog.json"),
        message_allowed_origins="https://sportx.test",
    )
    monkeypatch.setattr("sportx.core.config.get_settings", lambda: settings)
    return settings


@pytest.fixture
def storage_engine(tmp_path):
    engine = create_storage_engine(f"sqlite:///{tmp_path / 'shared.db'}")
    yield engine
    engine.dispose()


@pytest.fixture
def session_engine():
    engine = create_storage_engine("sqlite://")
    yield engine
    engine.dispose()


@pytest.fixture
def make_tab(storage_engine, session_engine, scheduler) -> Callable[[], Tab]:
    """Build browsing contexts sharing one persistent database."""

    def factory() -> Tab:
        window = BrowsingContext(origin="https://sportx.test")
        local_area = DatabaseStorageArea(storage_engine, name="local", source=window.context_id)
        session_area = DatabaseStorageArea(
            session_engine, name="session", source=window.context_id
        )
        storage = StorageService(local_area=local_area, session_area=session_area)
        return Tab(
            window=window,
            local_area=local_area,
            session_area=session_area,
            storage=storage,
            listener=ReactiveEventListener(window, storage, scheduler),
            relay=StorageEventRelay(local_area, window),
        )

    return factory
