"""Composition root wiring every service of one browsing context."""

from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger
from sqlalchemy.engine import Engine

from ingestion.client import CatalogClient
from sportx.core.config import Settings, get_settings
from sportx.db import create_storage_engine
from sportx.reactive.events import BrowsingContext
from sportx.reactive.listener import ReactiveEventListener
from sportx.reactive.stream import LoopScheduler, Scheduler
from sportx.services import BetslipService, CatalogSource, SportService
from sportx.storage import DatabaseStorageArea, StorageEventRelay, StorageService


@dataclass(slots=True)
class AppContext:
    """Services owned by one browsing context; close it to release them."""

    settings: Settings
    window: BrowsingContext
    storage: StorageService
    listener: ReactiveEventListener
    betslip: BetslipService
    sport: SportService
    relays: list[StorageEventRelay] = field(default_factory=list)
    engines: list[Engine] = field(default_factory=list)
    catalog_client: CatalogClient | None = None
    closed: bool = False

    def sync(self) -> int:
        """Replay pending writes from other contexts; return how many were applied."""

        return sum(relay.poll() for relay in self.relays)

    def start_sync(self, scheduler: Scheduler | None = None) -> None:
        timer_source = scheduler or LoopScheduler()
        for relay in self.relays:
            relay.start(timer_source, self.settings.storage_poll_interval_seconds)

    def stop_sync(self) -> None:
        for relay in self.relays:
            relay.stop()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.stop_sync()
        self.betslip.dispose()
        self.sport.dispose()
        if self.catalog_client is not None:
            self.catalog_client.close()
        for engine in self.engines:
            engine.dispose()
        logger.bind(topic="AppContext", action="close").debug("Closed {!r}", self.window)

    def __enter__(self) -> "AppContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def build_context(
    settings: Settings | None = None,
    *,
    catalog_source: CatalogSource | None = None,
    scheduler: Scheduler | None = None,
    load_catalog: bool = True,
    origin: str = "local",
) -> AppContext:
    settings = settings or get_settings()
    window = BrowsingContext(origin=origin)

    local_engine = create_storage_engine(settings.local_storage_url, echo=settings.debug)
    session_engine = create_storage_engine(settings.session_storage_url, echo=settings.debug)
    local_area = DatabaseStorageArea(local_engine, name="local", source=window.context_id)
    session_area = DatabaseStorageArea(session_engine, name="session", source=window.context_id)

    relays = [
        StorageEventRelay(local_area, window),
        StorageEventRelay(session_area, window),
    ]

    storage = StorageService(local_area=local_area, session_area=session_area)
    listener = ReactiveEventListener(
        window,
        storage,
        scheduler,
        debounce_ms=settings.input_debounce_ms,
        allowed_origins=settings.message_allowed_origins,
    )
    betslip = BetslipService(storage, listener, storage_key=settings.betslip_storage_key)
    catalog_client = None if catalog_source is not None else CatalogClient.from_settings(settings)
    sport = SportService(catalog_source or catalog_client)
    if load_catalog:
        sport.load()

    logger.bind(topic="AppContext", action="build").debug(
        "Built {!r} with storages {}", window, ", ".join(storage.available_storages())
    )
    return AppContext(
        settings=settings,
        window=window,
        storage=storage,
        listener=listener,
        betslip=betslip,
        sport=sport,
        relays=relays,
        engines=[local_engine, session_engine],
        catalog_client=catalog_client,
    )
