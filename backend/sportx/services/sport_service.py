from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from loguru import logger

from sportx.domain import split_bet_id
from sportx.reactive.state import ReactiveState
from sportx.reactive.stream import Stream
from sportx.schemas import Choice, SportEvent


class CatalogFetchError(RuntimeError):
    """Raised by catalog sources when the catalog cannot be fetched or decoded."""


class CatalogSource(Protocol):
    def fetch_events(self) -> list[SportEvent]: ...


def _labelled(events: list[SportEvent]) -> list[SportEvent]:
    return [event for event in events if event.label]


class SportService:
    """Read-mostly sport catalog loaded once from a catalog source."""

    def __init__(self, source: CatalogSource) -> None:
        self._source = source
        self._events: ReactiveState[list[SportEvent]] = ReactiveState([])

    def load(self) -> bool:
        """Fetch the catalog; on failure keep the current events and return False."""

        log = logger.bind(topic="SportService", action="load")
        try:
            events = self._source.fetch_events()
        except CatalogFetchError as exc:
            log.error("Error fetching events: {}", exc)
            return False
        log.debug("Loaded {} events", len(events))
        self._events.update(events)
        return True

    @property
    def events(self) -> list[SportEvent]:
        return self._events.select(_labelled)

    def observe_events(self) -> Stream[list[SportEvent]]:
        """Events with a non-empty label."""

        return self._events.observe(_labelled)

    def find_choice(self, bet_id: str) -> Choice | None:
        try:
            event_id, group_id, choice_id = split_bet_id(bet_id)
        except ValueError:
            return None
        for event in self._events.value:
            if event.id != event_id:
                continue
            group = event.bet.get(str(group_id))
            if group is None:
                return None
            return next((choice for choice in group.choices if choice.id == choice_id), None)
        return None

    def odds_for(self, bet_ids: Iterable[str]) -> list[float]:
        """Odds of every selected choice; raises ``KeyError`` for an unknown bet."""

        odds: list[float] = []
        for bet_id in bet_ids:
            choice = self.find_choice(bet_id)
            if choice is None:
                raise KeyError(bet_id)
            odds.append(choice.odd)
        return odds

    def dispose(self) -> None:
        self._events.dispose()
