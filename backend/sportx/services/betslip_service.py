from __future__ import annotations

from loguru import logger

from sportx.domain import BetslipType, classify_betslip
from sportx.reactive.listener import ReactiveEventListener
from sportx.reactive.state import ReactiveState, StorageBinding
from sportx.reactive.stream import Stream
from sportx.schemas import Betslip, UserBet
from sportx.storage.service import StorageService
from sportx.storage.types import WebStorageName


def _bets(betslip: Betslip | None) -> list[UserBet]:
    return list(betslip.bets) if betslip is not None else []


def _contains(betslip: Betslip | None, bet_id: str) -> bool:
    return betslip is not None and any(bet.id == bet_id for bet in betslip.bets)


class BetslipService:
    """Betslip state persisted in shared storage and kept in sync across contexts."""

    def __init__(
        self,
        storage: StorageService,
        listener: ReactiveEventListener,
        *,
        storage_key: str = "betslip",
        storage_name: WebStorageName = "localStorage",
    ) -> None:
        self._state: ReactiveState[Betslip | None] = ReactiveState(
            None,
            StorageBinding(key=storage_key, schema=Betslip, storage_name=storage_name),
            storage=storage,
            listener=listener,
        )

    @property
    def state(self) -> ReactiveState[Betslip | None]:
        return self._state

    @property
    def betslip(self) -> Betslip | None:
        return self._state.value

    # ------------------------------------------------------------------
    # Mutations

    def add_user_bet(self, bet_id: str) -> None:
        """Append ``bet_id`` unless it is already on the betslip.

        Raises :class:`pydantic.ValidationError` for a malformed id.
        """

        bet = UserBet(id=bet_id)

        def add(betslip: Betslip | None) -> Betslip | None:
            if _contains(betslip, bet.id):
                return betslip
            return Betslip(bets=[*_bets(betslip), bet])

        logger.bind(topic="BetslipService", action="add_user_bet").debug("Adding {}", bet.id)
        self._state.update(add)

    def remove_bet(self, bet_id: str) -> None:
        def remove(betslip: Betslip | None) -> Betslip | None:
            if not _contains(betslip, bet_id):
                return betslip
            return Betslip(bets=[bet for bet in _bets(betslip) if bet.id != bet_id])

        logger.bind(topic="BetslipService", action="remove_bet").debug("Removing {}", bet_id)
        self._state.update(remove)

    def toggle_user_bet(self, bet_id: str) -> None:
        if self.is_user_bet_existing(bet_id):
            self.remove_bet(bet_id)
        else:
            self.add_user_bet(bet_id)

    def clear_bets(self) -> None:
        self._state.update(
            lambda betslip: betslip if not _bets(betslip) else Betslip(bets=[])
        )

    # ------------------------------------------------------------------
    # Queries

    def is_user_bet_existing(self, bet_id: str) -> bool:
        return self._state.select(lambda betslip: _contains(betslip, bet_id))

    def observe_user_bet_existing(self, bet_id: str) -> Stream[bool]:
        return self._state.observe(lambda betslip: _contains(betslip, bet_id))

    @property
    def user_bets(self) -> list[UserBet]:
        return self._state.select(_bets)

    def observe_user_bets(self) -> Stream[list[UserBet]]:
        """Bet list of the current betslip; nothing is emitted until one exists."""

        return self._state.observe().ignore_none().map(_bets)

    @property
    def betslip_type(self) -> BetslipType:
        return self._state.select(classify_betslip)

    def observe_betslip_type(self) -> Stream[BetslipType]:
        return self._state.observe(classify_betslip)

    def dispose(self) -> None:
        self._state.dispose()
