"""Betting rules computed on top of the betslip state."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from sportx.schemas import Betslip, UserBet

BET_ID_DELIMITER = "-"

_SCALE = Decimal(100)
_CENTS = Decimal("0.01")


class BetslipType(str, Enum):
    NONE = "none"
    SINGLE = "single"
    MULTIPLE = "multiple"
    SYSTEM = "system"


def make_bet_id(event_id: int, group_id: int | str, choice_id: int) -> str:
    return BET_ID_DELIMITER.join(str(part) for part in (event_id, group_id, choice_id))


def split_bet_id(bet_id: str) -> tuple[int, int, int]:
    """Return the (event, bet group, choice) identifiers encoded in ``bet_id``."""

    parts = bet_id.split(BET_ID_DELIMITER)
    if len(parts) != 3 or not all(part.isdigit() and part.isascii() for part in parts):
        raise ValueError(f"Malformed bet id: {bet_id!r}")
    event_id, group_id, choice_id = (int(part) for part in parts)
    return event_id, group_id, choice_id


def bet_group_prefix(bet_id: str) -> str:
    """Event and bet group segments of a bet id; two bets sharing it exclude each other."""

    return BET_ID_DELIMITER.join(bet_id.split(BET_ID_DELIMITER)[:2])


def classify_bets(bets: Sequence[UserBet]) -> BetslipType:
    if not bets:
        return BetslipType.NONE
    if len(bets) == 1:
        return BetslipType.SINGLE
    prefixes = [bet_group_prefix(bet.id) for bet in bets]
    if len(set(prefixes)) == len(prefixes):
        return BetslipType.MULTIPLE
    return BetslipType.SYSTEM


def classify_betslip(betslip: Betslip | None) -> BetslipType:
    if betslip is None:
        return BetslipType.NONE
    return classify_bets(betslip.bets)


def _scaled(value: Decimal | float | int | str) -> int:
    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    return int((amount * _SCALE).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def compute_payout(
    stake: Decimal | float | int | str, odds: Iterable[Decimal | float | int | str]
) -> Decimal:
    """Potential return of ``stake`` placed on every odd in ``odds``.

    Stake and odds are scaled to integer hundredths before multiplying so the
    product is exact and independent of the multiplication order; only the
    final quotient is rounded (half-up) to cents.
    """

    factors = [_scaled(stake), *(_scaled(odd) for odd in odds)]
    product = 1
    for factor in factors:
        product *= factor
    quotient = Decimal(product) / (_SCALE ** len(factors))
    return quotient.quantize(_CENTS, rounding=ROUND_HALF_UP)
