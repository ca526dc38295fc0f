"""Betslip classification and payout rules."""

from .models import (
    BET_ID_DELIMITER,
    BetslipType,
    bet_group_prefix,
    classify_betslip,
    classify_bets,
    compute_payout,
    make_bet_id,
    split_bet_id,
)

__all__ = [
    "BET_ID_DELIMITER",
    "BetslipType",
    "bet_group_prefix",
    "classify_betslip",
    "classify_bets",
    "compute_payout",
    "make_bet_id",
    "split_bet_id",
]
