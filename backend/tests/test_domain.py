from __future__ import annotations

from decimal import Decimal

import pytest

from sportx.domain import (
    BetslipType,
    bet_group_prefix,
    classify_betslip,
    classify_bets,
    compute_payout,
    make_bet_id,
    split_bet_id,
)
from sportx.schemas import Betslip, UserBet


def _bets(*ids: str) -> list[UserBet]:
    return [UserBet(id=bet_id) for bet_id in ids]


@pytest.mark.parametrize(
    ("ids", "expected"),
    [
        ((), BetslipType.NONE),
        (("1-10-100",), BetslipType.SINGLE),
        (("1-10-100", "2-20-200"), BetslipType.MULTIPLE),
        (("1-10-100", "1-11-110"), BetslipType.MULTIPLE),
        (("1-10-100", "1-10-101"), BetslipType.SYSTEM),
        (("1-10-100", "2-20-200", "1-10-102"), BetslipType.SYSTEM),
    ],
)
def test_classify_bets(ids, expected):
    """Verify ticket type classification by bet count and event-group prefixes."""
    assert classify_bets(_bets(*ids)) is expected


def test_classify_betslip_handles_missing_betslip():
    """Verify that no betslip is classified as NONE."""
    assert classify_betslip(None) is BetslipType.NONE
    assert classify_betslip(Betslip(bets=_bets("1-10-100"))) is BetslipType.SINGLE


def test_betslip_type_values():
    """Verify the string values exposed to consumers."""
    assert [member.value for member in BetslipType] == ["none", "single", "multiple", "system"]


def test_bet_id_helpers():
    """Verify bet id composition and decomposition."""
    bet_id = make_bet_id(3340789, "953125720", 4194768007)
    assert bet_id == "3340789-953125720-4194768007"
    assert split_bet_id(bet_id) == (3340789, 953125720, 4194768007)
    assert bet_group_prefix(bet_id) == "3340789-953125720"


@pytest.mark.parametrize("bet_id", ["", "1-2", "1-2-3-4", "a-2-3", "1--3", "-1-2-3", "1-2-3 "])
def test_split_bet_id_rejects_malformed_ids(bet_id):
    """Verify that ids not made of three integers are rejected."""
    with pytest.raises(ValueError):
        split_bet_id(bet_id)


def test_compute_payout_multiplies_stake_and_odds():
    """Verify the payout of a 10.00 stake on odds 1.50 and 2.00."""
    assert compute_payout(Decimal("10.00"), [1.50, 2.00]) == Decimal("30.00")


def test_compute_payout_single_bet():
    """Verify the payout of a single selection."""
    assert compute_payout("5", ["3.8"]) == Decimal("19.00")


def test_compute_payout_is_order_independent():
    """Verify that permuting the odds never changes the payout."""
    odds = [1.72, 2.05, 3.4]
    assert compute_payout(7, odds) == compute_payout(7, list(reversed(odds)))
    assert compute_payout(7, odds) == Decimal("83.92")


def test_compute_payout_rounds_half_up():
    """Verify half-up rounding of the scaled inputs and of the result."""
    assert compute_payout(Decimal("3.333"), [Decimal("1.005")]) == Decimal("3.36")
    assert compute_payout(Decimal("0.01"), [Decimal("1.5")]) == Decimal("0.02")


def test_compute_payout_avoids_float_artifacts():
    """Verify that binary float noise never leaks into the payout."""
    assert compute_payout(0.1, [0.2, 3]) == Decimal("0.06")
