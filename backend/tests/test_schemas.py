from __future__ import annotations

import pytest
from pydantic import ValidationError

from sportx.schemas import Betslip, SportEvent, UserBet


@pytest.mark.parametrize("bet_id", ["0-0-0", "3340789-953125720-4194768007"])
def test_user_bet_accepts_three_numbers(bet_id):
    """Verify that well-formed bet ids are accepted."""
    assert UserBet(id=bet_id).id == bet_id


@pytest.mark.parametrize(
    "bet_id",
    ["", "1-2", "1-2-3-4", "1-2-x", "-1-2-3", "1 -2-3", "1-2-3\n", "١-٢-٣"],
)
def test_user_bet_rejects_malformed_ids(bet_id):
    """Verify that anything other than three ASCII integers is rejected."""
    with pytest.raises(ValidationError):
        UserBet(id=bet_id)


def test_betslip_is_immutable():
    """Verify that betslips are replaced rather than mutated."""
    betslip = Betslip(bets=[UserBet(id="1-2-3")])
    with pytest.raises(ValidationError):
        betslip.bets = []


def test_betslip_structural_equality():
    """Verify that betslips compare by content."""
    assert Betslip(bets=[UserBet(id="1-2-3")]) == Betslip.model_validate(
        {"bets": [{"id": "1-2-3"}]}
    )
    assert Betslip() == Betslip(bets=[])


def test_sport_event_parses_catalog_entry(catalog_payload):
    """Verify that a catalog event is parsed with its bet groups."""
    event = SportEvent.model_validate(catalog_payload["events"][0])

    assert event.id == 3340789
    assert event.label == "Arsenal - Chelsea"
    assert event.start.utcoffset().total_seconds() == 3600
    assert event.sport.icon == "football"
    group = event.bet["953125720"]
    assert group.question.label == "Match result"
    assert [choice.odd for choice in group.choices] == [1.5, 3.8, 5.25]


def test_sport_event_requires_timezone(catalog_payload):
    """Verify that start times without offset are rejected."""
    payload = dict(catalog_payload["events"][0], start="2021-03-24T20:45:00")
    with pytest.raises(ValidationError):
        SportEvent.model_validate(payload)


def test_sport_event_label_is_optional(catalog_payload):
    """Verify that events without a label are still valid."""
    payload = {key: value for key, value in catalog_payload["events"][1].items() if key != "label"}
    assert SportEvent.model_validate(payload).label is None
