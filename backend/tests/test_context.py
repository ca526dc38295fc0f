from __future__ import annotations

from unittest.mock import MagicMock

from sportx.context import build_context
from sportx.domain import BetslipType

BET_A = "3340789-953125720-4194768007"
BET_B = "3340790-953125800-4194769001"


def test_build_context_wires_services(test_settings):
    """Verify that a context exposes every storage backend and the loaded catalog."""
    with build_context(test_settings) as context:
        assert context.storage.available_storages() == (
            "localStorage",
            "memoryStorage",
            "sessionStorage",
        )
        assert len(context.relays) == 2
        assert [event.id for event in context.sport.events] == [3340789, 3340790]
        assert context.betslip.betslip_type is BetslipType.NONE
        assert context.listener.allowed_origins == frozenset({"https://sportx.test"})

    assert context.closed
    assert context.betslip.state.disposed


def test_build_context_uses_given_catalog_source(test_settings):
    """Verify that an injected catalog source replaces the configured client."""
    source = MagicMock()
    source.fetch_events.return_value = []

    with build_context(test_settings, catalog_source=source) as context:
        assert context.catalog_client is None
        assert context.sport.events == []
    source.fetch_events.assert_called_once_with()


def test_build_context_can_skip_catalog_loading(test_settings):
    """Verify that load_catalog=False leaves the catalog empty."""
    with build_context(test_settings, load_catalog=False) as context:
        assert context.sport.events == []


def test_contexts_share_local_storage_but_not_session_storage(test_settings):
    """Verify cross-context sync through the shared database."""
    with build_context(test_settings) as first, build_context(test_settings) as second:
        first.betslip.add_user_bet(BET_A)
        first.storage.from_storage("sessionStorage").set_item("draft", {"stake": "10"})

        assert second.sync() == 1
        assert [bet.id for bet in second.betslip.user_bets] == [BET_A]
        assert second.storage.from_storage("sessionStorage").get_item("draft") is None

        second.betslip.add_user_bet(BET_B)
        assert second.sync() == 0
        assert first.sync() == 1
        assert first.betslip.betslip_type is BetslipType.MULTIPLE


def test_context_start_sync_polls_on_scheduler(test_settings, scheduler):
    """Verify that periodic sync applies foreign writes without explicit polling."""
    with build_context(test_settings) as first, build_context(test_settings) as second:
        second.start_sync(scheduler)
        first.betslip.add_user_bet(BET_A)

        scheduler.advance(test_settings.storage_poll_interval_seconds)

        assert [bet.id for bet in second.betslip.user_bets] == [BET_A]
        second.stop_sync()
        assert not any(relay.running for relay in second.relays)


def test_close_is_idempotent(test_settings):
    """Verify that closing twice is harmless."""
    context = build_context(test_settings)
    context.close()
    context.close()
    assert context.closed
