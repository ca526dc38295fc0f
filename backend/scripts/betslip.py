import argparse
import asyncio
import sys
from decimal import Decimal, InvalidOperation

from loguru import logger
from pydantic import ValidationError

from sportx.context import AppContext, build_context
from sportx.core.config import get_settings
from sportx.core.logging import configure_logging
from sportx.domain import compute_payout, make_bet_id
from sportx.helpers import format_date


def _decimal(value: str) -> Decimal:
    try:
        amount = Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"invalid stake: {value!r}") from exc
    if amount <= 0:
        raise argparse.ArgumentTypeError("stake must be positive")
    return amount


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Inspect and edit the shared betslip")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("show", help="Print the betslip and its ticket type")
    for name, help_text in (
        ("add", "Add a bet (event-group-choice) unless already present"),
        ("remove", "Remove a bet when present"),
        ("toggle", "Add the bet, or remove it when already present"),
    ):
        command = subparsers.add_parser(name, help=help_text)
        command.add_argument("bet_id", help="Bet identifier, e.g. 3340789-953125720-4194768007")
    subparsers.add_parser("clear", help="Remove every bet from the betslip")

    payout = subparsers.add_parser("payout", help="Compute the potential payout of the betslip")
    payout.add_argument("--stake", type=_decimal, required=True, help="Stake, e.g. 10.00")

    subparsers.add_parser("events", help="List catalog events and their bet identifiers")

    watch = subparsers.add_parser("watch", help="Follow betslip changes made by other processes")
    watch.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Stop after N seconds (runs until interrupted by default)",
    )
    return parser.parse_args(argv)


def _print_betslip(context: AppContext) -> None:
    bets = context.betslip.user_bets
    print(f"Ticket type: {context.betslip.betslip_type.value}")
    if not bets:
        print("Betslip is empty")
        return
    for bet in bets:
        choice = context.sport.find_choice(bet.id)
        detail = f"{choice.actor.label} @ {choice.odd:.2f}" if choice else "not in catalog"
        print(f"  {bet.id}  {detail}")


def _print_events(context: AppContext) -> None:
    for event in context.sport.events:
        print(f"{event.sport.label} / {event.category.label} / {event.competition.label}")
        print(f"  {event.label}  ({format_date(event.start)})")
        for group_id, group in event.bet.items():
            print(f"    {group.question.label}")
            for choice in group.choices:
                bet_id = make_bet_id(event.id, group_id, choice.id)
                print(f"      {bet_id}  {choice.actor.label} ({choice.odd})")


def _print_payout(context: AppContext, stake: Decimal) -> int:
    bet_ids = [bet.id for bet in context.betslip.user_bets]
    if not bet_ids:
        print("Betslip is empty")
        return 1
    try:
        odds = context.sport.odds_for(bet_ids)
    except KeyError as exc:
        logger.error("Bet {} is not in the catalog", exc.args[0])
        return 1
    print(f"Ticket type: {context.betslip.betslip_type.value}")
    print(f"Potential payout: {compute_payout(stake, odds)}")
    return 0


async def _watch(context: AppContext, duration: float | None) -> None:
    subscription = context.betslip.observe_user_bets().subscribe(
        lambda bets: print("Betslip:", ", ".join(bet.id for bet in bets) or "(empty)")
    )
    context.start_sync()
    try:
        if duration is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(duration)
    finally:
        context.stop_sync()
        subscription.unsubscribe()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    configure_logging(settings)

    with build_context(settings) as context:
        try:
            if args.command == "add":
                context.betslip.add_user_bet(args.bet_id)
            elif args.command == "remove":
                context.betslip.remove_bet(args.bet_id)
            elif args.command == "toggle":
                context.betslip.toggle_user_bet(args.bet_id)
            elif args.command == "clear":
                context.betslip.clear_bets()
        except ValidationError:
            logger.error("Invalid bet id: {}", args.bet_id)
            return 2

        if args.command == "events":
            _print_events(context)
        elif args.command == "payout":
            return _print_payout(context, args.stake)
        elif args.command == "watch":
            try:
                asyncio.run(_watch(context, args.duration))
            except KeyboardInterrupt:
                logger.info("Stopped watching")
        else:
            _print_betslip(context)
    return 0


if __name__ == "__main__":
    sys.exit(main())
