from __future__ import annotations

import argparse
import itertools
import json
import logging
import sys
from typing import List, Optional, Sequence

from .config import load_limits
from .engine import Raffle
from .entropy import SeededEntropySource
from .errors import RaffleError
from .payout import InMemoryTransferGateway
from .types import Notification, RaffleStatus, TicketsPurchased

ADMIN = "0x" + "a" * 40
ORGANIZER = "0x" + "b" * 40
FEE_RECIPIENT = "0x" + "c" * 40


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stderr,
    )


def buyer_accounts(count: int) -> List[str]:
    return ["0x" + format(index + 1, "040x") for index in range(count)]


def parse_tiers(raw: Sequence[str]) -> tuple:
    winner_counts, payouts = [], []
    for item in raw:
        try:
            count, payout = item.split(":", 1)
            winner_counts.append(int(count))
            payouts.append(int(payout))
        except ValueError as exc:
            raise argparse.ArgumentTypeError(f"tier must look like WINNERS:PAYOUT, got {item!r}") from exc
    return winner_counts, payouts


def simulate(args: argparse.Namespace) -> dict:
    """Run a whole round in memory and return the settlement summary."""
    logger = logging.getLogger("raffle.cli")
    winner_counts, payouts = parse_tiers(args.tier)
    entropy = SeededEntropySource.from_hex(args.seed) if args.seed else SeededEntropySource()
    gateway = InMemoryTransferGateway()

    raffle = Raffle.configure(
        administrator=ADMIN,
        organizer=ORGANIZER,
        fee_recipient=FEE_RECIPIENT,
        fee_rate=args.fee_rate,
        pool_amount=args.pool,
        ticket_price=args.price,
        tier_count=len(winner_counts),
        entropy=entropy,
        gateway=gateway,
        limits=load_limits(args.env_file),
        fee_before_prizes=not args.fee_last,
    )
    notifications: List[Notification] = []
    raffle.subscribe(notifications.append)
    raffle.fill_tiers(ADMIN, winner_counts, payouts)

    buyers = itertools.cycle(buyer_accounts(args.buyers))
    while raffle.status == RaffleStatus.SELLING:
        remaining = raffle.number_of_tickets - raffle.current_ticket
        quantity = min(args.batch, remaining)
        buyer = next(buyers)
        raffle.purchase_tickets(buyer, quantity, raffle.ticket_price * quantity)
        logger.debug("%s bought %s ticket(s)", buyer, quantity)

    return {
        "number_of_tickets": raffle.number_of_tickets,
        "entropy_seed": "0x" + entropy.seed.hex(),
        "tiers": [
            {
                "tier": index,
                "payout": raffle.tier(index)[1],
                "winning_numbers": raffle.winning_numbers(index),
            }
            for index in range(raffle.tier_count)
        ],
        "balances": dict(gateway.balances),
        "notifications": [n.to_dict() for n in notifications if not isinstance(n, TicketsPurchased)],
    }


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Simulate a full raffle round in memory")
    parser.add_argument("--pool", type=int, required=True, help="Total pool amount.")
    parser.add_argument("--price", type=int, required=True, help="Ticket price.")
    parser.add_argument(
        "--tier",
        action="append",
        required=True,
        help="Prize tier as WINNERS:PAYOUT; repeat once per tier, highest rank first.",
    )
    parser.add_argument("--fee-rate", type=int, default=0, help="Fee percentage (0-99).")
    parser.add_argument("--fee-last", action="store_true", help="Pay the fee after the winners.")
    parser.add_argument("--buyers", type=int, default=5, help="Number of synthetic buyers.")
    parser.add_argument("--batch", type=int, default=1, help="Tickets bought per purchase call.")
    parser.add_argument("--seed", type=str, default=None, help="Hex entropy seed for a reproducible round.")
    parser.add_argument("--env-file", type=str, default=None, help="Path to .env file with raffle limits")
    parser.add_argument(
        "--verbose", action="store_true", help="Enable debug logging (default INFO)."
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)
    try:
        summary = simulate(args)
    except (RaffleError, argparse.ArgumentTypeError) as exc:
        logging.getLogger("raffle.cli").error("Simulation failed: %s", exc)
        return 1
    print(json.dumps(summary, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
