from __future__ import annotations

import copy
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol

from . import arithmetic
from .errors import TransferFailed
from .state import RaffleState
from .types import FeePaid, Notification, PrizePaid, RaffleStatus, SettlementPaid, is_zero_account

logger = logging.getLogger("raffle.payout")

PERCENT = 100


class TransferGateway(Protocol):
    """Moves native currency out of the raffle.

    ``transfer`` either moves the full amount or raises ``TransferFailed``.
    ``savepoint``/``rollback`` let the raffle undo transfers made earlier in an
    operation that fails later on.
    """

    def transfer(self, recipient: str, amount: int, memo: str = "") -> None:
        ...

    def savepoint(self) -> Any:
        ...

    def rollback(self, token: Any) -> None:
        ...


@dataclass(frozen=True)
class TransferRecord:
    recipient: str
    amount: int
    memo: str = ""


class InMemoryTransferGateway:
    """Balance book kept in process; used by the CLI and the tests."""

    def __init__(self, rejected: Iterable[str] = ()) -> None:
        self.balances: Dict[str, int] = defaultdict(int)
        self.transfers: List[TransferRecord] = []
        self.rejected = {account.lower() for account in rejected}

    def transfer(self, recipient: str, amount: int, memo: str = "") -> None:
        if is_zero_account(recipient) or recipient.lower() in self.rejected:
            raise TransferFailed(f"transfer of {amount} to {recipient!r} rejected")
        self.balances[recipient] = arithmetic.add(self.balances[recipient], amount)
        self.transfers.append(TransferRecord(recipient=recipient, amount=amount, memo=memo))

    def savepoint(self):
        return copy.deepcopy(self.balances), len(self.transfers)

    def rollback(self, token) -> None:
        balances, count = token
        self.balances = balances
        del self.transfers[count:]

    def total_paid(self) -> int:
        return sum(record.amount for record in self.transfers)


@dataclass(frozen=True)
class PlannedTransfer:
    recipient: str
    amount: int
    notification: Notification
    memo: str


def compute_fee(total_collected: int, fee_rate: int) -> int:
    return arithmetic.div(arithmetic.mul(total_collected, fee_rate), PERCENT)


def plan_distribution(state: RaffleState) -> List[PlannedTransfer]:
    """Apply every distribution mutation to ``state`` and return the transfers.

    The returned transfers are in payment order; nothing has been paid yet
    when this returns.
    """
    config = state.config
    ledger = state.ledger

    fee_transfers: List[PlannedTransfer] = []
    if state.fee_rate_pending:
        fee = compute_fee(ledger.total_collected, state.fee_rate_pending)
        state.fee_rate_pending = 0
        ledger.deduct(fee)
        fee_transfers.append(
            PlannedTransfer(
                recipient=config.fee_recipient,
                amount=fee,
                notification=FeePaid(recipient=config.fee_recipient, amount=fee),
                memo="fee",
            )
        )

    prize_transfers: List[PlannedTransfer] = []
    for tier_index, tier in enumerate(state.tiers):
        for ticket_number in tier.winning_numbers:
            owner = ledger.owner_of(ticket_number)
            if owner is None:
                raise TransferFailed(f"winning ticket {ticket_number} has no recorded owner")
            ledger.deduct(tier.payout)
            prize_transfers.append(
                PlannedTransfer(
                    recipient=owner,
                    amount=tier.payout,
                    notification=PrizePaid(
                        recipient=owner, ticket_number=ticket_number, amount=tier.payout, tier=tier_index
                    ),
                    memo=f"prize:{tier_index}:{ticket_number}",
                )
            )

    remainder = ledger.total_collected
    ledger.deduct(remainder)
    settlement = PlannedTransfer(
        recipient=config.organizer,
        amount=remainder,
        notification=SettlementPaid(recipient=config.organizer, amount=remainder),
        memo="settlement",
    )

    ledger.reset()
    state.status = RaffleStatus.TERMINATED

    if config.fee_before_prizes:
        return fee_transfers + prize_transfers + [settlement]
    return prize_transfers + fee_transfers + [settlement]


def distribute(
    state: RaffleState,
    gateway: TransferGateway,
    emit: Callable[[Notification], None],
) -> Optional[List[PlannedTransfer]]:
    if not state.gates_open:
        logger.debug("Payout gate closed; nothing distributed")
        return None

    state.status = RaffleStatus.DISTRIBUTING
    planned = plan_distribution(state)
    for item in planned:
        if item.amount:
            gateway.transfer(item.recipient, item.amount, memo=item.memo)
        emit(item.notification)
        logger.info("Paid %s to %s (%s)", item.amount, item.recipient, item.memo)
    return planned
