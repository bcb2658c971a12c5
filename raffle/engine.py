from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from . import arithmetic
from .config import RaffleConfig, RaffleLimits
from .draw import draw_winners
from .entropy.base import EntropySource
from .errors import (
    AlreadyConfigured,
    IncorrectPayment,
    InvalidConfiguration,
    OversubscribedTiers,
    RaffleTerminated,
    ReentrantCall,
    SaleNotOpen,
    SoldOut,
    TierCountMismatch,
    Unauthorized,
)
from .payout import TransferGateway, compute_fee, distribute
from .state import RaffleState
from .types import (
    Notification,
    PrizeTier,
    RaffleRetired,
    RaffleStatus,
    Refund,
    SettlementPaid,
    TicketsPurchased,
    is_zero_account,
)

logger = logging.getLogger("raffle.engine")

Subscriber = Callable[[Notification], None]


class Raffle:
    """One raffle round, from configuration to retirement.

    Every public operation is transactional: it either applies all of its
    mutations, transfers and notifications or none of them.
    """

    def __init__(self, state: RaffleState, entropy: EntropySource, gateway: TransferGateway) -> None:
        self._state = state
        self._entropy = entropy
        self._gateway = gateway
        self._subscribers: List[Subscriber] = []
        self._pending: Optional[List[Notification]] = None

    @classmethod
    def configure(
        cls,
        administrator: str,
        organizer: str,
        fee_recipient: str,
        fee_rate: int,
        pool_amount: int,
        ticket_price: int,
        tier_count: int,
        *,
        entropy: EntropySource,
        gateway: TransferGateway,
        limits: Optional[RaffleLimits] = None,
        fee_before_prizes: Optional[bool] = None,
    ) -> "Raffle":
        config = RaffleConfig.create(
            organizer=organizer,
            fee_recipient=fee_recipient,
            fee_rate=fee_rate,
            pool_amount=pool_amount,
            ticket_price=ticket_price,
            tier_count=tier_count,
            administrator=administrator,
            limits=limits,
            fee_before_prizes=fee_before_prizes,
        )
        state = RaffleState.new(config)
        state.status = RaffleStatus.FILLING
        logger.info(
            "Raffle configured: pool=%s price=%s tickets=%s tiers=%s fee=%s%%",
            config.pool_amount,
            config.ticket_price,
            config.number_of_tickets,
            config.tier_count,
            config.fee_rate,
        )
        return cls(state, entropy, gateway)

    @classmethod
    def restore(cls, snapshot: dict, entropy: EntropySource, gateway: TransferGateway) -> "Raffle":
        return cls(RaffleState.from_dict(snapshot), entropy, gateway)

    def snapshot(self) -> dict:
        return self._state.to_dict()

    def subscribe(self, callback: Subscriber) -> None:
        self._subscribers.append(callback)

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #

    def fill_tiers(self, caller: str, winner_counts: Sequence[int], payouts: Sequence[int]) -> None:
        with self._operation():
            state = self._state
            self._require_live()
            self._require_admin(caller)
            if state.tiers:
                raise AlreadyConfigured("prize tiers were already filled")

            tier_count = state.config.tier_count
            if len(winner_counts) != tier_count or len(payouts) != tier_count:
                raise TierCountMismatch(
                    f"expected {tier_count} tier(s), got {len(winner_counts)} winner counts "
                    f"and {len(payouts)} payouts"
                )

            total_winners = 0
            total_payout = 0
            for count, payout in zip(winner_counts, payouts):
                count, payout = arithmetic.as_uint(count), arithmetic.as_uint(payout)
                if count == 0:
                    raise InvalidConfiguration("every tier needs at least one winner")
                total_winners = arithmetic.add(total_winners, count)
                total_payout = arithmetic.add(total_payout, arithmetic.mul(count, payout))

            number_of_tickets = state.ledger.number_of_tickets
            if total_winners > number_of_tickets:
                raise OversubscribedTiers(
                    f"{total_winners} winner slots exceed {number_of_tickets} tickets"
                )

            pool = state.config.pool_amount
            payable = arithmetic.sub(pool, compute_fee(pool, state.fee_rate_pending))
            if total_payout > payable:
                raise InvalidConfiguration(
                    f"tier payouts {total_payout} exceed the {payable} left after fees"
                )

            state.tiers = [PrizeTier(winner_count=c, payout=p) for c, p in zip(winner_counts, payouts)]
            state.status = RaffleStatus.SELLING
            logger.info("Filled %s prize tier(s) with %s winner slot(s)", tier_count, total_winners)

    def purchase_tickets(self, buyer: str, quantity: int, payment: int) -> int:
        with self._operation():
            state = self._state
            ledger = state.ledger
            price = state.config.ticket_price

            self._require_live()
            if state.status == RaffleStatus.FILLING:
                raise SaleNotOpen("prize tiers must be filled before tickets are sold")
            if ledger.sold_out:
                raise SoldOut("all tickets have been sold")
            if is_zero_account(buyer):
                raise Unauthorized("purchases need a buyer account")
            if arithmetic.as_uint(quantity) < 1:
                raise IncorrectPayment("at least one ticket must be purchased")
            expected = arithmetic.mul(price, quantity)
            if arithmetic.as_uint(payment) != expected:
                raise IncorrectPayment(f"payment {payment} does not match {quantity} x {price}")

            issued = 0
            for _ in range(quantity):
                ledger.issue(buyer, price)
                issued += 1
                if ledger.sold_out:
                    break
                state.accumulator.mix(self._entropy)

            self._emit(TicketsPurchased(buyer=buyer, ticket_count=ledger.current_ticket, quantity=issued))
            logger.info("Issued %s ticket(s) to %s; %s sold", issued, buyer, ledger.current_ticket)

            if ledger.sold_out:
                logger.info("Sale complete after ticket %s; drawing winners", ledger.current_ticket)
                draw_winners(state, self._entropy, self._emit)

            refund = arithmetic.mul(price, quantity - issued)

            if state.status == RaffleStatus.DRAWING:
                distribute(state, self._gateway, self._emit)

            if refund:
                self._gateway.transfer(buyer, refund, memo="refund")
                self._emit(Refund(buyer=buyer, amount=refund))
            return issued

    def terminate(self, caller: str) -> None:
        with self._operation():
            self._require_admin(caller)
            state = self._state
            if state.terminated:
                return
            held = state.ledger.total_collected
            state.ledger.reset()
            state.status = RaffleStatus.TERMINATED
            administrator = state.config.administrator
            if held:
                self._gateway.transfer(administrator, held, memo="termination")
                self._emit(SettlementPaid(recipient=administrator, amount=held))
            self._emit(RaffleRetired(reason="terminated by administrator"))
            logger.warning("Raffle terminated by %s; %s swept to administrator", caller, held)

    # ------------------------------------------------------------------ #
    # Read-only accessors
    # ------------------------------------------------------------------ #

    @property
    def status(self) -> RaffleStatus:
        return self._state.status

    @property
    def config(self) -> RaffleConfig:
        return self._state.config

    @property
    def ticket_price(self) -> int:
        return self._state.config.ticket_price

    @property
    def pool_amount(self) -> int:
        return self._state.config.pool_amount

    @property
    def tier_count(self) -> int:
        return self._state.config.tier_count

    @property
    def number_of_tickets(self) -> int:
        return self._state.ledger.number_of_tickets

    @property
    def current_ticket(self) -> int:
        return self._state.ledger.current_ticket

    @property
    def total_collected(self) -> int:
        return self._state.ledger.total_collected

    @property
    def fee_rate(self) -> int:
        return self._state.fee_rate_pending

    def tier(self, index: int) -> Tuple[int, int]:
        tier = self._state.tiers[index]
        return tier.winner_count, tier.payout

    def winning_numbers(self, index: int) -> List[Optional[int]]:
        return list(self._state.tiers[index].winning_numbers)

    def owner_of(self, ticket_number: int) -> Optional[str]:
        return self._state.ledger.owner_of(ticket_number)

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _require_admin(self, caller: str) -> None:
        if is_zero_account(caller) or caller.lower() != self._state.config.administrator.lower():
            raise Unauthorized("caller is not the raffle administrator")

    def _require_live(self) -> None:
        if self._state.terminated:
            raise RaffleTerminated("raffle has been retired")

    def _emit(self, notification: Notification) -> None:
        if self._pending is None:
            raise RuntimeError("notifications can only be emitted inside an operation")
        self._pending.append(notification)

    @contextmanager
    def _operation(self) -> Iterator[None]:
        if self._pending is not None:
            raise ReentrantCall("another raffle operation is still running")
        backup = copy.deepcopy(self._state)
        savepoint = self._gateway.savepoint()
        self._pending = []
        try:
            self._entropy.advance()
            yield
        except Exception:
            self._state = backup
            self._gateway.rollback(savepoint)
            self._pending = None
            raise
        delivered, self._pending = self._pending, None
        for notification in delivered:
            for callback in self._subscribers:
                try:
                    callback(notification)
                except Exception:
                    logger.exception("Subscriber failed on %s", type(notification).__name__)
