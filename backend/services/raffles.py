from __future__ import annotations

import json
import logging
import threading
from functools import lru_cache
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from sqlalchemy.orm import Session

from raffle.engine import Raffle
from raffle.entropy import EntropySource, SeededEntropySource, Web3BlockEntropySource
from raffle.errors import RaffleError, TransferFailed
from raffle.types import Notification, is_zero_account

from ..config import load_settings
from ..db import session_scope
from ..models import NotificationRecord, RaffleRecord, TicketRecord, TierRecord, TransferEntry

logger = logging.getLogger("raffle.backend")

T = TypeVar("T")


class RaffleNotFound(RaffleError):
    pass


@lru_cache(maxsize=1)
def get_entropy_source() -> EntropySource:
    settings = load_settings().entropy
    if settings.backend == "web3":
        return Web3BlockEntropySource.from_rpc_url(settings.rpc_url)
    if settings.seed:
        return SeededEntropySource.from_hex(settings.seed)
    return SeededEntropySource()


class SessionTransferGateway:
    """Books transfers as rows in the current database session.

    Rows only become durable when the surrounding session commits, so a
    failed operation leaves no trace in the transfer ledger.
    """

    def __init__(self, session: Session, raffle_id: Optional[int]) -> None:
        self._session = session
        self._raffle_id = raffle_id
        self._added: List[TransferEntry] = []

    def transfer(self, recipient: str, amount: int, memo: str = "") -> None:
        if is_zero_account(recipient):
            raise TransferFailed(f"cannot transfer {amount} to an empty account")
        entry = TransferEntry(raffle_id=self._raffle_id, recipient=recipient, amount=str(amount), memo=memo)
        self._session.add(entry)
        self._added.append(entry)

    def savepoint(self) -> int:
        return len(self._added)

    def rollback(self, token: int) -> None:
        for entry in self._added[token:]:
            self._session.expunge(entry)
        del self._added[token:]


class RaffleService:
    def __init__(self, entropy_factory: Callable[[], EntropySource] = get_entropy_source) -> None:
        self._entropy_factory = entropy_factory
        # Row locks are a no-op on SQLite; mutating operations also serialise in-process.
        self._write_lock = threading.Lock()

    def create_raffle(
        self,
        administrator: str,
        organizer: str,
        fee_recipient: str,
        fee_rate: int,
        pool_amount: int,
        ticket_price: int,
        tier_count: int,
        fee_before_prizes: Optional[bool] = None,
    ) -> Dict[str, object]:
        settings = load_settings()
        with self._write_lock, session_scope() as session:
            # Configuration never moves funds, so the gateway needs no raffle id yet.
            gateway = SessionTransferGateway(session, None)
            raffle = Raffle.configure(
                administrator=administrator,
                organizer=organizer,
                fee_recipient=fee_recipient,
                fee_rate=fee_rate,
                pool_amount=pool_amount,
                ticket_price=ticket_price,
                tier_count=tier_count,
                entropy=self._entropy_factory(),
                gateway=gateway,
                limits=settings.limits,
                fee_before_prizes=fee_before_prizes,
            )
            record = RaffleRecord()
            record.apply_snapshot(raffle.snapshot())
            session.add(record)
            session.flush()
            self._store(session, record, raffle, [])
            logger.info("Created raffle %s for organizer %s", record.id, organizer)
            return self._describe(session, record)

    def fill_tiers(
        self, raffle_id: int, caller: str, winner_counts: Sequence[int], payouts: Sequence[int]
    ) -> Dict[str, object]:
        _, summary = self._run(raffle_id, lambda raffle: raffle.fill_tiers(caller, winner_counts, payouts))
        return summary

    def purchase_tickets(self, raffle_id: int, buyer: str, quantity: int, payment: int) -> Tuple[int, Dict[str, object]]:
        return self._run(raffle_id, lambda raffle: raffle.purchase_tickets(buyer, quantity, payment))

    def terminate(self, raffle_id: int, caller: str) -> Dict[str, object]:
        _, summary = self._run(raffle_id, lambda raffle: raffle.terminate(caller))
        return summary

    def get_raffle(self, raffle_id: int) -> Dict[str, object]:
        with session_scope() as session:
            return self._describe(session, self._get_record(session, raffle_id))

    def list_raffles(self) -> List[Dict[str, object]]:
        with session_scope() as session:
            records = session.query(RaffleRecord).order_by(RaffleRecord.id.desc()).all()
            return [self._describe(session, record) for record in records]

    def get_ticket_owner(self, raffle_id: int, number: int) -> Optional[str]:
        with session_scope() as session:
            self._get_record(session, raffle_id)
            ticket = session.get(TicketRecord, (raffle_id, number))
            return ticket.owner if ticket else None

    def list_notifications(self, raffle_id: int) -> List[Dict[str, object]]:
        with session_scope() as session:
            self._get_record(session, raffle_id)
            rows = (
                session.query(NotificationRecord)
                .filter(NotificationRecord.raffle_id == raffle_id)
                .order_by(NotificationRecord.id)
                .all()
            )
            return [row.to_dict() for row in rows]

    def list_transfers(self, raffle_id: int) -> List[Dict[str, object]]:
        with session_scope() as session:
            self._get_record(session, raffle_id)
            rows = (
                session.query(TransferEntry)
                .filter(TransferEntry.raffle_id == raffle_id)
                .order_by(TransferEntry.id)
                .all()
            )
            return [row.to_dict() for row in rows]

    # --------------------------------------------------------------------- #
    # Internal helpers
    # --------------------------------------------------------------------- #

    def _run(self, raffle_id: int, action: Callable[[Raffle], T]) -> Tuple[T, Dict[str, object]]:
        with self._write_lock, session_scope() as session:
            record = self._get_record(session, raffle_id, lock=True)
            tiers = self._tiers(session, raffle_id)
            tickets = session.query(TicketRecord).filter(TicketRecord.raffle_id == raffle_id).all()
            gateway = SessionTransferGateway(session, raffle_id)
            raffle = Raffle.restore(record.to_snapshot(tiers, tickets), self._entropy_factory(), gateway)

            journal: List[Notification] = []
            raffle.subscribe(journal.append)
            result = action(raffle)
            self._store(session, record, raffle, journal, known_tickets={t.number for t in tickets})
            return result, self._describe(session, record)

    @staticmethod
    def _get_record(session: Session, raffle_id: int, lock: bool = False) -> RaffleRecord:
        if lock:
            # Serialises operations on one raffle where the database supports row locks.
            record = (
                session.query(RaffleRecord).filter(RaffleRecord.id == raffle_id).with_for_update().one_or_none()
            )
        else:
            record = session.get(RaffleRecord, raffle_id)
        if record is None:
            raise RaffleNotFound(f"raffle {raffle_id} not found")
        return record

    @staticmethod
    def _tiers(session: Session, raffle_id: int) -> List[TierRecord]:
        return (
            session.query(TierRecord)
            .filter(TierRecord.raffle_id == raffle_id)
            .order_by(TierRecord.rank)
            .all()
        )

    def _store(
        self,
        session: Session,
        record: RaffleRecord,
        raffle: Raffle,
        journal: List[Notification],
        known_tickets: Optional[set] = None,
    ) -> None:
        snapshot = raffle.snapshot()
        record.apply_snapshot(snapshot)

        existing = {tier.rank: tier for tier in self._tiers(session, record.id)}
        for rank, data in enumerate(snapshot["tiers"]):
            tier = existing.get(rank)
            if tier is None:
                tier = TierRecord(raffle_id=record.id, rank=rank)
                session.add(tier)
            tier.winner_count = data["winner_count"]
            tier.payout = str(data["payout"])
            tier.set_numbers(data["winning_numbers"])

        known_tickets = known_tickets or set()
        for number, owner in snapshot["ledger"]["owners"].items():
            if int(number) not in known_tickets:
                session.add(TicketRecord(raffle_id=record.id, number=int(number), owner=owner))

        for notification in journal:
            payload = notification.to_dict()
            event = payload.pop("event")
            session.add(NotificationRecord(raffle_id=record.id, event=event, payload=json.dumps(payload)))
        session.flush()

    def _describe(self, session: Session, record: RaffleRecord) -> Dict[str, object]:
        tiers = self._tiers(session, record.id)
        return {
            "raffle_id": record.id,
            "status": record.status,
            "administrator": record.administrator,
            "organizer": record.organizer,
            "fee_recipient": record.fee_recipient,
            "fee_rate": record.fee_rate_pending,
            "pool_amount": record.pool_amount,
            "ticket_price": record.ticket_price,
            "tier_count": record.tier_count,
            "number_of_tickets": record.number_of_tickets,
            "current_ticket": record.current_ticket,
            "total_collected": record.total_collected,
            "tiers": [
                {
                    "rank": tier.rank,
                    "winner_count": tier.winner_count,
                    "payout": tier.payout,
                    "winning_numbers": tier.get_numbers(),
                }
                for tier in tiers
            ],
        }
