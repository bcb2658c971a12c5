from __future__ import annotations

import datetime as dt
import json
from typing import List, Optional

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# uint256 amounts do not fit SQLite's 64-bit INTEGER; they are stored as decimal text.
AMOUNT = String(78)


class RaffleRecord(Base):
    __tablename__ = "raffles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    status = Column(String(16), nullable=False)
    administrator = Column(String(64), nullable=False)
    organizer = Column(String(64), nullable=False)
    fee_recipient = Column(String(64), nullable=False)
    fee_rate = Column(Integer, nullable=False)
    fee_rate_pending = Column(Integer, nullable=False)
    fee_before_prizes = Column(Boolean, nullable=False, default=True)
    pool_amount = Column(AMOUNT, nullable=False)
    ticket_price = Column(AMOUNT, nullable=False)
    tier_count = Column(Integer, nullable=False)
    number_of_tickets = Column(AMOUNT, nullable=False)
    current_ticket = Column(Integer, nullable=False, default=0)
    total_collected = Column(AMOUNT, nullable=False, default="0")
    accumulator_digest = Column(String(66), nullable=False)
    accumulator_marker = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=dt.datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=dt.datetime.utcnow, onupdate=dt.datetime.utcnow, nullable=False)

    def apply_snapshot(self, snapshot: dict) -> None:
        config = snapshot["config"]
        ledger = snapshot["ledger"]
        self.status = snapshot["status"]
        self.administrator = config["administrator"]
        self.organizer = config["organizer"]
        self.fee_recipient = config["fee_recipient"]
        self.fee_rate = config["fee_rate"]
        self.fee_rate_pending = snapshot["fee_rate_pending"]
        self.fee_before_prizes = config["fee_before_prizes"]
        self.pool_amount = str(config["pool_amount"])
        self.ticket_price = str(config["ticket_price"])
        self.tier_count = config["tier_count"]
        self.number_of_tickets = str(ledger["number_of_tickets"])
        self.current_ticket = ledger["current_ticket"]
        self.total_collected = str(ledger["total_collected"])
        self.accumulator_digest = snapshot["accumulator"]["digest"]
        self.accumulator_marker = snapshot["accumulator"]["marker"]

    def to_snapshot(self, tiers: List["TierRecord"], tickets: List["TicketRecord"]) -> dict:
        return {
            "config": {
                "pool_amount": int(self.pool_amount),
                "ticket_price": int(self.ticket_price),
                "tier_count": self.tier_count,
                "fee_rate": self.fee_rate,
                "organizer": self.organizer,
                "fee_recipient": self.fee_recipient,
                "administrator": self.administrator,
                "fee_before_prizes": self.fee_before_prizes,
            },
            "ledger": {
                "number_of_tickets": int(self.number_of_tickets),
                "current_ticket": self.current_ticket,
                "total_collected": int(self.total_collected),
                "owners": {str(t.number): t.owner for t in tickets},
            },
            "accumulator": {"digest": self.accumulator_digest, "marker": self.accumulator_marker},
            "tiers": [tier.to_dict() for tier in sorted(tiers, key=lambda t: t.rank)],
            "status": self.status,
            "fee_rate_pending": self.fee_rate_pending,
        }


class TierRecord(Base):
    __tablename__ = "prize_tiers"

    raffle_id = Column(Integer, primary_key=True)
    rank = Column(Integer, primary_key=True)
    winner_count = Column(Integer, nullable=False)
    payout = Column(AMOUNT, nullable=False)
    winning_numbers = Column(Text, nullable=False, default="[]")

    def set_numbers(self, numbers: List[Optional[int]]) -> None:
        self.winning_numbers = json.dumps(numbers)

    def get_numbers(self) -> List[Optional[int]]:
        return json.loads(self.winning_numbers)

    def to_dict(self) -> dict:
        return {
            "winner_count": self.winner_count,
            "payout": int(self.payout),
            "winning_numbers": self.get_numbers(),
        }


class TicketRecord(Base):
    __tablename__ = "raffle_tickets"

    raffle_id = Column(Integer, primary_key=True)
    number = Column(Integer, primary_key=True)
    owner = Column(String(64), nullable=False)


class NotificationRecord(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    raffle_id = Column(Integer, nullable=False, index=True)
    event = Column(String(32), nullable=False)
    payload = Column(Text, nullable=False)
    created_at = Column(DateTime, default=dt.datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        payload = json.loads(self.payload)
        payload["event"] = self.event
        payload["sequence"] = self.id
        return payload


class TransferEntry(Base):
    __tablename__ = "transfers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    raffle_id = Column(Integer, nullable=False, index=True)
    recipient = Column(String(64), nullable=False)
    amount = Column(AMOUNT, nullable=False)
    memo = Column(String(64), nullable=False, default="")
    created_at = Column(DateTime, default=dt.datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "recipient": self.recipient,
            "amount": self.amount,
            "memo": self.memo,
        }
