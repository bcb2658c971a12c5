from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional, Sequence

ZERO_ADDRESS = "0x" + "0" * 40


def is_zero_account(account: Optional[str]) -> bool:
    if not account:
        return True
    return account.lower() == ZERO_ADDRESS


class RaffleStatus(IntEnum):
    CONFIGURING = 0
    FILLING = 1
    SELLING = 2
    DRAWING = 3
    DISTRIBUTING = 4
    TERMINATED = 5


@dataclass
class PrizeTier:
    winner_count: int
    payout: int
    winning_numbers: List[Optional[int]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.winning_numbers:
            self.winning_numbers = [None] * self.winner_count

    def drawn_numbers(self) -> Sequence[int]:
        return tuple(n for n in self.winning_numbers if n is not None)

    def to_dict(self) -> dict:
        return {
            "winner_count": self.winner_count,
            "payout": self.payout,
            "winning_numbers": list(self.winning_numbers),
        }


@dataclass(frozen=True)
class Notification:
    """Base for every event a raffle publishes after a successful operation."""

    def to_dict(self) -> dict:
        payload = dict(self.__dict__)
        payload["event"] = type(self).__name__
        return payload


@dataclass(frozen=True)
class TicketsPurchased(Notification):
    buyer: str
    ticket_count: int
    quantity: int


@dataclass(frozen=True)
class Refund(Notification):
    buyer: str
    amount: int


@dataclass(frozen=True)
class WinnerDrawn(Notification):
    ticket_number: int
    payout: int
    tier: int


@dataclass(frozen=True)
class FeePaid(Notification):
    recipient: str
    amount: int


@dataclass(frozen=True)
class PrizePaid(Notification):
    recipient: str
    ticket_number: int
    amount: int
    tier: int


@dataclass(frozen=True)
class SettlementPaid(Notification):
    recipient: str
    amount: int


@dataclass(frozen=True)
class RaffleRetired(Notification):
    reason: str

