from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .accumulator import RandomnessAccumulator
from .config import RaffleConfig
from .ledger import TicketLedger
from .types import PrizeTier, RaffleStatus


@dataclass
class RaffleState:
    """Everything a raffle owns; nothing lives outside this aggregate."""

    config: RaffleConfig
    ledger: TicketLedger
    accumulator: RandomnessAccumulator = field(default_factory=RandomnessAccumulator)
    tiers: List[PrizeTier] = field(default_factory=list)
    status: RaffleStatus = RaffleStatus.CONFIGURING
    fee_rate_pending: int = 0

    @classmethod
    def new(cls, config: RaffleConfig) -> "RaffleState":
        return cls(
            config=config,
            ledger=TicketLedger(number_of_tickets=config.number_of_tickets),
            fee_rate_pending=config.fee_rate,
        )

    @property
    def tiers_filled(self) -> bool:
        return len(self.tiers) == self.config.tier_count and all(t.winner_count > 0 for t in self.tiers)

    @property
    def sale_complete(self) -> bool:
        return self.ledger.total_collected >= self.config.pool_amount

    @property
    def gates_open(self) -> bool:
        return self.sale_complete and self.tiers_filled

    @property
    def terminated(self) -> bool:
        return self.status == RaffleStatus.TERMINATED

    def drawn_numbers(self) -> List[int]:
        numbers: List[int] = []
        for tier in self.tiers:
            numbers.extend(tier.drawn_numbers())
        return numbers

    def to_dict(self) -> dict:
        return {
            "config": self.config.to_dict(),
            "ledger": self.ledger.to_dict(),
            "accumulator": self.accumulator.to_dict(),
            "tiers": [tier.to_dict() for tier in self.tiers],
            "status": self.status.name,
            "fee_rate_pending": self.fee_rate_pending,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RaffleState":
        config_data = dict(data["config"])
        config_data.pop("number_of_tickets", None)
        return cls(
            config=RaffleConfig(**config_data),
            ledger=TicketLedger.from_dict(data["ledger"]),
            accumulator=RandomnessAccumulator.from_dict(data["accumulator"]),
            tiers=[
                PrizeTier(
                    winner_count=int(t["winner_count"]),
                    payout=int(t["payout"]),
                    winning_numbers=list(t["winning_numbers"]),
                )
                for t in data.get("tiers", [])
            ],
            status=RaffleStatus[data["status"]],
            fee_rate_pending=int(data["fee_rate_pending"]),
        )
