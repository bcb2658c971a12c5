from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from . import arithmetic


@dataclass
class TicketLedger:
    """Sequential ticket issuance against payment.

    Ticket numbers run from 1 to ``number_of_tickets`` without gaps; each
    number has exactly one owner.
    """

    number_of_tickets: int
    current_ticket: int = 0
    total_collected: int = 0
    owners: Dict[int, str] = field(default_factory=dict)

    @property
    def sold_out(self) -> bool:
        return self.current_ticket >= self.number_of_tickets

    def issue(self, buyer: str, price: int) -> int:
        if self.sold_out:
            raise ValueError("no tickets left to issue")
        self.current_ticket = arithmetic.add(self.current_ticket, 1)
        self.owners[self.current_ticket] = buyer
        self.total_collected = arithmetic.add(self.total_collected, price)
        return self.current_ticket

    def owner_of(self, ticket_number: int) -> Optional[str]:
        return self.owners.get(ticket_number)

    def deduct(self, amount: int) -> None:
        self.total_collected = arithmetic.sub(self.total_collected, amount)

    def reset(self) -> None:
        self.current_ticket = 0
        self.total_collected = 0

    def to_dict(self) -> dict:
        return {
            "number_of_tickets": self.number_of_tickets,
            "current_ticket": self.current_ticket,
            "total_collected": self.total_collected,
            "owners": {str(k): v for k, v in sorted(self.owners.items())},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TicketLedger":
        return cls(
            number_of_tickets=int(data["number_of_tickets"]),
            current_ticket=int(data["current_ticket"]),
            total_collected=int(data["total_collected"]),
            owners={int(k): v for k, v in data.get("owners", {}).items()},
        )
