from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from web3 import Web3


def normalise_account(value: str) -> str:
    if not isinstance(value, str) or not Web3.is_address(value):
        raise ValueError(f"{value!r} is not a valid account address.")
    return Web3.to_checksum_address(value)


class RaffleCreateRequest(BaseModel):
    organizer: str = Field(..., description="Account receiving the settlement.")
    fee_recipient: str = Field(..., description="Account receiving the fee.")
    fee_rate: int = Field(..., description="Fee percentage, 0-99.")
    pool_amount: int
    ticket_price: int
    tier_count: int
    fee_before_prizes: Optional[bool] = Field(None, description="Charge the fee before paying winners.")

    @field_validator("organizer", "fee_recipient")
    @classmethod
    def validate_account(cls, value: str) -> str:
        return normalise_account(value)


class FillTiersRequest(BaseModel):
    winner_counts: List[int]
    payouts: List[int]

    @field_validator("winner_counts", "payouts")
    @classmethod
    def validate_non_negative(cls, value: List[int]) -> List[int]:
        if any(v < 0 for v in value):
            raise ValueError("Tier values must not be negative.")
        return value


class TicketPurchaseRequest(BaseModel):
    quantity: int = Field(..., description="Number of tickets requested.")
    payment: int = Field(..., description="Exact payment: ticket price times quantity.")


class TicketPurchaseResponse(BaseModel):
    raffle_id: int
    tickets_issued: int
    current_ticket: int
    status: str


class TierResponse(BaseModel):
    rank: int
    winner_count: int
    payout: str
    winning_numbers: List[Optional[int]]


class RaffleResponse(BaseModel):
    raffle_id: int
    status: str
    administrator: str
    organizer: str
    fee_recipient: str
    fee_rate: int
    pool_amount: str
    ticket_price: str
    tier_count: int
    number_of_tickets: str
    current_ticket: int
    total_collected: str
    tiers: List[TierResponse] = []


class TicketOwnerResponse(BaseModel):
    raffle_id: int
    ticket_number: int
    owner: str
