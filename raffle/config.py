from __future__ import annotations

import logging
import os
import pathlib
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

from . import arithmetic
from .errors import InvalidConfiguration
from .types import is_zero_account

logger = logging.getLogger("raffle.engine")

MAX_FEE_RATE = 100


def _bool_from_env(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _int_from_env(value: Optional[str], default: int) -> int:
    if value is None or value == "":
        return default
    return int(value)


@dataclass(frozen=True)
class RaffleLimits:
    """Bounds and fallbacks applied when a raffle is configured.

    Out-of-range pool amounts, ticket prices and tier counts are replaced by
    the defaults below instead of being rejected.
    """

    minimum_ticket_price: int = 0
    max_tier_count: int = 10
    default_pool_amount: int = 10**18
    default_ticket_price: int = 10**16
    default_tier_count: int = 1
    fee_before_prizes: bool = True


def load_limits_from_environment() -> RaffleLimits:
    base = RaffleLimits()
    return RaffleLimits(
        minimum_ticket_price=_int_from_env(
            os.getenv("RAFFLE__MIN_TICKET_PRICE"), base.minimum_ticket_price
        ),
        max_tier_count=_int_from_env(os.getenv("RAFFLE__MAX_TIER_COUNT"), base.max_tier_count),
        default_pool_amount=_int_from_env(
            os.getenv("RAFFLE__DEFAULT_POOL_AMOUNT"), base.default_pool_amount
        ),
        default_ticket_price=_int_from_env(
            os.getenv("RAFFLE__DEFAULT_TICKET_PRICE"), base.default_ticket_price
        ),
        default_tier_count=_int_from_env(
            os.getenv("RAFFLE__DEFAULT_TIER_COUNT"), base.default_tier_count
        ),
        fee_before_prizes=_bool_from_env(
            os.getenv("RAFFLE__FEE_BEFORE_PRIZES"), base.fee_before_prizes
        ),
    )


@lru_cache(maxsize=1)
def load_limits(dotenv_path: Optional[str] = None) -> RaffleLimits:
    if dotenv_path:
        load_dotenv(dotenv_path)
    else:
        default_path = pathlib.Path(".env")
        if default_path.exists():
            load_dotenv(default_path)
    return load_limits_from_environment()


@dataclass(frozen=True)
class RaffleConfig:
    pool_amount: int
    ticket_price: int
    tier_count: int
    fee_rate: int
    organizer: str
    fee_recipient: str
    administrator: str
    fee_before_prizes: bool = True

    @property
    def number_of_tickets(self) -> int:
        return arithmetic.ceil_div(self.pool_amount, self.ticket_price)

    @classmethod
    def create(
        cls,
        organizer: str,
        fee_recipient: str,
        fee_rate: int,
        pool_amount: int,
        ticket_price: int,
        tier_count: int,
        administrator: str,
        limits: Optional[RaffleLimits] = None,
        fee_before_prizes: Optional[bool] = None,
    ) -> "RaffleConfig":
        limits = limits or RaffleLimits()
        if is_zero_account(organizer):
            raise InvalidConfiguration("organizer account must be set")
        if is_zero_account(fee_recipient):
            raise InvalidConfiguration("fee recipient account must be set")
        if is_zero_account(administrator):
            raise InvalidConfiguration("administrator account must be set")
        if not isinstance(fee_rate, int) or fee_rate < 0 or fee_rate >= MAX_FEE_RATE:
            raise InvalidConfiguration(f"fee rate must be within [0, {MAX_FEE_RATE}), got {fee_rate}")

        if pool_amount is None or pool_amount <= 0 or pool_amount > arithmetic.UINT256_MAX:
            logger.warning(
                "Pool amount %s out of range; using default %s", pool_amount, limits.default_pool_amount
            )
            pool_amount = limits.default_pool_amount

        if ticket_price is None or ticket_price <= limits.minimum_ticket_price or ticket_price > pool_amount:
            fallback = min(limits.default_ticket_price, pool_amount)
            if fallback <= limits.minimum_ticket_price:
                raise InvalidConfiguration(
                    f"ticket price {ticket_price} out of range and default {fallback} "
                    f"is not above the minimum {limits.minimum_ticket_price}"
                )
            logger.warning("Ticket price %s out of range; using default %s", ticket_price, fallback)
            ticket_price = fallback

        if tier_count is None or tier_count < 1 or tier_count > limits.max_tier_count:
            logger.warning(
                "Tier count %s out of range; using default %s", tier_count, limits.default_tier_count
            )
            tier_count = limits.default_tier_count

        if fee_before_prizes is None:
            fee_before_prizes = limits.fee_before_prizes

        return cls(
            pool_amount=arithmetic.as_uint(pool_amount),
            ticket_price=arithmetic.as_uint(ticket_price),
            tier_count=tier_count,
            fee_rate=fee_rate,
            organizer=organizer,
            fee_recipient=fee_recipient,
            administrator=administrator,
            fee_before_prizes=fee_before_prizes,
        )

    def to_dict(self) -> dict:
        return {
            "pool_amount": self.pool_amount,
            "ticket_price": self.ticket_price,
            "tier_count": self.tier_count,
            "fee_rate": self.fee_rate,
            "organizer": self.organizer,
            "fee_recipient": self.fee_recipient,
            "administrator": self.administrator,
            "fee_before_prizes": self.fee_before_prizes,
            "number_of_tickets": self.number_of_tickets,
        }
