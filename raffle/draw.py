from __future__ import annotations

import logging
from typing import Callable, List

from . import arithmetic
from .accumulator import chain_hash
from .entropy.base import EntropySource
from .state import RaffleState
from .types import Notification, RaffleStatus, WinnerDrawn

logger = logging.getLogger("raffle.draw")


def pick_candidate(seed: bytes, number_of_tickets: int) -> int:
    return arithmetic.add(arithmetic.as_uint(int.from_bytes(seed, "big")) % number_of_tickets, 1)


def draw_winners(
    state: RaffleState,
    source: EntropySource,
    emit: Callable[[Notification], None],
) -> List[WinnerDrawn]:
    """Fill every winning-number slot, tier by tier and slot by slot.

    Does nothing unless the sale is complete and all tiers are filled. A
    candidate already present in any filled slot of any tier is discarded and
    the seed is re-hashed until a fresh number comes up; tier filling
    guarantees there are more tickets than slots, so the loop terminates.
    """
    if not state.gates_open:
        logger.debug("Draw gate closed (sale_complete=%s, tiers_filled=%s)", state.sale_complete, state.tiers_filled)
        return []

    state.status = RaffleStatus.DRAWING
    accumulator = state.accumulator
    seed = accumulator.finalize(source)
    number_of_tickets = state.ledger.number_of_tickets
    taken = set(state.drawn_numbers())

    drawn: List[WinnerDrawn] = []
    for tier_index, tier in enumerate(state.tiers):
        for slot in range(tier.winner_count):
            candidate = pick_candidate(seed, number_of_tickets)
            collisions = 0
            while candidate in taken:
                seed = chain_hash(source.ordering_value(accumulator.marker), seed)
                candidate = pick_candidate(seed, number_of_tickets)
                collisions += 1
            if collisions:
                logger.debug("Tier %s slot %s re-sampled %s time(s)", tier_index, slot, collisions)
            tier.winning_numbers[slot] = candidate
            taken.add(candidate)
            event = WinnerDrawn(ticket_number=candidate, payout=tier.payout, tier=tier_index)
            drawn.append(event)
            emit(event)

    logger.info("Drew %s winning ticket(s) out of %s", len(drawn), number_of_tickets)
    return drawn
