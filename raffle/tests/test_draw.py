import unittest
from unittest import mock

from raffle.config import RaffleConfig
from raffle.draw import draw_winners, pick_candidate
from raffle.entropy import SeededEntropySource
from raffle.state import RaffleState
from raffle.types import PrizeTier, RaffleStatus

ADMIN = "0x" + "a" * 40


def sold_out_state(pool: int, price: int, tiers) -> RaffleState:
    config = RaffleConfig.create(
        organizer="0x" + "b" * 40,
        fee_recipient="0x" + "c" * 40,
        fee_rate=0,
        pool_amount=pool,
        ticket_price=price,
        tier_count=len(tiers),
        administrator=ADMIN,
    )
    state = RaffleState.new(config)
    state.tiers = [PrizeTier(winner_count=count, payout=payout) for count, payout in tiers]
    state.status = RaffleStatus.SELLING
    for index in range(config.number_of_tickets):
        state.ledger.issue("0x" + format(index + 1, "040x"), price)
    return state


class DrawEngineTests(unittest.TestCase):
    def test_pick_candidate_stays_in_range(self) -> None:
        self.assertEqual(pick_candidate(b"\x00" * 32, 50), 1)
        self.assertEqual(pick_candidate((49).to_bytes(32, "big"), 50), 50)
        self.assertEqual(pick_candidate((50).to_bytes(32, "big"), 50), 1)

    def test_gate_closed_when_sale_incomplete(self) -> None:
        state = sold_out_state(100, 10, [(1, 10)])
        state.ledger.total_collected = 90
        events = []
        self.assertEqual(draw_winners(state, SeededEntropySource(b"\x01" * 32), events.append), [])
        self.assertEqual(events, [])
        self.assertEqual(state.tiers[0].winning_numbers, [None])
        self.assertEqual(state.status, RaffleStatus.SELLING)

    def test_gate_closed_when_tiers_missing(self) -> None:
        state = sold_out_state(100, 10, [(1, 10)])
        state.tiers = []
        self.assertEqual(draw_winners(state, SeededEntropySource(b"\x01" * 32), lambda e: None), [])

    def test_winners_unique_across_tiers_and_in_range(self) -> None:
        for seed in range(1, 20):
            with self.subTest(seed=seed):
                state = sold_out_state(1000, 20, [(1, 500), (2, 100), (5, 10)])
                events = []
                draw_winners(state, SeededEntropySource(bytes([seed]) * 32), events.append)
                numbers = state.drawn_numbers()
                self.assertEqual(len(numbers), 8)
                self.assertEqual(len(set(numbers)), 8)
                self.assertTrue(all(1 <= n <= 50 for n in numbers))
                self.assertEqual([e.tier for e in events], [0, 1, 1, 2, 2, 2, 2, 2])
                self.assertEqual(state.status, RaffleStatus.DRAWING)

    def test_every_ticket_wins_when_slots_equal_tickets(self) -> None:
        state = sold_out_state(30, 10, [(1, 1), (2, 1)])
        draw_winners(state, SeededEntropySource(b"\x05" * 32), lambda e: None)
        self.assertEqual(sorted(state.drawn_numbers()), [1, 2, 3])

    def test_duplicate_scan_runs_forward_over_earlier_tiers(self) -> None:
        state = sold_out_state(50, 10, [(1, 10), (2, 5)])
        candidates = [2, 2, 1, 1, 2, 3]
        with mock.patch("raffle.draw.pick_candidate", side_effect=candidates) as picker:
            events = []
            draw_winners(state, SeededEntropySource(b"\x06" * 32), events.append)
        self.assertEqual(picker.call_count, len(candidates))
        self.assertEqual(state.tiers[0].winning_numbers, [2])
        self.assertEqual(state.tiers[1].winning_numbers, [1, 3])
        self.assertEqual(
            [(e.tier, e.ticket_number, e.payout) for e in events],
            [(0, 2, 10), (1, 1, 5), (1, 3, 5)],
        )


if __name__ == "__main__":
    unittest.main()
