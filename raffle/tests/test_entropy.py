import threading
import unittest
from unittest import mock

from web3 import Web3

from raffle.accumulator import EMPTY_DIGEST, RandomnessAccumulator, chain_hash
from raffle.entropy import SeededEntropySource, Web3BlockEntropySource
from raffle.entropy.base import to_word


class SeededEntropySourceTests(unittest.TestCase):
    def test_same_seed_yields_same_values(self) -> None:
        a = SeededEntropySource(b"\x01" * 32)
        b = SeededEntropySource.from_hex("0x" + "01" * 32)
        self.assertEqual(a.ordering_value(3), b.ordering_value(3))
        self.assertEqual(a.auxiliary(), b.auxiliary())
        self.assertEqual(len(a.ordering_value(0)), 32)

    def test_advance_moves_marker_and_auxiliary(self) -> None:
        source = SeededEntropySource(b"\x02" * 32)
        before = source.auxiliary()
        source.advance()
        self.assertEqual(source.current_marker(), 1)
        self.assertNotEqual(source.auxiliary(), before)

    def test_default_seed_is_random(self) -> None:
        self.assertNotEqual(SeededEntropySource().seed, SeededEntropySource().seed)

    def test_advance_from_many_threads_counts_every_step(self) -> None:
        source = SeededEntropySource(b"\x03" * 32)

        def worker() -> None:
            for _ in range(500):
                source.advance()

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertEqual(source.current_marker(), 4000)


class Web3BlockEntropySourceTests(unittest.TestCase):
    def _make_web3(self):
        web3 = mock.Mock()
        web3.eth.block_number = 42
        blocks = {
            41: {"number": 41, "hash": b"\x41" * 32},
            "latest": {"number": 42, "hash": b"\x42" * 32, "mixHash": b"\x99" * 32},
        }
        web3.eth.get_block.side_effect = lambda ident: blocks[ident]
        return web3

    def test_reads_block_metadata(self) -> None:
        source = Web3BlockEntropySource(self._make_web3())
        self.assertEqual(source.current_marker(), 42)
        self.assertEqual(source.ordering_value(41), b"\x41" * 32)
        self.assertEqual(source.auxiliary(), b"\x99" * 32)

    def test_falls_back_to_difficulty(self) -> None:
        web3 = mock.Mock()
        web3.eth.get_block.return_value = {"number": 1, "hash": b"\x01" * 32, "difficulty": 7}
        source = Web3BlockEntropySource(web3)
        self.assertEqual(source.auxiliary(), (7).to_bytes(32, "big"))


class RandomnessAccumulatorTests(unittest.TestCase):
    def test_chain_hash_matches_packed_keccak(self) -> None:
        words = [b"\x01" * 32, b"\x02" * 32, b"\x03" * 32]
        expected = bytes(Web3.solidity_keccak(["bytes32"] * 3, words))
        self.assertEqual(chain_hash(*words), expected)

    def test_to_word_pads_short_values(self) -> None:
        self.assertEqual(to_word(b"\x05"), b"\x00" * 31 + b"\x05")
        with self.assertRaises(ValueError):
            to_word(b"\x00" * 33)

    def test_mix_chains_previous_digest_and_advances_marker(self) -> None:
        source = SeededEntropySource(b"\x03" * 32)
        acc = RandomnessAccumulator()
        source.advance()
        first = acc.mix(source)
        expected = chain_hash(source.ordering_value(0), source.auxiliary(), EMPTY_DIGEST)
        self.assertEqual(first, expected)
        self.assertEqual(acc.marker, 1)

        source.advance()
        second = acc.mix(source)
        self.assertEqual(second, chain_hash(source.ordering_value(1), source.auxiliary(), first))
        self.assertEqual(acc.marker, 2)

    def test_final_seed_depends_on_whole_history(self) -> None:
        def run(steps):
            source = SeededEntropySource(b"\x04" * 32)
            acc = RandomnessAccumulator()
            for skip in steps:
                for _ in range(skip):
                    source.advance()
                acc.mix(source)
            return acc.finalize(source)

        self.assertEqual(run([1, 1, 1]), run([1, 1, 1]))
        self.assertNotEqual(run([1, 1, 1]), run([1, 2, 1]))

    def test_round_trips_through_dict(self) -> None:
        acc = RandomnessAccumulator(digest=b"\x07" * 32, marker=9)
        self.assertEqual(RandomnessAccumulator.from_dict(acc.to_dict()), acc)


if __name__ == "__main__":
    unittest.main()
