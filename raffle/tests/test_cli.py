import io
import json
import unittest
from contextlib import redirect_stdout

from raffle import cli


class SimulationCliTests(unittest.TestCase):
    ARGS = [
        "--pool", "1000",
        "--price", "20",
        "--tier", "1:500",
        "--tier", "2:100",
        "--fee-rate", "10",
        "--batch", "7",
        "--seed", "0x" + "ab" * 32,
    ]

    def _run(self, argv):
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            code = cli.main(argv)
        return code, buffer.getvalue()

    def test_simulation_settles_the_full_pool(self) -> None:
        code, output = self._run(self.ARGS)
        self.assertEqual(code, 0)
        summary = json.loads(output)
        self.assertEqual(summary["number_of_tickets"], 50)
        winners = [n for tier in summary["tiers"] for n in tier["winning_numbers"]]
        self.assertEqual(len(set(winners)), 3)
        self.assertEqual(sum(summary["balances"].values()), 1000)
        self.assertEqual(summary["balances"][cli.FEE_RECIPIENT], 100)
        self.assertEqual(summary["balances"][cli.ORGANIZER], 200)

    def test_simulation_stops_once_the_round_is_retired(self) -> None:
        argv = ["--pool", "40", "--price", "20", "--tier", "1:10", "--seed", "0x" + "01" * 32]
        code, output = self._run(argv)
        self.assertEqual(code, 0)
        summary = json.loads(output)
        self.assertEqual(summary["balances"][cli.ORGANIZER], 30)
        self.assertEqual(sum(summary["balances"].values()), 40)
        self.assertEqual(summary["notifications"][-1]["event"], "SettlementPaid")

    def test_seed_makes_round_reproducible(self) -> None:
        _, first = self._run(self.ARGS)
        _, second = self._run(self.ARGS)
        self.assertEqual(json.loads(first)["tiers"], json.loads(second)["tiers"])

    def test_invalid_configuration_exits_non_zero(self) -> None:
        argv = ["--pool", "100", "--price", "20", "--tier", "9:1"]
        with self.assertLogs("raffle.cli", level="ERROR"):
            code, output = self._run(argv)
        self.assertEqual(code, 1)
        self.assertEqual(output, "")

    def test_malformed_tier_rejected(self) -> None:
        with self.assertLogs("raffle.cli", level="ERROR"):
            code, _ = self._run(["--pool", "100", "--price", "20", "--tier", "oops"])
        self.assertEqual(code, 1)

    def test_buyer_accounts_are_distinct_addresses(self) -> None:
        accounts = cli.buyer_accounts(3)
        self.assertEqual(len(set(accounts)), 3)
        self.assertTrue(all(len(a) == 42 for a in accounts))


if __name__ == "__main__":
    unittest.main()
