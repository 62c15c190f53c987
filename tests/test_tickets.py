from __future__ import annotations

import unittest

from raffledraw.draw import (
    Participant,
    calculate_odds,
    entry_count,
    format_odds,
    total_entries,
)


class EntryCountTests(unittest.TestCase):
    def test_every_full_hundred_buys_one_entry(self) -> None:
        cases = {0: 0, 50: 0, 99: 0, 100: 1, 150: 1, 199.9: 1, 1200: 12, 1250: 12}
        for score, expected in cases.items():
            with self.subTest(score=score):
                self.assertEqual(entry_count(Participant("p", score=score)), expected)

    def test_negative_score_holds_no_entries(self) -> None:
        self.assertEqual(entry_count(Participant("p", score=-300)), 0)

    def test_total_entries_sums_the_pool(self) -> None:
        players = [Participant(n, score=s) for n, s in [("a", 0), ("b", 50), ("c", 150), ("d", 1200)]]
        self.assertEqual(total_entries(players), 13)
        self.assertEqual(total_entries([]), 0)


class OddsTests(unittest.TestCase):
    def test_odds_are_share_of_tickets(self) -> None:
        players = [Participant("a", score=100), Participant("b", score=300)]
        odds = calculate_odds(players)
        self.assertEqual([o.tickets for o in odds], [1, 3])
        self.assertAlmostEqual(odds[0].odds, 25.0)
        self.assertAlmostEqual(odds[1].odds, 75.0)
        self.assertIs(odds[0].participant, players[0])

    def test_zero_total_reports_zero_odds(self) -> None:
        odds = calculate_odds([Participant("a", score=10), Participant("b", score=0)])
        self.assertEqual([o.odds for o in odds], [0.0, 0.0])

    def test_empty_list(self) -> None:
        self.assertEqual(calculate_odds([]), [])

    def test_format_odds(self) -> None:
        self.assertEqual(format_odds(12.5), "12.50%")
        self.assertEqual(format_odds(1 / 3 * 100), "33.33%")


if __name__ == "__main__":
    unittest.main()
