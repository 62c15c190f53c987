from __future__ import annotations

import random
import unittest

from raffledraw.draw import Participant, RoundConfigurationSettings, SelectionModel, plan_rounds
from raffledraw.draw.simulation import run_simulations, simulate_raffle


def _field() -> list[Participant]:
    return [Participant(f"Team {i:02d}", score=i * 100) for i in range(1, 11)]


class SimulateRaffleTests(unittest.TestCase):
    def test_every_round_gets_a_distinct_winner(self) -> None:
        participants = _field()
        rounds = plan_rounds(participants)
        outcome = simulate_raffle(participants, rounds, random.Random(3).random)
        self.assertEqual(outcome.rounds_completed, 5)
        self.assertEqual(len(set(outcome.winners)), 5)

    def test_stops_when_the_field_runs_out(self) -> None:
        participants = _field()[:2]
        outcome = simulate_raffle(participants, plan_rounds(participants), random.Random(3).random)
        self.assertEqual(outcome.rounds_completed, 2)
        self.assertEqual(set(outcome.winners), {"Team 01", "Team 02"})


class RunSimulationsTests(unittest.TestCase):
    def test_single_round_tracks_ticket_share(self) -> None:
        report = run_simulations(_field(), RoundConfigurationSettings(1), runs=3000, seed=11)
        self.assertEqual(report.runs, 3000)
        self.assertEqual(sum(s.win_count for s in report.stats), 3000)
        self.assertAlmostEqual(sum(s.expected_win_rate for s in report.stats), 1.0)
        self.assertLess(report.fairness_score, 0.02)
        self.assertEqual(report.average_rounds_completed, 1.0)
        # A team holding nine or ten tickets should come out on top.
        self.assertGreaterEqual(report.stats[0].tickets, 9)

    def test_same_seed_same_report(self) -> None:
        settings = RoundConfigurationSettings(3, SelectionModel.UNIFORM_ELIMINATION)
        first = run_simulations(_field(), settings, runs=100, seed=5)
        second = run_simulations(_field(), settings, runs=100, seed=5)
        self.assertEqual(first, second)

    def test_stats_are_sorted_by_wins_then_name(self) -> None:
        report = run_simulations(_field(), runs=50, seed=2)
        keys = [(-s.win_count, s.name) for s in report.stats]
        self.assertEqual(keys, sorted(keys))

    def test_zero_entry_participant_has_no_ratio(self) -> None:
        participants = [Participant("Zero", score=0), Participant("Some", score=300)]
        report = run_simulations(participants, RoundConfigurationSettings(1), runs=20, seed=1)
        zero = next(s for s in report.stats if s.name == "Zero")
        self.assertEqual(zero.tickets, 0)
        self.assertEqual(zero.win_count, 0)
        self.assertEqual(zero.fairness_ratio, 0.0)

    def test_invalid_arguments(self) -> None:
        with self.assertRaises(ValueError):
            run_simulations(_field(), runs=0)
        with self.assertRaises(ValueError):
            run_simulations([], runs=10)


if __name__ == "__main__":
    unittest.main()
