"""Simulate many complete raffles and report how closely wins track tickets.

Usage::

    python scripts/simulate_draws.py --teams 100 --runs 1000 --rounds 5
    python scripts/simulate_draws.py --config <configuration id>
"""

from __future__ import annotations

import argparse
import logging
import random
import sys

from raffledraw.configurations import (
    configuration_participants,
    configuration_settings,
    get_configuration,
)
from raffledraw.db.engine import get_sessionmaker, make_engine
from raffledraw.draw.simulation import SimulationReport, run_simulations
from raffledraw.draw.types import Participant, RoundConfigurationSettings, SelectionModel

logger = logging.getLogger("raffledraw.simulate")


def generate_teams(count: int, seed: int | None = None) -> list[Participant]:
    """Return ``count`` teams with bell-curve scores (mean 1000, sd 400)."""
    rng = random.Random(seed)
    teams: list[Participant] = []
    for i in range(1, count + 1):
        score = max(0, round(rng.gauss(1000, 400)))
        submissions = max(1, score // 200 + 1 + rng.randint(-2, 2))
        teams.append(
            Participant(
                name=f"Team {i:03d}",
                score=score,
                submission_count=submissions,
                last_activity_timestamp="2024-01-01",
            )
        )
    return teams


def print_report(report: SimulationReport, top: int) -> None:
    print(f"Runs: {report.runs}")
    print(f"Rounds: {', '.join(f'{r.name} (>= {r.eligibility_threshold})' for r in report.rounds)}")
    print(f"Average rounds completed: {report.average_rounds_completed:.2f}")
    print(f"Fairness score: {report.fairness_score:.4f} (lower = fairer)")
    print(f"Top {top} winners:")
    for index, stat in enumerate(report.stats[:top], start=1):
        print(
            f"  {index:>2}. {stat.name}: {stat.win_count} wins "
            f"({stat.win_rate:.2%}, {stat.tickets} tickets, ratio {stat.fairness_ratio:.2f})"
        )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--teams", type=int, default=100)
    parser.add_argument("--runs", type=int, default=1000)
    parser.add_argument("--rounds", type=int, default=5)
    parser.add_argument(
        "--model",
        choices=[m.value for m in SelectionModel],
        default=SelectionModel.WEIGHTED_CONTINUOUS.value,
    )
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--top", type=int, default=5)
    parser.add_argument("--config", help="simulate a stored configuration instead")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    if args.config:
        Session = get_sessionmaker(make_engine())
        with Session() as session:
            config = get_configuration(session, args.config)
            if config is None:
                logger.error(f"Configuration {args.config} not found")
                return 1
            participants = configuration_participants(config)
            settings = configuration_settings(config)
    else:
        participants = generate_teams(args.teams, args.seed)
        settings = RoundConfigurationSettings(
            round_count=args.rounds, selection_model=SelectionModel(args.model)
        )

    report = run_simulations(participants, settings, runs=args.runs, seed=args.seed)
    print_report(report, args.top)
    return 0


if __name__ == "__main__":
    sys.exit(main())
