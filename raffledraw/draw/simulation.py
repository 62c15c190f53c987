"""Monte Carlo checks of draw fairness."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional, Sequence

from .errors import EmptyPoolError
from .planner import plan_rounds
from .selector import Rng
from .state_machine import DrawStateMachine
from .tickets import entry_count, total_entries
from .types import Participant, Round, RoundConfigurationSettings


@dataclass(frozen=True)
class RaffleOutcome:
    """Winners of one simulated raffle, in round order."""

    winners: list[str]
    rounds_completed: int


@dataclass(frozen=True)
class WinnerStats:
    """Aggregated results for one participant across simulated raffles.

    Attributes
    ----------
    name : str
        Participant name.
    score : float
        Participant score.
    tickets : int
        Entries held by the participant.
    win_count : int
        Number of simulated raffles the participant won a round in.
    win_rate : float
        ``win_count`` divided by the number of runs.
    expected_win_rate : float
        Share of the full entry pool the participant holds, i.e. its chance
        of taking the first draw of an unrestricted round.
    fairness_ratio : float
        ``win_rate / expected_win_rate``; ``0.0`` for zero-entry participants.
    """

    name: str
    score: float
    tickets: int
    win_count: int
    win_rate: float
    expected_win_rate: float
    fairness_ratio: float


@dataclass(frozen=True)
class SimulationReport:
    runs: int
    rounds: list[Round]
    stats: list[WinnerStats]
    average_rounds_completed: float
    fairness_score: float
    """Mean absolute gap between observed and expected win rates (lower is fairer)."""


def simulate_raffle(
    participants: Sequence[Participant],
    rounds: Sequence[Round],
    rng: Rng,
) -> RaffleOutcome:
    """Run a whole raffle through a fresh state machine, confirming every draw."""
    machine = DrawStateMachine()
    machine.load_participants(participants)
    machine.set_rounds(rounds)
    machine.begin()

    winners: list[str] = []
    while not machine.is_complete:
        try:
            machine.draw(rng)
        except EmptyPoolError:
            break
        winners.append(machine.confirm().participant_name)
    return RaffleOutcome(winners=winners, rounds_completed=len(winners))


def run_simulations(
    participants: Sequence[Participant],
    settings: Optional[RoundConfigurationSettings] = None,
    *,
    runs: int = 1000,
    seed: Optional[int] = None,
) -> SimulationReport:
    """Simulate ``runs`` complete raffles and summarise who won how often.

    Parameters
    ----------
    participants : Sequence[Participant]
        Participant list shared by every run.
    settings : Optional[RoundConfigurationSettings], default: None
        Settings used to plan the rounds once for all runs.
    runs : int, default: 1000
        Number of raffles to simulate. Must be positive.
    seed : Optional[int], default: None
        Seed of the random source, for reproducible reports.

    Returns
    -------
    SimulationReport
        Per-participant statistics ordered by descending win count.
    """
    if runs <= 0:
        raise ValueError("runs must be a positive integer")
    if not participants:
        raise ValueError("At least one participant is required to simulate a raffle")

    rounds = plan_rounds(participants, settings)
    rng = random.Random(seed).random
    win_counts = {p.name: 0 for p in participants}
    rounds_completed = 0

    for _ in range(runs):
        outcome = simulate_raffle(participants, rounds, rng)
        rounds_completed += outcome.rounds_completed
        for name in outcome.winners:
            win_counts[name] += 1

    total = total_entries(participants)
    stats: list[WinnerStats] = []
    for participant in participants:
        tickets = entry_count(participant)
        win_rate = win_counts.get(participant.name, 0) / runs
        expected = tickets / total if total > 0 else 0.0
        stats.append(
            WinnerStats(
                name=participant.name,
                score=participant.score,
                tickets=tickets,
                win_count=win_counts.get(participant.name, 0),
                win_rate=win_rate,
                expected_win_rate=expected,
                fairness_ratio=win_rate / expected if expected > 0 else 0.0,
            )
        )

    fairness = (
        sum(abs(s.win_rate - s.expected_win_rate) for s in stats) / len(stats)
        if stats
        else 0.0
    )
    stats.sort(key=lambda s: (-s.win_count, s.name))
    return SimulationReport(
        runs=runs,
        rounds=rounds,
        stats=stats,
        average_rounds_completed=rounds_completed / runs,
        fairness_score=fairness,
    )


__all__ = [
    "RaffleOutcome",
    "SimulationReport",
    "WinnerStats",
    "run_simulations",
    "simulate_raffle",
]
