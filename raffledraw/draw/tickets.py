"""Conversion of participant scores into weighted entries ("tickets")."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from .types import Participant

TICKET_POINTS = 100
"""Score points needed for one entry."""


def entry_count(participant: Participant) -> int:
    """Return the number of entries ``participant`` holds.

    Every full :data:`TICKET_POINTS` points buys one entry. Participants below
    that line hold zero entries rather than a minimum of one.
    """
    return max(0, int(participant.score // TICKET_POINTS))


def total_entries(participants: Iterable[Participant]) -> int:
    """Return the size of the entry pool formed by ``participants``."""
    return sum(entry_count(p) for p in participants)


@dataclass(frozen=True)
class ParticipantOdds:
    """Display-oriented view of a participant's chance to win one draw.

    Attributes
    ----------
    participant : Participant
        The participant the odds belong to.
    tickets : int
        Entries held by the participant.
    odds : float
        Percentage chance (0-100) of winning a weighted draw over the same
        participant list.
    """

    participant: Participant
    tickets: int
    odds: float


def calculate_odds(participants: Sequence[Participant]) -> list[ParticipantOdds]:
    """Return per-participant odds for a weighted draw over ``participants``.

    When the pool holds no entries at all every participant is reported with
    ``0.0`` odds, even though the selector would fall back to a uniform draw;
    the display layer shows that case as "no tickets" instead.
    """
    if not participants:
        return []

    tickets = [entry_count(p) for p in participants]
    total = sum(tickets)
    return [
        ParticipantOdds(
            participant=p,
            tickets=count,
            odds=(count / total) * 100 if total > 0 else 0.0,
        )
        for p, count in zip(participants, tickets)
    ]


def format_odds(odds: float) -> str:
    """Format ``odds`` as a percentage with two decimals, e.g. ``"0.54%"``."""
    return f"{odds:.2f}%"


__all__ = [
    "ParticipantOdds",
    "TICKET_POINTS",
    "calculate_odds",
    "entry_count",
    "format_odds",
    "total_entries",
]
