"""Weighted winner selection."""

from __future__ import annotations

import math
from typing import Callable, Sequence

from .errors import EmptyPoolError
from .tickets import entry_count, total_entries
from .types import Participant

Rng = Callable[[], float]
"""Random source returning floats in ``[0, 1)``, e.g. ``random.Random(7).random``."""

PRESENTATION_SHUFFLE_PASSES = 10


def _pick_index(rng: Rng, size: int) -> int:
    """Map one ``rng()`` call onto ``range(size)``."""
    index = math.floor(rng() * size)
    # Guard against sources that occasionally return exactly 1.0.
    return min(max(index, 0), size - 1)


def select_winner(eligible: Sequence[Participant], rng: Rng) -> str:
    """Draw one winner from ``eligible`` weighted by entry count.

    Parameters
    ----------
    eligible : Sequence[Participant]
        Participants that may win this draw.
    rng : Rng
        Random source. The function calls it exactly once.

    Returns
    -------
    str
        Name of the selected participant.

    Raises
    ------
    EmptyPoolError
        If ``eligible`` is empty.

    Notes
    -----
    A ticket number ``t`` is drawn uniformly from ``[1, total]`` and the list is
    walked while accumulating entry counts; the first participant whose running
    total reaches ``t`` wins. This gives the same distribution as materializing
    one ticket per entry and picking uniformly among them, without allocating
    ``total`` elements. Shuffling a materialized pool before the pick (see
    :func:`shuffled_ticket_pool`) does not change that distribution either, so
    the shuffle is left to the presentation layer.

    When the pool holds zero entries the draw falls back to a uniform pick over
    ``eligible`` so the round still produces a winner.
    """
    if not eligible:
        raise EmptyPoolError("No eligible participants to draw from")

    total = total_entries(eligible)
    if total == 0:
        return eligible[_pick_index(rng, len(eligible))].name

    ticket = _pick_index(rng, total) + 1
    cumulative = 0
    for participant in eligible:
        cumulative += entry_count(participant)
        if cumulative >= ticket:
            return participant.name

    # Unreachable: the running total ends at ``total`` which is >= ``ticket``.
    raise AssertionError("cumulative entry walk ended before reaching the ticket")


def build_ticket_pool(participants: Sequence[Participant]) -> list[str]:
    """Return one name per entry, in participant order."""
    pool: list[str] = []
    for participant in participants:
        pool.extend([participant.name] * entry_count(participant))
    return pool


def _fisher_yates(items: list[str], rng: Rng) -> list[str]:
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = _pick_index(rng, i + 1)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def shuffled_ticket_pool(
    participants: Sequence[Participant],
    rng: Rng,
    *,
    passes: int = PRESENTATION_SHUFFLE_PASSES,
) -> list[str]:
    """Return the materialized ticket pool after ``passes`` full reshuffles.

    Used for visual cycling before a result is revealed. The winner itself
    always comes from :func:`select_winner`.
    """
    if passes < 1:
        raise ValueError("passes must be at least 1")
    pool = build_ticket_pool(participants)
    for _ in range(passes):
        pool = _fisher_yates(pool, rng)
    return pool


__all__ = [
    "PRESENTATION_SHUFFLE_PASSES",
    "Rng",
    "build_ticket_pool",
    "select_winner",
    "shuffled_ticket_pool",
]
