"""High-level entry points tying the engine to its storage."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from sqlalchemy.orm import sessionmaker

from .db.engine import get_sessionmaker, make_engine
from .draw.state_machine import DrawStateMachine
from .draw.tickets import entry_count
from .draw.types import Participant, ParticipantStatus, Round, RoundConfigurationSettings
from .models import Base
from .persistence import DrawStatePersistence, SqlKeyValueStore


@dataclass(frozen=True)
class RoundPreview:
    """Summary of who a round would draw from if every participant were still in play."""

    round: Round
    eligible_count: int
    total_tickets: int


def open_draw_session(
    session_factory: Optional[sessionmaker] = None,
    *,
    debounce_seconds: Optional[float] = None,
    settings: Optional[RoundConfigurationSettings] = None,
) -> DrawStateMachine:
    """Return a state machine restored from the database-backed snapshot.

    Parameters
    ----------
    session_factory : Optional[sessionmaker], default: None
        Session factory for the snapshot store. When omitted, an engine is
        created from ``DB_URL`` and the tables are created if missing.
    debounce_seconds : Optional[float], default: None
        Coalescing window forwarded to :class:`DrawStatePersistence`.
    settings : Optional[RoundConfigurationSettings], default: None
        Settings for the default round ladder when no snapshot exists.

    Returns
    -------
    DrawStateMachine
        Machine whose every transition is shadowed to the store.
    """
    if session_factory is None:
        engine = make_engine()
        Base.metadata.create_all(engine)
        session_factory = get_sessionmaker(engine)

    persistence = DrawStatePersistence(
        SqlKeyValueStore(session_factory),
        debounce_seconds=debounce_seconds,
    )
    return DrawStateMachine.restore(persistence, settings=settings)


def preview_rounds(
    participants: Sequence[Participant],
    rounds: Sequence[Round],
) -> list[RoundPreview]:
    """Count, per round, the participants meeting its threshold and their tickets.

    Winners and withdrawals are not anticipated; the counts describe the
    field before any draw.
    """
    active = [p for p in participants if p.status is ParticipantStatus.ELIGIBLE]
    previews: list[RoundPreview] = []
    for round_ in rounds:
        qualifying = [p for p in active if p.score >= round_.eligibility_threshold]
        previews.append(
            RoundPreview(
                round=round_,
                eligible_count=len(qualifying),
                total_tickets=sum(entry_count(p) for p in qualifying),
            )
        )
    return previews


__all__ = [
    "RoundPreview",
    "open_draw_session",
    "preview_rounds",
]
