"""Value objects shared by the drawing engine."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional

from .errors import InvalidConfigurationError


class ParticipantStatus(str, Enum):
    """Lifecycle status of a participant within one drawing session."""

    ELIGIBLE = "eligible"
    WINNER = "winner"
    WITHDRAWN = "withdrawn"
    REMOVED = "removed"


class SelectionModel(str, Enum):
    """Rule set that decides how the field evolves between rounds."""

    UNIFORM_ELIMINATION = "uniform_elimination"
    WEIGHTED_CONTINUOUS = "weighted_continuous"


DEFAULT_ROUND_COUNT = 5
DEFAULT_SELECTION_MODEL = SelectionModel.WEIGHTED_CONTINUOUS
WINNERS_PER_ROUND = 1


@dataclass
class Participant:
    """A single entrant in the draw.

    Attributes
    ----------
    name : str
        Unique identity of the participant across the whole session.
    score : float
        Non-negative score; every full 100 points buys one entry.
    submission_count : int
        Number of submissions reported by the ingestion layer.
    last_activity_timestamp : str
        Free-form timestamp of the participant's latest activity.
    status : ParticipantStatus
        Current status. Only the state machine mutates it.
    rank : Optional[int]
        1-based rank by descending score, assigned on load.
    """

    name: str
    score: float = 0
    submission_count: int = 0
    last_activity_timestamp: str = ""
    status: ParticipantStatus = ParticipantStatus.ELIGIBLE
    rank: Optional[int] = None

    def with_status(self, status: ParticipantStatus) -> "Participant":
        return replace(self, status=status)

    def to_json(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "score": self.score,
            "submission_count": self.submission_count,
            "last_activity_timestamp": self.last_activity_timestamp,
            "status": self.status.value,
            "rank": self.rank,
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Participant":
        """Build a participant from its JSON form, filling absent fields."""
        status = data.get("status") or ParticipantStatus.ELIGIBLE.value
        return cls(
            name=str(data.get("name") or ""),
            score=data.get("score", 0) or 0,
            submission_count=int(data.get("submission_count", 0) or 0),
            last_activity_timestamp=str(data.get("last_activity_timestamp", "") or ""),
            status=ParticipantStatus(status),
            rank=data.get("rank"),
        )


@dataclass(frozen=True)
class Round:
    """Immutable descriptor of one drawing round."""

    id: int
    name: str
    eligibility_threshold: float
    description: str

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "eligibility_threshold": self.eligibility_threshold,
            "description": self.description,
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Round":
        return cls(
            id=int(data["id"]),
            name=str(data.get("name", f"Round {data['id']}")),
            eligibility_threshold=data.get("eligibility_threshold", 0) or 0,
            description=str(data.get("description", "")),
        )


@dataclass(frozen=True)
class Winner:
    """Confirmed winner of a round."""

    participant_name: str
    round_index: int
    round_name: str
    prize_label: str

    @property
    def round_number(self) -> int:
        """1-based round number, as shown to the audience."""
        return self.round_index + 1

    def to_json(self) -> dict[str, Any]:
        return {
            "participant_name": self.participant_name,
            "round_index": self.round_index,
            "round_name": self.round_name,
            "prize_label": self.prize_label,
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Winner":
        round_index = int(data.get("round_index", 0))
        return cls(
            participant_name=str(data["participant_name"]),
            round_index=round_index,
            round_name=str(data.get("round_name", f"Round {round_index + 1}")),
            prize_label=str(data.get("prize_label", "")),
        )


@dataclass(frozen=True)
class RoundConfigurationSettings:
    """Settings from which the round planner derives a round list.

    Attributes
    ----------
    round_count : int
        Number of rounds to generate. Must be at least 1.
    selection_model : SelectionModel
        Whether thresholds rise across rounds or stay at zero.
    winners_per_round : int
        Fixed at 1; kept explicit so stored settings stay self-describing.
    """

    round_count: int = DEFAULT_ROUND_COUNT
    selection_model: SelectionModel = DEFAULT_SELECTION_MODEL
    winners_per_round: int = WINNERS_PER_ROUND

    def validate(self) -> "RoundConfigurationSettings":
        """Return the settings with a normalized model, or raise.

        Raises
        ------
        InvalidConfigurationError
            If the round count is not a positive integer, the selection model
            is unknown, or more than one winner per round is requested.
        """
        if isinstance(self.round_count, bool) or not isinstance(self.round_count, int):
            raise InvalidConfigurationError("round_count must be an integer")
        if self.round_count < 1:
            raise InvalidConfigurationError("round_count must be at least 1")
        try:
            model = SelectionModel(self.selection_model)
        except ValueError as exc:
            raise InvalidConfigurationError(
                f"Unknown selection model '{self.selection_model}'"
            ) from exc
        if self.winners_per_round != WINNERS_PER_ROUND:
            raise InvalidConfigurationError("winners_per_round is fixed at 1")
        if model is self.selection_model:
            return self
        return replace(self, selection_model=model)

    def to_json(self) -> dict[str, Any]:
        return {
            "round_count": self.round_count,
            "selection_model": SelectionModel(self.selection_model).value,
            "winners_per_round": self.winners_per_round,
        }

    @classmethod
    def from_json(cls, data: Optional[dict[str, Any]]) -> "RoundConfigurationSettings":
        if not data:
            return cls()
        return cls(
            round_count=data.get("round_count", DEFAULT_ROUND_COUNT),
            selection_model=data.get("selection_model") or DEFAULT_SELECTION_MODEL,
            winners_per_round=data.get("winners_per_round", WINNERS_PER_ROUND),
        )


@dataclass
class DrawState:
    """Aggregate state of a drawing session, owned by the state machine."""

    all_participants: list[Participant] = field(default_factory=list)
    eligible_pool: list[Participant] = field(default_factory=list)
    rounds: list[Round] = field(default_factory=list)
    current_round_index: int = 0
    winners: list[Winner] = field(default_factory=list)
    withdrawn_names: list[str] = field(default_factory=list)
    pending_winner: Optional[str] = None
    is_draw_in_progress: bool = False
    has_started: bool = False

    def to_json(self) -> dict[str, Any]:
        return {
            "all_participants": [p.to_json() for p in self.all_participants],
            "eligible_pool": [p.to_json() for p in self.eligible_pool],
            "rounds": [r.to_json() for r in self.rounds],
            "current_round_index": self.current_round_index,
            "winners": [w.to_json() for w in self.winners],
            "withdrawn_names": list(self.withdrawn_names),
            "pending_winner": self.pending_winner,
            "is_draw_in_progress": self.is_draw_in_progress,
            "has_started": self.has_started,
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "DrawState":
        """Rebuild a state from its JSON form.

        Snapshots written by older versions may lack whole fields; absent
        arrays come back empty and absent flags come back ``False``.
        """
        return cls(
            all_participants=[
                Participant.from_json(p) for p in data.get("all_participants") or []
            ],
            eligible_pool=[
                Participant.from_json(p) for p in data.get("eligible_pool") or []
            ],
            rounds=[Round.from_json(r) for r in data.get("rounds") or []],
            current_round_index=int(data.get("current_round_index") or 0),
            winners=[Winner.from_json(w) for w in data.get("winners") or []],
            withdrawn_names=list(data.get("withdrawn_names") or []),
            pending_winner=data.get("pending_winner") or None,
            is_draw_in_progress=bool(data.get("is_draw_in_progress", False)),
            has_started=bool(data.get("has_started", False)),
        )


__all__ = [
    "DEFAULT_ROUND_COUNT",
    "DEFAULT_SELECTION_MODEL",
    "DrawState",
    "Participant",
    "ParticipantStatus",
    "Round",
    "RoundConfigurationSettings",
    "SelectionModel",
    "WINNERS_PER_ROUND",
    "Winner",
]
