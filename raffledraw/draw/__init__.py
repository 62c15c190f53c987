"""The drawing engine: tickets, selection, round planning and the state machine."""

from .errors import (
    DrawError,
    EmptyPoolError,
    InvalidConfigurationError,
    InvalidTransitionError,
    NoEligibleParticipantsError,
)
from .planner import (
    DEFAULT_MODEL_REGISTRY,
    ModelRegistry,
    SelectionModelDefinition,
    default_rounds,
    plan_rounds,
)
from .selector import build_ticket_pool, select_winner, shuffled_ticket_pool
from .state_machine import MAX_REDRAW_ATTEMPTS, DrawPhase, DrawStateMachine
from .tickets import (
    ParticipantOdds,
    calculate_odds,
    entry_count,
    format_odds,
    total_entries,
)
from .types import (
    DrawState,
    Participant,
    ParticipantStatus,
    Round,
    RoundConfigurationSettings,
    SelectionModel,
    Winner,
)

__all__ = [
    "DEFAULT_MODEL_REGISTRY",
    "DrawError",
    "DrawPhase",
    "DrawState",
    "DrawStateMachine",
    "EmptyPoolError",
    "InvalidConfigurationError",
    "InvalidTransitionError",
    "MAX_REDRAW_ATTEMPTS",
    "ModelRegistry",
    "NoEligibleParticipantsError",
    "Participant",
    "ParticipantOdds",
    "ParticipantStatus",
    "Round",
    "RoundConfigurationSettings",
    "SelectionModel",
    "SelectionModelDefinition",
    "Winner",
    "build_ticket_pool",
    "calculate_odds",
    "default_rounds",
    "entry_count",
    "format_odds",
    "plan_rounds",
    "select_winner",
    "shuffled_ticket_pool",
    "total_entries",
]
