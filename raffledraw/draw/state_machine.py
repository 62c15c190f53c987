"""State machine that drives a multi-round drawing session."""

from __future__ import annotations

import copy
import logging
import random
from dataclasses import replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional, Sequence, Union

from .errors import (
    EmptyPoolError,
    InvalidConfigurationError,
    InvalidTransitionError,
    NoEligibleParticipantsError,
)
from .planner import plan_rounds
from .selector import Rng, select_winner
from .types import (
    DrawState,
    Participant,
    ParticipantStatus,
    Round,
    RoundConfigurationSettings,
    Winner,
)

if TYPE_CHECKING:
    from ..persistence import DrawStatePersistence

logger = logging.getLogger(__name__)

MAX_REDRAW_ATTEMPTS = 50
"""Upper bound on re-draws when a stale pool yields an already-settled name."""

ParticipantRecord = Union[Participant, Mapping[str, Any]]


class DrawPhase(str, Enum):
    """Phases a drawing session moves through."""

    NOT_STARTED = "not_started"
    ROUND_ELIGIBLE = "round_eligible"
    DRAWING = "drawing"
    PENDING_CONFIRMATION = "pending_confirmation"
    COMPLETE = "complete"


def _coerce_participant(record: ParticipantRecord) -> Participant:
    if isinstance(record, Participant):
        return record
    return Participant.from_json(dict(record))


def _has_name(participant: Participant) -> bool:
    return isinstance(participant.name, str) and bool(participant.name.strip())


def _set_status(
    participants: Sequence[Participant], name: str, status: ParticipantStatus
) -> list[Participant]:
    return [p.with_status(status) if p.name == name else p for p in participants]


def _check_round_ids(rounds: Sequence[Round]) -> None:
    if not rounds:
        raise InvalidConfigurationError("At least one round is required")
    for expected, round_ in enumerate(rounds, start=1):
        if round_.id != expected:
            raise InvalidConfigurationError(
                f"Round ids must be sequential from 1; found {round_.id} at position {expected}"
            )


class DrawStateMachine:
    """Single owner of a :class:`DrawState`.

    Every operation either completes its transition or raises and leaves the
    state untouched. Successful transitions finish by handing the new state to
    the optional persistence adapter, so the stored snapshot never runs ahead
    of memory.
    """

    def __init__(
        self,
        state: Optional[DrawState] = None,
        *,
        persistence: Optional["DrawStatePersistence"] = None,
        settings: Optional[RoundConfigurationSettings] = None,
    ) -> None:
        """Create a machine around ``state``.

        Parameters
        ----------
        state : Optional[DrawState], default: None
            Previously saved state. A fresh state carrying the default round
            ladder for ``settings`` is created when omitted.
        persistence : Optional[DrawStatePersistence], default: None
            Adapter that shadows every transition.
        settings : Optional[RoundConfigurationSettings], default: None
            Settings used for the initial round ladder of a fresh state.
        """
        if state is None:
            state = DrawState(rounds=plan_rounds([], settings))
        self._state = state
        self._persistence = persistence

    @classmethod
    def restore(
        cls,
        persistence: "DrawStatePersistence",
        *,
        settings: Optional[RoundConfigurationSettings] = None,
    ) -> "DrawStateMachine":
        """Build a machine from the snapshot stored by ``persistence``, if any."""
        state = persistence.load(settings)
        if state is not None:
            logger.debug(
                f"Restored draw state: started={state.has_started}, "
                f"round={state.current_round_index}, winners={len(state.winners)}"
            )
        return cls(state, persistence=persistence, settings=settings)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> DrawState:
        """Deep copy of the current state."""
        return copy.deepcopy(self._state)

    @property
    def current_round(self) -> Optional[Round]:
        rounds = self._state.rounds
        index = self._state.current_round_index
        return rounds[index] if 0 <= index < len(rounds) else None

    @property
    def phase(self) -> DrawPhase:
        state = self._state
        if not state.has_started:
            return DrawPhase.NOT_STARTED
        if state.pending_winner:
            return DrawPhase.PENDING_CONFIRMATION
        if state.current_round_index >= len(state.rounds) or not state.eligible_pool:
            return DrawPhase.COMPLETE
        if state.is_draw_in_progress:
            return DrawPhase.DRAWING
        return DrawPhase.ROUND_ELIGIBLE

    @property
    def is_complete(self) -> bool:
        return self.phase is DrawPhase.COMPLETE

    @property
    def can_start_round(self) -> bool:
        return self.phase is DrawPhase.ROUND_ELIGIBLE

    @property
    def winner_names(self) -> list[str]:
        return [w.participant_name for w in self._state.winners]

    def eligible_for_current_round(self) -> list[Participant]:
        """Return the participants who may win the current round.

        A participant qualifies when its status is ``eligible``, its score meets
        the round threshold, and it is neither a confirmed winner nor withdrawn.
        Zero-entry participants stay in the list but carry no weight: they can
        only win through the selector's uniform fallback, when nobody in the
        round holds an entry.
        """
        current = self.current_round
        if current is None:
            return []

        excluded = set(self.winner_names) | set(self._state.withdrawn_names)
        return [
            replace(p)
            for p in self._state.eligible_pool
            if p.status is ParticipantStatus.ELIGIBLE
            and p.score >= current.eligibility_threshold
            and p.name not in excluded
        ]

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def load_participants(
        self,
        records: Iterable[ParticipantRecord],
        preserve_progress: bool = False,
    ) -> list[Participant]:
        """Load a participant list, ranking it by descending score.

        Parameters
        ----------
        records : Iterable[Participant | Mapping]
            Participants produced by ingestion. Records without a non-empty
            name are dropped.
        preserve_progress : bool, default: False
            When ``True`` and a drawing is already underway, statuses already
            recorded for matching names are kept along with winners, withdrawn
            names and round progress. Otherwise the session restarts from the
            new list.

        Returns
        -------
        list[Participant]
            The ranked participants now held by the machine.

        Raises
        ------
        InvalidConfigurationError
            If two records share a name.
        """
        new_state = self._with_participants(records, preserve_progress)
        self._commit(new_state)
        return [replace(p) for p in new_state.all_participants]

    def load_configuration(
        self,
        records: Iterable[ParticipantRecord],
        rounds: Sequence[Round],
        preserve_progress: bool = False,
    ) -> list[Participant]:
        """Swap in a participant list and its round list as one transition.

        Both inputs are validated before anything changes, so a refused swap
        leaves the machine (and its stored snapshot) exactly as it was.

        Raises
        ------
        InvalidConfigurationError
            If two records share a name or ``rounds`` is malformed.
        InvalidTransitionError
            If progress is preserved and a winner has already been confirmed.
        """
        _check_round_ids(rounds)
        new_state = self._with_participants(records, preserve_progress)
        if new_state.has_started and new_state.current_round_index > 0:
            raise InvalidTransitionError("Rounds cannot change after a round has been won")

        new_state = replace(new_state, rounds=list(rounds))
        self._commit(new_state)
        logger.debug(
            f"Loaded {len(new_state.all_participants)} participants over {len(rounds)} rounds"
        )
        return [replace(p) for p in new_state.all_participants]

    def _with_participants(
        self, records: Iterable[ParticipantRecord], preserve_progress: bool
    ) -> DrawState:
        incoming = [_coerce_participant(r) for r in records]
        valid = [p for p in incoming if _has_name(p)]
        if len(valid) != len(incoming):
            logger.debug(f"Dropped {len(incoming) - len(valid)} participant records without a name")

        seen: set[str] = set()
        for participant in valid:
            if participant.name in seen:
                raise InvalidConfigurationError(
                    f"Duplicate participant name '{participant.name}'"
                )
            seen.add(participant.name)

        ranked = [
            replace(p, rank=index + 1, status=ParticipantStatus.ELIGIBLE)
            for index, p in enumerate(sorted(valid, key=lambda p: -p.score))
        ]

        state = self._state
        if preserve_progress and state.has_started:
            previous = {p.name: p.status for p in state.all_participants}
            previous_pool = {p.name for p in state.eligible_pool}
            merged = [
                p.with_status(previous.get(p.name, ParticipantStatus.ELIGIBLE))
                for p in ranked
            ]
            pool = [
                p for p in merged if p.name in previous_pool or p.name not in previous
            ]
            new_state = replace(state, all_participants=merged, eligible_pool=pool)
            logger.debug(f"Merged {len(merged)} participants into the running draw")
        else:
            new_state = replace(
                state,
                all_participants=ranked,
                eligible_pool=list(ranked),
                current_round_index=0,
                winners=[],
                withdrawn_names=[],
                pending_winner=None,
                is_draw_in_progress=False,
                has_started=False,
            )
            logger.debug(f"Loaded {len(ranked)} participants")
        return new_state

    def begin(self) -> None:
        """Start the drawing at the first round.

        Raises
        ------
        InvalidTransitionError
            If the drawing already started or no participants are loaded.
        """
        state = self._state
        if state.has_started:
            raise InvalidTransitionError("The drawing has already started")
        if not state.all_participants:
            raise InvalidTransitionError("Load participants before starting the drawing")

        self._commit(
            replace(
                state,
                has_started=True,
                current_round_index=0,
                winners=[],
                pending_winner=None,
                is_draw_in_progress=False,
                eligible_pool=[
                    p
                    for p in state.all_participants
                    if p.status is ParticipantStatus.ELIGIBLE
                ],
            )
        )
        logger.info(f"Drawing started with {len(state.rounds)} rounds")

    def mark_drawing(self) -> None:
        """Flag that the presentation layer is cycling towards a reveal."""
        if self.phase is not DrawPhase.ROUND_ELIGIBLE:
            raise InvalidTransitionError(f"Cannot start drawing from phase '{self.phase.value}'")
        self._commit(replace(self._state, is_draw_in_progress=True))

    def stop_drawing(self) -> None:
        """Clear the in-progress flag without selecting anybody."""
        if self.phase is not DrawPhase.DRAWING:
            raise InvalidTransitionError("No drawing is in progress")
        self._commit(replace(self._state, is_draw_in_progress=False))

    def draw(
        self,
        rng: Optional[Rng] = None,
        *,
        pool: Optional[Sequence[Participant]] = None,
    ) -> str:
        """Select a pending winner for the current round.

        Parameters
        ----------
        rng : Optional[Rng], default: None
            Random source; :func:`random.random` when omitted.
        pool : Optional[Sequence[Participant]], default: None
            Eligible list computed earlier by the caller (for instance the one
            the presentation layer animated). Defaults to
            :meth:`eligible_for_current_round`. Entries are matched by name
            against the machine's own records; unknown names and participants
            below the current threshold are dropped.

        Returns
        -------
        str
            Name of the pending winner.

        Raises
        ------
        InvalidTransitionError
            If the drawing has not started, a winner awaits confirmation, or
            every round has been drawn.
        EmptyPoolError
            If nobody is eligible for the current round.
        NoEligibleParticipantsError
            If every name the re-draw reaches has already won or withdrawn, or
            nobody in ``pool`` can take part in the current round.
        """
        state = self._state
        phase = self.phase
        if phase is DrawPhase.NOT_STARTED:
            raise InvalidTransitionError("Begin the drawing before drawing a winner")
        if phase is DrawPhase.PENDING_CONFIRMATION:
            raise InvalidTransitionError(
                f"Winner '{state.pending_winner}' is awaiting confirmation"
            )
        current = self.current_round
        if current is None:
            raise InvalidTransitionError("Every round has already been drawn")

        settled = set(self.winner_names) | set(state.withdrawn_names)
        if pool is None:
            remaining = self.eligible_for_current_round()
        else:
            remaining = self._resolve_pool(pool, current, settled)
            if pool and not remaining:
                raise NoEligibleParticipantsError(
                    f"Nobody in the supplied pool can take part in {current.name}"
                )
        if not remaining:
            raise EmptyPoolError(f"Nothing to draw in {current.name}")

        rng = rng or random.random
        selected = select_winner(remaining, rng)
        attempts = 0
        while selected in settled:
            attempts += 1
            logger.warning(
                f"'{selected}' was drawn again in {current.name}; re-drawing (attempt {attempts})"
            )
            remaining = [p for p in remaining if p.name != selected]
            if not remaining or attempts >= MAX_REDRAW_ATTEMPTS:
                raise NoEligibleParticipantsError(
                    f"Every remaining participant in {current.name} has already won or withdrawn"
                )
            selected = select_winner(remaining, rng)

        self._commit(replace(state, pending_winner=selected, is_draw_in_progress=False))
        logger.debug(f"Pending winner for {current.name}: {selected}")
        return selected

    def confirm(self) -> Winner:
        """Record the pending winner and advance to the next round.

        The winner stays in the eligible pool for display with status
        ``winner``; the eligibility filter keeps it out of later draws.
        """
        state = self._state
        name = state.pending_winner
        if not name:
            raise InvalidTransitionError("There is no pending winner to confirm")
        if name in self.winner_names:
            raise InvalidTransitionError(f"'{name}' has already been confirmed as a winner")
        current = self.current_round
        if current is None:
            raise InvalidTransitionError("Every round has already been drawn")

        winner = Winner(
            participant_name=name,
            round_index=state.current_round_index,
            round_name=current.name,
            prize_label=f"Prize {len(state.winners) + 1}",
        )
        self._commit(
            replace(
                state,
                all_participants=_set_status(
                    state.all_participants, name, ParticipantStatus.WINNER
                ),
                eligible_pool=_set_status(state.eligible_pool, name, ParticipantStatus.WINNER),
                winners=[*state.winners, winner],
                current_round_index=state.current_round_index + 1,
                pending_winner=None,
                is_draw_in_progress=False,
            )
        )
        logger.info(f"Confirmed {name} as the winner of {current.name}")
        return winner

    def reject(self) -> str:
        """Withdraw the pending winner and stay in the same round.

        The withdrawn name is excluded from every later draw of the session.
        """
        state = self._state
        name = state.pending_winner
        if not name:
            raise InvalidTransitionError("There is no pending winner to reject")

        withdrawn = list(state.withdrawn_names)
        if name not in withdrawn:
            withdrawn.append(name)
        self._commit(
            replace(
                state,
                all_participants=_set_status(
                    state.all_participants, name, ParticipantStatus.WITHDRAWN
                ),
                eligible_pool=_set_status(
                    state.eligible_pool, name, ParticipantStatus.WITHDRAWN
                ),
                withdrawn_names=withdrawn,
                pending_winner=None,
                is_draw_in_progress=False,
            )
        )
        logger.info(f"Withdrew {name}; the round will be drawn again")
        return name

    def reset(self) -> None:
        """Return to a not-started session over the same participants.

        Erases the stored snapshot as the final step.
        """
        participants = [
            p.with_status(ParticipantStatus.ELIGIBLE) for p in self._state.all_participants
        ]
        self._state = replace(
            self._state,
            all_participants=participants,
            eligible_pool=list(participants),
            current_round_index=0,
            winners=[],
            withdrawn_names=[],
            pending_winner=None,
            is_draw_in_progress=False,
            has_started=False,
        )
        logger.info("Drawing reset")
        if self._persistence is not None:
            self._persistence.clear()

    def configure(self, settings: RoundConfigurationSettings) -> list[Round]:
        """Regenerate the round list from the loaded participants.

        Round progress is reset. Refused once a winner has been confirmed.
        """
        self._ensure_rounds_editable()
        rounds = plan_rounds(self._state.all_participants, settings)
        state = self._state
        self._commit(
            replace(
                state,
                rounds=rounds,
                current_round_index=0,
                winners=[],
                pending_winner=None,
                is_draw_in_progress=False,
                eligible_pool=[
                    p
                    for p in state.all_participants
                    if p.status is ParticipantStatus.ELIGIBLE
                ],
            )
        )
        logger.debug(f"Configured {len(rounds)} rounds")
        return list(rounds)

    def set_rounds(self, rounds: Sequence[Round]) -> None:
        """Replace the round list wholesale.

        Raises
        ------
        InvalidConfigurationError
            If ``rounds`` is empty or its ids are not sequential from 1.
        InvalidTransitionError
            If a winner has already been confirmed.
        """
        self._ensure_rounds_editable()
        _check_round_ids(rounds)
        self._commit(replace(self._state, rounds=list(rounds)))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve_pool(
        self, pool: Sequence[Participant], current: Round, settled: set[str]
    ) -> list[Participant]:
        """Map a caller's pool onto the machine's records for ``current``.

        Settled names are kept so the bounded re-draw can step past them.
        """
        known = {p.name: p for p in self._state.eligible_pool}
        resolved: dict[str, Participant] = {}
        for entry in pool:
            record = known.get(entry.name)
            if record is None or entry.name in resolved:
                continue
            if record.score < current.eligibility_threshold:
                continue
            if record.status is not ParticipantStatus.ELIGIBLE and record.name not in settled:
                continue
            resolved[record.name] = replace(record)
        if len(resolved) != len(pool):
            logger.debug(
                f"Dropped {len(pool) - len(resolved)} stale pool entries in {current.name}"
            )
        return list(resolved.values())

    def _ensure_rounds_editable(self) -> None:
        if self._state.has_started and self._state.current_round_index > 0:
            raise InvalidTransitionError("Rounds cannot change after a round has been won")

    def _commit(self, new_state: DrawState) -> None:
        self._state = new_state
        if self._persistence is not None:
            self._persistence.save(new_state)


__all__ = [
    "DrawPhase",
    "DrawStateMachine",
    "MAX_REDRAW_ATTEMPTS",
]
