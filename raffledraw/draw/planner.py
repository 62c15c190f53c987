"""Round planning for the supported selection models."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from .errors import InvalidConfigurationError
from .types import (
    Participant,
    Round,
    RoundConfigurationSettings,
    SelectionModel,
)

DEFAULT_THRESHOLD_CEILING = 1000
"""Upper score bound of the fixed ladder used before any data is loaded."""

FINAL_ROUND_NAME = "Final Round"


@dataclass(frozen=True)
class SelectionModelDefinition:
    """Description of a selection model and the behaviour it implies.

    Attributes
    ----------
    key : SelectionModel
        Registry key of the model.
    name : str
        Human readable label.
    description : str
        Summary shown next to the model picker.
    removes_winners : bool
        Whether a confirmed winner stops competing in later rounds.
    weighted : bool
        Whether draws are weighted by entry count.
    drops_off_after_round : bool
        Whether thresholds rise so that the field narrows every round.
    """

    key: SelectionModel
    name: str
    description: str
    removes_winners: bool
    weighted: bool
    drops_off_after_round: bool


class ModelRegistry:
    """Mutable registry mapping selection models to their definitions."""

    def __init__(self) -> None:
        self._models: Dict[SelectionModel, SelectionModelDefinition] = {}

    def register(
        self, definition: SelectionModelDefinition, *, replace: bool = False
    ) -> None:
        """Register ``definition`` under its key.

        Raises
        ------
        ValueError
            If the key is already registered and ``replace`` is ``False``.
        """
        if not replace and definition.key in self._models:
            raise ValueError(f"Selection model '{definition.key.value}' is already registered")
        self._models[definition.key] = definition

    def get(self, key: SelectionModel | str) -> SelectionModelDefinition:
        """Return the definition registered under ``key``."""
        try:
            return self._models[SelectionModel(key)]
        except (KeyError, ValueError) as exc:
            raise KeyError(f"Unknown selection model '{key}'") from exc

    def available_models(self) -> Dict[SelectionModel, SelectionModelDefinition]:
        """Return a copy of the registered definitions keyed by model."""
        return dict(self._models)


DEFAULT_MODEL_REGISTRY = ModelRegistry()
DEFAULT_MODEL_REGISTRY.register(
    SelectionModelDefinition(
        key=SelectionModel.UNIFORM_ELIMINATION,
        name="Uniform Elimination Round",
        description="Thresholds rise every round so the field narrows progressively.",
        removes_winners=True,
        weighted=True,
        drops_off_after_round=True,
    )
)
DEFAULT_MODEL_REGISTRY.register(
    SelectionModelDefinition(
        key=SelectionModel.WEIGHTED_CONTINUOUS,
        name="Weighted Continuous Round",
        description="Everyone stays eligible; tickets alone set the odds.",
        removes_winners=True,
        weighted=True,
        drops_off_after_round=False,
    )
)


def _round_name(index: int, round_count: int) -> str:
    return FINAL_ROUND_NAME if index == round_count - 1 else f"Round {index + 1}"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _continuous_rounds(round_count: int) -> list[Round]:
    return [
        Round(
            id=i + 1,
            name=_round_name(i, round_count),
            eligibility_threshold=0,
            description="All players remain eligible (weighted by tickets)",
        )
        for i in range(round_count)
    ]


def _definition(
    registry: ModelRegistry, selection_model: SelectionModel
) -> SelectionModelDefinition:
    try:
        return registry.get(selection_model)
    except KeyError as exc:
        raise InvalidConfigurationError(
            f"Selection model '{SelectionModel(selection_model).value}' is not registered"
        ) from exc


def default_rounds(
    round_count: int,
    selection_model: SelectionModel = SelectionModel.UNIFORM_ELIMINATION,
    *,
    registry: Optional[ModelRegistry] = None,
) -> list[Round]:
    """Return the fixed ladder used when no participants are loaded.

    Models that narrow the field spread their thresholds evenly from 0
    towards :data:`DEFAULT_THRESHOLD_CEILING`; the others keep every
    threshold at zero.
    """
    definition = _definition(registry or DEFAULT_MODEL_REGISTRY, selection_model)
    if not definition.drops_off_after_round:
        return _continuous_rounds(round_count)

    step = DEFAULT_THRESHOLD_CEILING / round_count
    rounds: list[Round] = []
    for i in range(round_count):
        threshold = _round_half_up(i * step)
        rounds.append(
            Round(
                id=i + 1,
                name=_round_name(i, round_count),
                eligibility_threshold=threshold,
                description=(
                    "All players eligible" if i == 0 else f"Players with {threshold}+ points"
                ),
            )
        )
    return rounds


def _elimination_rounds(sorted_scores: Sequence[float], round_count: int) -> list[Round]:
    """Split ascending ``sorted_scores`` into ``round_count`` equal buckets."""
    bucket_size = math.ceil(len(sorted_scores) / round_count)
    rounds: list[Round] = []
    for i in range(round_count):
        start = i * bucket_size
        score_at_start = (
            sorted_scores[start] if start < len(sorted_scores) else sorted_scores[-1]
        )
        if i == 0:
            threshold = 0
            description = "All players eligible"
        else:
            threshold = max(0, score_at_start)
            expected = sum(1 for score in sorted_scores if score >= threshold)
            description = f"Players with {threshold}+ points ({expected} eligible)"
        rounds.append(
            Round(
                id=i + 1,
                name=_round_name(i, round_count),
                eligibility_threshold=threshold,
                description=description,
            )
        )
    return rounds


def plan_rounds(
    participants: Sequence[Participant],
    settings: Optional[RoundConfigurationSettings] = None,
    *,
    registry: Optional[ModelRegistry] = None,
) -> list[Round]:
    """Produce the round list for ``participants`` under ``settings``.

    Parameters
    ----------
    participants : Sequence[Participant]
        Loaded participants. Only their scores are used.
    settings : Optional[RoundConfigurationSettings], default: None
        Round count and selection model. Defaults to five continuous rounds.
    registry : Optional[ModelRegistry], default: None
        Where the model's behaviour is looked up. Thresholds rise only for
        models flagged ``drops_off_after_round``. Defaults to
        :data:`DEFAULT_MODEL_REGISTRY`.

    Returns
    -------
    list[Round]
        A new list; callers replace their previous list with it wholesale.

    Raises
    ------
    InvalidConfigurationError
        If ``settings`` fail validation or name an unregistered model.
    """
    settings = (settings or RoundConfigurationSettings()).validate()
    registry = registry or DEFAULT_MODEL_REGISTRY

    if not participants:
        return default_rounds(settings.round_count, settings.selection_model, registry=registry)

    if not _definition(registry, settings.selection_model).drops_off_after_round:
        return _continuous_rounds(settings.round_count)

    scores = sorted(p.score for p in participants)
    return _elimination_rounds(scores, settings.round_count)


__all__ = [
    "DEFAULT_MODEL_REGISTRY",
    "DEFAULT_THRESHOLD_CEILING",
    "FINAL_ROUND_NAME",
    "ModelRegistry",
    "SelectionModelDefinition",
    "default_rounds",
    "plan_rounds",
]
