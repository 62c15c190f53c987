from __future__ import annotations

import unittest
from dataclasses import replace

from raffledraw.draw import (
    DEFAULT_MODEL_REGISTRY,
    InvalidConfigurationError,
    ModelRegistry,
    Participant,
    RoundConfigurationSettings,
    SelectionModel,
    default_rounds,
    plan_rounds,
)

ELIMINATION = SelectionModel.UNIFORM_ELIMINATION
CONTINUOUS = SelectionModel.WEIGHTED_CONTINUOUS


def _field(*scores: float) -> list[Participant]:
    return [Participant(f"P{i}", score=s) for i, s in enumerate(scores, start=1)]


class PlanRoundsTests(unittest.TestCase):
    def test_elimination_thresholds_follow_sorted_scores(self) -> None:
        participants = _field(100, 200, 300, 400, 500, 600, 700, 800, 900, 1000)
        rounds = plan_rounds(participants, RoundConfigurationSettings(3, ELIMINATION))
        self.assertEqual([r.eligibility_threshold for r in rounds], [0, 500, 900])
        self.assertEqual([r.id for r in rounds], [1, 2, 3])
        self.assertEqual([r.name for r in rounds], ["Round 1", "Round 2", "Final Round"])
        self.assertEqual(rounds[0].description, "All players eligible")
        self.assertEqual(rounds[1].description, "Players with 500+ points (6 eligible)")

    def test_elimination_thresholds_never_decrease(self) -> None:
        participants = _field(1200, 0, 150, 50, 1200)
        for count in range(1, 9):
            with self.subTest(round_count=count):
                rounds = plan_rounds(participants, RoundConfigurationSettings(count, ELIMINATION))
                thresholds = [r.eligibility_threshold for r in rounds]
                self.assertEqual(len(rounds), count)
                self.assertEqual(thresholds[0], 0)
                self.assertEqual(thresholds, sorted(thresholds))

    def test_more_rounds_than_participants_reuses_top_score(self) -> None:
        rounds = plan_rounds(_field(100, 300), RoundConfigurationSettings(4, ELIMINATION))
        self.assertEqual([r.eligibility_threshold for r in rounds], [0, 300, 300, 300])

    def test_continuous_thresholds_are_all_zero(self) -> None:
        rounds = plan_rounds(_field(5, 5000, 120), RoundConfigurationSettings(4, CONTINUOUS))
        self.assertEqual([r.eligibility_threshold for r in rounds], [0, 0, 0, 0])
        self.assertEqual(rounds[-1].name, "Final Round")

    def test_default_settings_give_five_continuous_rounds(self) -> None:
        rounds = plan_rounds(_field(100, 200))
        self.assertEqual(len(rounds), 5)
        self.assertTrue(all(r.eligibility_threshold == 0 for r in rounds))

    def test_no_participants_uses_default_ladder(self) -> None:
        rounds = plan_rounds([], RoundConfigurationSettings(5, ELIMINATION))
        self.assertEqual([r.eligibility_threshold for r in rounds], [0, 200, 400, 600, 800])
        self.assertEqual(rounds, default_rounds(5, ELIMINATION))

    def test_default_ladder_rounds_half_up(self) -> None:
        thresholds = [r.eligibility_threshold for r in default_rounds(3)]
        self.assertEqual(thresholds, [0, 333, 667])

    def test_string_model_is_accepted(self) -> None:
        settings = RoundConfigurationSettings(2, "uniform_elimination")  # type: ignore[arg-type]
        rounds = plan_rounds(_field(100, 900), settings)
        self.assertEqual([r.eligibility_threshold for r in rounds], [0, 900])

    def test_invalid_settings_raise(self) -> None:
        bad = [
            RoundConfigurationSettings(0, CONTINUOUS),
            RoundConfigurationSettings(-2, ELIMINATION),
            RoundConfigurationSettings("3", CONTINUOUS),  # type: ignore[arg-type]
            RoundConfigurationSettings(True, CONTINUOUS),  # type: ignore[arg-type]
            RoundConfigurationSettings(3, "lottery"),  # type: ignore[arg-type]
            RoundConfigurationSettings(3, CONTINUOUS, winners_per_round=2),
        ]
        for settings in bad:
            with self.subTest(settings=settings):
                with self.assertRaises(InvalidConfigurationError):
                    plan_rounds(_field(100), settings)

    def test_invalid_configuration_is_a_value_error(self) -> None:
        with self.assertRaises(ValueError):
            plan_rounds([], RoundConfigurationSettings(0, CONTINUOUS))


class SettingsSerializationTests(unittest.TestCase):
    def test_missing_settings_fall_back_to_defaults(self) -> None:
        self.assertEqual(RoundConfigurationSettings.from_json(None), RoundConfigurationSettings())
        partial = RoundConfigurationSettings.from_json({"round_count": 3})
        self.assertEqual(partial.round_count, 3)
        self.assertEqual(partial.validate().selection_model, CONTINUOUS)

    def test_json_uses_model_values(self) -> None:
        data = RoundConfigurationSettings(2, ELIMINATION).to_json()
        self.assertEqual(
            data,
            {"round_count": 2, "selection_model": "uniform_elimination", "winners_per_round": 1},
        )


class ModelRegistryTests(unittest.TestCase):
    def test_default_registry_contains_both_models(self) -> None:
        available = DEFAULT_MODEL_REGISTRY.available_models()
        self.assertEqual(set(available), {ELIMINATION, CONTINUOUS})
        self.assertTrue(available[ELIMINATION].drops_off_after_round)
        self.assertFalse(available[CONTINUOUS].drops_off_after_round)

    def test_lookup_by_string_value(self) -> None:
        definition = DEFAULT_MODEL_REGISTRY.get("weighted_continuous")
        self.assertEqual(definition.key, CONTINUOUS)

    def test_custom_registry_registration(self) -> None:
        registry = ModelRegistry()
        with self.assertRaises(KeyError):
            registry.get(CONTINUOUS)
        with self.assertRaises(KeyError):
            registry.get("missing")
        definition = DEFAULT_MODEL_REGISTRY.get(CONTINUOUS)
        registry.register(definition)
        with self.assertRaises(ValueError):
            registry.register(definition)
        registry.register(definition, replace=True)
        self.assertIs(registry.get(CONTINUOUS), definition)

    def test_planner_follows_registered_drop_off_flag(self) -> None:
        flat = replace(DEFAULT_MODEL_REGISTRY.get(ELIMINATION), drops_off_after_round=False)
        registry = ModelRegistry()
        registry.register(flat)
        settings = RoundConfigurationSettings(3, ELIMINATION)

        rounds = plan_rounds(_field(100, 500, 900), settings, registry=registry)
        self.assertEqual([r.eligibility_threshold for r in rounds], [0, 0, 0])
        ladder = default_rounds(3, ELIMINATION, registry=registry)
        self.assertEqual([r.eligibility_threshold for r in ladder], [0, 0, 0])

    def test_unregistered_model_cannot_be_planned(self) -> None:
        settings = RoundConfigurationSettings(3, CONTINUOUS)
        with self.assertRaises(InvalidConfigurationError):
            plan_rounds(_field(100, 200), settings, registry=ModelRegistry())
        with self.assertRaises(InvalidConfigurationError):
            plan_rounds([], settings, registry=ModelRegistry())


if __name__ == "__main__":
    unittest.main()
