from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from raffledraw.configurations import (
    apply_configuration,
    configuration_participants,
    configuration_rounds,
    configuration_settings,
    create_configuration,
    delete_configuration,
    get_configuration,
    list_configurations,
    update_configuration,
)
from raffledraw.draw import (
    DrawStateMachine,
    InvalidConfigurationError,
    InvalidTransitionError,
    Participant,
    RoundConfigurationSettings,
    SelectionModel,
)
from raffledraw.models import Base, RaffleConfiguration
from raffledraw.models.utils import BASE62_ALPHABET, generate_configuration_id
from raffledraw.persistence import DrawStatePersistence, InMemoryKeyValueStore


def _teams() -> list[Participant]:
    return [
        Participant("Falcons", score=1840, submission_count=23, last_activity_timestamp="2024-03-01T10:00"),
        Participant("Otters", score=960, submission_count=12, last_activity_timestamp="2024-03-01T09:00"),
        Participant("Wrens", score=50, submission_count=1, last_activity_timestamp="2024-02-28T18:00"),
    ]


class ConfigurationTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(bind=self.engine, future=True, expire_on_commit=False)

    def tearDown(self) -> None:
        self.engine.dispose()


class CreateConfigurationTests(ConfigurationTestCase):
    def test_create_and_reload(self) -> None:
        with self.Session.begin() as session:
            config = create_configuration(session, "  Spring finals ", _teams())
            config_id = config.id

        self.assertEqual(len(config_id), 16)
        self.assertTrue(all(ch in BASE62_ALPHABET for ch in config_id))

        with self.Session() as session:
            loaded = get_configuration(session, config_id)
            self.assertIsNotNone(loaded)
            self.assertEqual(loaded.name, "Spring finals")
            self.assertEqual(configuration_participants(loaded), _teams())
            self.assertEqual(configuration_settings(loaded), RoundConfigurationSettings())
            rounds = configuration_rounds(loaded)
            self.assertEqual(len(rounds), 5)
            self.assertTrue(all(r.eligibility_threshold == 0 for r in rounds))

            data = loaded.to_json()
            self.assertEqual(data["id"], config_id)
            self.assertTrue(data["created_at"].endswith("+00:00"))
            self.assertEqual(data["round_settings"]["selection_model"], "weighted_continuous")

    def test_elimination_rounds_are_planned_from_scores(self) -> None:
        settings = RoundConfigurationSettings(3, SelectionModel.UNIFORM_ELIMINATION)
        with self.Session.begin() as session:
            config = create_configuration(session, "Ladder", _teams(), settings)
        thresholds = [r.eligibility_threshold for r in configuration_rounds(config)]
        self.assertEqual(thresholds, [0, 960, 1840])

    def test_blank_name_is_rejected(self) -> None:
        with self.Session() as session:
            with self.assertRaises(ValueError):
                create_configuration(session, "   ", _teams())

    def test_invalid_settings_are_rejected(self) -> None:
        with self.Session() as session:
            with self.assertRaises(InvalidConfigurationError):
                create_configuration(session, "Broken", _teams(), RoundConfigurationSettings(0))
            self.assertEqual(session.query(RaffleConfiguration).count(), 0)

    def test_generated_ids_are_unique_within_a_session(self) -> None:
        with self.Session() as session:
            ids = {generate_configuration_id(session) for _ in range(50)}
        self.assertEqual(len(ids), 50)


class StoredConfigurationTests(ConfigurationTestCase):
    def test_list_orders_oldest_first_and_backfills(self) -> None:
        base = datetime(2024, 3, 1, tzinfo=timezone.utc)
        with self.Session.begin() as session:
            session.add_all(
                [
                    RaffleConfiguration(
                        id="newer",
                        name="Newer",
                        participants=[p.to_json() for p in _teams()],
                        round_settings={"round_count": 2, "selection_model": "uniform_elimination"},
                        created_at=base + timedelta(days=1),
                        last_modified=base + timedelta(days=1),
                    ),
                    RaffleConfiguration(
                        id="legacy",
                        name="Legacy",
                        participants=[{"name": "Ada", "score": 300}],
                        created_at=base,
                        last_modified=base,
                    ),
                ]
            )

        with self.Session.begin() as session:
            configs = list_configurations(session)
            self.assertEqual([c.id for c in configs], ["legacy", "newer"])

            legacy, newer = configs
            self.assertEqual(configuration_settings(legacy), RoundConfigurationSettings())
            self.assertEqual(len(configuration_rounds(legacy)), 5)
            self.assertEqual(
                [r.eligibility_threshold for r in configuration_rounds(newer)], [0, 1840]
            )

    def test_update_replans_rounds(self) -> None:
        with self.Session.begin() as session:
            config = create_configuration(session, "Spring", _teams())
            config_id = config.id

        with self.Session.begin() as session:
            config = get_configuration(session, config_id)
            update_configuration(
                session,
                config,
                participants=_teams()[:2],
                settings=RoundConfigurationSettings(2, SelectionModel.UNIFORM_ELIMINATION),
            )

        with self.Session() as session:
            config = get_configuration(session, config_id)
            self.assertEqual(len(config.participants), 2)
            self.assertEqual(
                [r.eligibility_threshold for r in configuration_rounds(config)], [0, 1840]
            )
            self.assertIs(
                configuration_settings(config).selection_model,
                SelectionModel.UNIFORM_ELIMINATION,
            )

    def test_get_by_name_prefers_latest(self) -> None:
        base = datetime(2024, 3, 1, tzinfo=timezone.utc)
        with self.Session.begin() as session:
            for index in range(3):
                session.add(
                    RaffleConfiguration(
                        id=f"cfg{index}",
                        name="Finals",
                        created_at=base,
                        last_modified=base + timedelta(hours=index),
                    )
                )

        with self.Session() as session:
            self.assertEqual(RaffleConfiguration.get_by_name(session, "Finals").id, "cfg2")
            self.assertIsNone(RaffleConfiguration.get_by_name(session, "Missing"))

    def test_delete(self) -> None:
        with self.Session.begin() as session:
            config_id = create_configuration(session, "Temp", _teams()).id

        with self.Session.begin() as session:
            self.assertTrue(delete_configuration(session, config_id))
        with self.Session.begin() as session:
            self.assertFalse(delete_configuration(session, config_id))
            self.assertIsNone(get_configuration(session, config_id))

    def test_apply_loads_participants_and_rounds(self) -> None:
        settings = RoundConfigurationSettings(3, SelectionModel.UNIFORM_ELIMINATION)
        with self.Session.begin() as session:
            config = create_configuration(session, "Apply", _teams(), settings)

        machine = DrawStateMachine()
        apply_configuration(machine, config)
        state = machine.state
        self.assertEqual([p.name for p in state.all_participants], ["Falcons", "Otters", "Wrens"])
        self.assertEqual(state.rounds, configuration_rounds(config))
        machine.begin()
        self.assertEqual(len(machine.eligible_for_current_round()), 3)

    def test_refused_apply_leaves_machine_and_snapshot_alone(self) -> None:
        with self.Session.begin() as session:
            config = create_configuration(
                session, "Next", [Participant("N1", score=400), Participant("N2", score=200)]
            )

        store = InMemoryKeyValueStore()
        persistence = DrawStatePersistence(store, debounce_seconds=0)
        machine = DrawStateMachine(persistence=persistence)
        machine.load_participants([Participant("X", score=500), Participant("Y", score=300)])
        machine.begin()
        machine.draw(lambda: 0.0)
        machine.confirm()
        before = machine.state
        stored = store.get(persistence.key)

        with self.assertRaises(InvalidTransitionError):
            apply_configuration(machine, config, preserve_progress=True)
        self.assertEqual(machine.state, before)
        self.assertEqual(store.get(persistence.key), stored)

    def test_apply_without_preserving_restarts_a_running_draw(self) -> None:
        with self.Session.begin() as session:
            config = create_configuration(
                session, "Next", [Participant("N1", score=400), Participant("N2", score=200)]
            )

        machine = DrawStateMachine()
        machine.load_participants([Participant("X", score=500), Participant("Y", score=300)])
        machine.begin()
        machine.draw(lambda: 0.0)
        machine.confirm()

        apply_configuration(machine, config)
        state = machine.state
        self.assertFalse(state.has_started)
        self.assertEqual(state.winners, [])
        self.assertEqual([p.name for p in state.all_participants], ["N1", "N2"])
        self.assertEqual(state.rounds, configuration_rounds(config))


if __name__ == "__main__":
    unittest.main()
