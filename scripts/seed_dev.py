from datetime import datetime, timedelta, timezone

from raffledraw.configurations import create_configuration
from raffledraw.db.engine import get_sessionmaker, make_engine
from raffledraw.draw.types import (
    Participant,
    RoundConfigurationSettings,
    SelectionModel,
)
from raffledraw.models import Base

SAMPLE_TEAMS = [
    ("Falcons", 1840, 23),
    ("Otters", 1525, 19),
    ("Lynx", 1200, 15),
    ("Herons", 1200, 14),
    ("Badgers", 960, 12),
    ("Magpies", 720, 9),
    ("Foxes", 455, 6),
    ("Voles", 150, 2),
    ("Wrens", 50, 1),
    ("Newts", 0, 0),
]


def main() -> None:
    """Seed the development database with two sample configurations."""
    engine = make_engine()

    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    Session = get_sessionmaker(engine)

    now = datetime.now(timezone.utc)
    participants = [
        Participant(
            name=name,
            score=score,
            submission_count=submissions,
            last_activity_timestamp=(now - timedelta(hours=index)).isoformat(),
        )
        for index, (name, score, submissions) in enumerate(SAMPLE_TEAMS)
    ]

    with Session.begin() as session:
        continuous = create_configuration(
            session,
            "Spring finals (continuous)",
            participants,
            RoundConfigurationSettings(
                round_count=5, selection_model=SelectionModel.WEIGHTED_CONTINUOUS
            ),
        )
        elimination = create_configuration(
            session,
            "Spring finals (elimination)",
            participants,
            RoundConfigurationSettings(
                round_count=4, selection_model=SelectionModel.UNIFORM_ELIMINATION
            ),
        )
        print(f"Seeded configurations: {continuous.id}, {elimination.id}")


if __name__ == "__main__":
    main()
