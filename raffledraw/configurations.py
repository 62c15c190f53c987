"""Workflows for named raffle configurations stored in the database."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from .db.utils import utcnow
from .draw.planner import plan_rounds
from .draw.state_machine import DrawStateMachine
from .draw.types import Participant, Round, RoundConfigurationSettings
from .models.configuration import RaffleConfiguration
from .models.utils import generate_configuration_id

logger = logging.getLogger(__name__)


def configuration_settings(config: RaffleConfiguration) -> RoundConfigurationSettings:
    """Return the validated round settings stored on ``config``."""
    return RoundConfigurationSettings.from_json(config.round_settings).validate()


def configuration_participants(config: RaffleConfiguration) -> list[Participant]:
    """Return the participants stored on ``config``."""
    return [Participant.from_json(p) for p in config.participants or []]


def configuration_rounds(config: RaffleConfiguration) -> list[Round]:
    """Return the rounds stored on ``config``."""
    return [Round.from_json(r) for r in config.rounds or []]


def create_configuration(
    session: Session,
    name: str,
    participants: Sequence[Participant],
    settings: Optional[RoundConfigurationSettings] = None,
) -> RaffleConfiguration:
    """Create and persist a configuration with freshly planned rounds.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session used for persistence.
    name : str
        Label of the configuration. Must not be blank.
    participants : Sequence[Participant]
        Participant list the configuration draws from.
    settings : Optional[RoundConfigurationSettings], default: None
        Round settings. Defaults to five weighted continuous rounds.

    Returns
    -------
    RaffleConfiguration
        The flushed ORM entity.

    Raises
    ------
    ValueError
        If ``name`` is blank.
    InvalidConfigurationError
        If ``settings`` fail validation.
    """
    if not name or not name.strip():
        raise ValueError("Configuration name must not be empty")

    settings = (settings or RoundConfigurationSettings()).validate()
    rounds = plan_rounds(participants, settings)
    now = utcnow()
    config = RaffleConfiguration(
        id=generate_configuration_id(session),
        name=name.strip(),
        participants=[p.to_json() for p in participants],
        round_settings=settings.to_json(),
        rounds=[r.to_json() for r in rounds],
        created_at=now,
        last_modified=now,
    )
    session.add(config)
    session.flush()
    logger.debug(f"Created configuration {config.id} ({config.name}) with {len(rounds)} rounds")
    return config


def save_configuration(session: Session, config: RaffleConfiguration) -> RaffleConfiguration:
    """Insert or update ``config`` and bump its ``last_modified`` timestamp."""
    if not config.id:
        config.id = generate_configuration_id(session)
    config.last_modified = utcnow()
    merged = session.merge(config)
    session.flush()
    return merged


def update_configuration(
    session: Session,
    config: RaffleConfiguration,
    *,
    participants: Optional[Sequence[Participant]] = None,
    settings: Optional[RoundConfigurationSettings] = None,
) -> RaffleConfiguration:
    """Replace the participants and/or settings of ``config`` and re-plan its rounds.

    Rounds are regenerated as a whole; they are never patched in place.
    """
    if participants is not None:
        config.participants = [p.to_json() for p in participants]
    resolved = (settings or configuration_settings(config)).validate()
    config.round_settings = resolved.to_json()
    config.rounds = [
        r.to_json() for r in plan_rounds(configuration_participants(config), resolved)
    ]
    return save_configuration(session, config)


def get_configuration(session: Session, config_id: str) -> Optional[RaffleConfiguration]:
    """Return the configuration stored under ``config_id`` with defaults filled."""
    config = session.get(RaffleConfiguration, config_id)
    if config is None:
        logger.debug(f"Configuration {config_id} not found")
        return None
    return _backfill(config)


def list_configurations(session: Session) -> list[RaffleConfiguration]:
    """Return every stored configuration, oldest first, with defaults filled.

    Rows written before round settings existed get the default settings, and
    rows without rounds get rounds planned from their participants.
    """
    stmt = select(RaffleConfiguration).order_by(
        RaffleConfiguration.created_at.asc(), RaffleConfiguration.id.asc()
    )
    return [_backfill(config) for config in session.scalars(stmt).all()]


def delete_configuration(session: Session, config_id: str) -> bool:
    """Delete the configuration stored under ``config_id``. Returns whether it existed."""
    config = session.get(RaffleConfiguration, config_id)
    if config is None:
        return False
    session.delete(config)
    session.flush()
    return True


def apply_configuration(
    machine: DrawStateMachine,
    config: RaffleConfiguration,
    *,
    preserve_progress: bool = False,
) -> None:
    """Load the participants and rounds of ``config`` into ``machine``.

    The swap is a single transition: when the machine refuses it (for example
    progress is preserved past a confirmed winner) nothing is changed.
    """
    participants = configuration_participants(config)
    rounds = configuration_rounds(config)
    if not rounds:
        rounds = plan_rounds(participants, configuration_settings(config))
    machine.load_configuration(participants, rounds, preserve_progress)


def _backfill(config: RaffleConfiguration) -> RaffleConfiguration:
    if not config.round_settings:
        config.round_settings = RoundConfigurationSettings().to_json()
    if not config.rounds:
        logger.debug(f"Generating rounds for configuration {config.id}")
        config.rounds = [
            r.to_json()
            for r in plan_rounds(
                configuration_participants(config), configuration_settings(config)
            )
        ]
    return config


__all__ = [
    "apply_configuration",
    "configuration_participants",
    "configuration_rounds",
    "configuration_settings",
    "create_configuration",
    "delete_configuration",
    "get_configuration",
    "list_configurations",
    "save_configuration",
    "update_configuration",
]
