"""Database model for saved raffle configurations."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Index, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from .base import Base
from ..db.utils import dt_iso, utcnow


class RaffleConfiguration(Base):
    """A named participant list together with its round settings and rounds."""

    __tablename__ = "raffle_configurations"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    """Generated base62 identifier."""

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    """Human readable label chosen by the organiser."""

    participants: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )
    """Participant records in their JSON form."""

    round_settings: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    """Serialized :class:`~raffledraw.draw.types.RoundConfigurationSettings`.

    ``None`` for rows written before settings were stored.
    """

    rounds: Mapped[Optional[list[dict[str, Any]]]] = mapped_column(JSON, nullable=True)
    """Generated rounds in their JSON form, embedded so a restore needs no re-plan."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    """Timestamp when the configuration was created."""

    last_modified: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    """Timestamp bumped every time the configuration is saved."""

    __table_args__ = (Index("ix_raffle_configurations_name", "name"),)

    def __init__(
        self,
        *,
        id: str,
        name: str,
        participants: Optional[list[dict[str, Any]]] = None,
        round_settings: Optional[dict[str, Any]] = None,
        rounds: Optional[list[dict[str, Any]]] = None,
        created_at: Optional[datetime] = None,
        last_modified: Optional[datetime] = None,
    ) -> None:
        self.id = id
        self.name = name
        self.participants = participants if participants is not None else []
        self.round_settings = round_settings
        self.rounds = rounds
        if created_at is not None:
            self.created_at = created_at
        if last_modified is not None:
            self.last_modified = last_modified

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<RaffleConfiguration(id={id}, name={name}, participants={count})>".format(
            id=self.id,
            name=self.name,
            count=len(self.participants or []),
        )

    def to_json(self) -> dict[str, Any]:
        """Serialize the configuration into JSON-compatible primitives."""
        return {
            "id": self.id,
            "name": self.name,
            "participants": list(self.participants or []),
            "round_settings": self.round_settings,
            "rounds": list(self.rounds or []),
            "created_at": dt_iso(self.created_at),
            "last_modified": dt_iso(self.last_modified),
        }

    @classmethod
    def get_by_name(cls, session: Session, name: str) -> Optional["RaffleConfiguration"]:
        """Return the most recently modified configuration called ``name``."""
        stmt = (
            select(cls)
            .where(cls.name == name)
            .order_by(cls.last_modified.desc(), cls.id.asc())
        )
        return session.scalars(stmt).first()


__all__ = ["RaffleConfiguration"]
