"""Key/value rows backing the draw-state snapshot."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String, Text, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from .base import Base
from ..db.utils import utcnow


class StoredValue(Base):
    """A single JSON document stored under a string key."""

    __tablename__ = "stored_values"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    """Storage key, e.g. ``"raffleState"``."""

    value: Mapped[str] = mapped_column(Text, nullable=False)
    """Serialized JSON document."""

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )
    """Timestamp of the latest write."""

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<StoredValue(key={self.key}, size={len(self.value or '')})>"

    @classmethod
    def get_by_key(cls, session: Session, key: str) -> Optional["StoredValue"]:
        """Return the row stored under ``key`` if it exists."""
        return session.scalar(select(cls).where(cls.key == key))


__all__ = ["StoredValue"]
