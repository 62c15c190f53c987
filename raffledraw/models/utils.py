"""Utility helpers for the models package."""

from __future__ import annotations

import secrets
import string
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

BASE62_ALPHABET = string.digits + string.ascii_uppercase + string.ascii_lowercase


def generate_configuration_id(
    session: Optional[Session] = None,
    length: int = 16,
    max_attempts: int = 32,
) -> str:
    """Return a unique configuration identifier made of base62 characters.

    When a session is provided, the helper retries if the generated value is
    already present (or pending) in ``RaffleConfiguration.id``.
    """
    from .configuration import RaffleConfiguration

    for _ in range(max_attempts):
        candidate = "".join(secrets.choice(BASE62_ALPHABET) for _ in range(length))
        if session is None:
            return candidate

        pending = any(
            isinstance(obj, RaffleConfiguration) and obj.id == candidate
            for obj in session.new
        )
        if pending:
            continue

        exists = session.scalar(
            select(RaffleConfiguration.id).where(RaffleConfiguration.id == candidate)
        )
        if exists is None:
            return candidate

    raise RuntimeError(
        "Unable to generate a unique configuration identifier after multiple attempts"
    )
