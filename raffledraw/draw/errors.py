"""Exception hierarchy raised by the drawing engine."""

from __future__ import annotations


class DrawError(Exception):
    """Base class for every error raised by the drawing engine."""


class EmptyPoolError(DrawError):
    """Raised when a draw is requested but nobody is eligible to win it."""


class NoEligibleParticipantsError(DrawError):
    """Raised when the bounded re-draw runs out of names that have not won yet."""


class InvalidConfigurationError(DrawError, ValueError):
    """Raised for malformed round settings, round lists or participant lists."""


class InvalidTransitionError(DrawError, RuntimeError):
    """Raised when an operation is not allowed from the machine's current phase."""


__all__ = [
    "DrawError",
    "EmptyPoolError",
    "InvalidConfigurationError",
    "InvalidTransitionError",
    "NoEligibleParticipantsError",
]
