from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .stored_value import StoredValue  # noqa: F401
from .configuration import RaffleConfiguration  # noqa: F401

__all__ = [
    "Base",
    "RaffleConfiguration",
    "StoredValue",
]
