from sqlalchemy.orm import DeclarativeBase

from raffledraw.db.metadata import metadata_obj


class Base(DeclarativeBase):
    """Declarative base for the raffle tables.

    Shares :data:`~raffledraw.db.metadata.metadata_obj` so that Alembic sees
    the same constraint names the models create.
    """

    metadata = metadata_obj
