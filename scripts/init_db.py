"""Prepare the raffle database and report its tables.

Usage::

    python scripts/init_db.py               # alembic upgrade head
    python scripts/init_db.py --create-all  # metadata.create_all, no migrations
    python scripts/init_db.py --check       # compare models against the live schema
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from alembic import command
from alembic.autogenerate import api as ag_api
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from sqlalchemy import inspect

from raffledraw.db.engine import make_engine
from raffledraw.models import Base

logger = logging.getLogger("raffledraw.init_db")

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def upgrade_db(target_revision: str = "head") -> None:
    """Apply Alembic migrations up to ``target_revision``."""
    alembic_cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    command.upgrade(alembic_cfg, target_revision)


def create_all() -> None:
    """Create missing tables straight from the model metadata."""
    Base.metadata.create_all(make_engine())


def check_drift() -> int:
    """Return 0 when the live schema matches the models, 1 on drift, 2 on error."""
    engine = make_engine()
    url_display = engine.url.render_as_string(hide_password=True)
    try:
        with engine.connect() as connection:
            context = MigrationContext.configure(
                connection=connection,
                opts={
                    "compare_type": True,
                    "render_as_batch": connection.dialect.name == "sqlite",
                },
            )
            upgrade_ops = ag_api.produce_migrations(context, Base.metadata).upgrade_ops
    except Exception as exc:
        logger.error(f"Schema check failed for {url_display}: {exc}")
        return 2

    if upgrade_ops is None or upgrade_ops.is_empty():
        logger.info(f"Schema matches the models for {url_display}")
        return 0
    logger.warning(f"Schema drift detected for {url_display}:")
    for op in upgrade_ops.ops or []:
        logger.warning(f"  - {op}")
    return 1


def print_tables() -> None:
    insp = inspect(make_engine())
    print("Current tables:", ", ".join(sorted(insp.get_table_names())))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--create-all", action="store_true", help="skip migrations")
    group.add_argument("--check", action="store_true", help="only report schema drift")
    parser.add_argument("--revision", default="head", help="alembic target revision")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    if args.check:
        return check_drift()
    if args.create_all:
        create_all()
    else:
        upgrade_db(args.revision)
    print_tables()
    return 0


if __name__ == "__main__":
    sys.exit(main())
