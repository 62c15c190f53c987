from __future__ import annotations

import logging
import os
import sys
from logging.config import fileConfig
from pathlib import Path
from typing import Any, Optional

from alembic import context
from sqlalchemy.engine import Connection
from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))
load_dotenv(ROOT_DIR / ".env")

from raffledraw.db.engine import DEFAULT_SQLITE_URL, make_engine  # noqa: E402
from raffledraw.db.utils import resolve_sqlite_url  # noqa: E402
from raffledraw.models import Base  # noqa: E402

config = context.config

# Callers that hand over an open connection (tests, init scripts) keep their
# own logging setup.
SUPPLIED_CONNECTION: Optional[Connection] = config.attributes.get("connection")

if config.config_file_name is not None and SUPPLIED_CONNECTION is None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

logger = logging.getLogger("alembic.env")

target_metadata = Base.metadata
MANAGED_TABLES = frozenset(target_metadata.tables)


def _database_url() -> str:
    """Resolve the target database.

    Order: ``alembic -x db_url=...``, then ``DB_URL``, then the ini value,
    then the package default.
    """
    candidates = (
        context.get_x_argument(as_dictionary=True).get("db_url"),
        os.getenv("DB_URL"),
        config.get_main_option("sqlalchemy.url"),
    )
    for url in candidates:
        if url:
            return resolve_sqlite_url(url, ROOT_DIR)
    return DEFAULT_SQLITE_URL


def include_object(obj: Any, name: Optional[str], type_: str, reflected: bool, compare_to: Any) -> bool:
    """Leave tables that raffledraw does not own out of autogenerate."""
    if type_ == "table":
        return name in MANAGED_TABLES
    table = getattr(obj, "table", None)
    if table is not None:
        return table.name in MANAGED_TABLES
    return True


def process_revision_directives(migration_context, revision, directives) -> None:
    """Drop autogenerated revisions that would contain no operations."""
    if not getattr(config.cmd_opts, "autogenerate", False):
        return
    script = directives[0]
    if script.upgrade_ops.is_empty():
        directives[:] = []
        logger.info("Models match the database; no revision written")


def _configure(**options: Any) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        include_object=include_object,
        process_revision_directives=process_revision_directives,
        **options,
    )


def run_migrations_offline() -> None:
    """Write the migration SQL to stdout."""
    _configure(
        url=_database_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _run_on(connection: Connection) -> None:
    # SQLite cannot ALTER most columns in place
    _configure(connection=connection, render_as_batch=connection.dialect.name == "sqlite")
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Migrate over a live connection, opening one when none was supplied."""
    if SUPPLIED_CONNECTION is not None:
        _run_on(SUPPLIED_CONNECTION)
        return

    url = _database_url()
    # ConfigParser interpolation treats '%' specially.
    config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    engine = make_engine(database_url=url)
    try:
        with engine.connect() as connection:
            _run_on(connection)
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
