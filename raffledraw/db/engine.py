import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from .utils import is_memory_sqlite, resolve_sqlite_url

load_dotenv()
# Repository root, used to anchor relative SQLite paths
ROOT_DIR = Path(__file__).resolve().parents[2]
DEFAULT_SQLITE_URL = resolve_sqlite_url(
    os.getenv("DB_URL", "sqlite:///./dev.db"), ROOT_DIR
)
DB_ECHO = os.getenv("DB_ECHO", "").lower() in {"1", "true", "yes"}


def make_engine(database_url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """Create the engine for ``database_url`` (``DB_URL`` when omitted).

    Deferred snapshot writes run on a timer thread, so SQLite connections are
    opened with ``check_same_thread=False``. An in-memory database is pinned
    to a single shared connection; otherwise every thread would see its own
    empty database.
    """
    url = database_url or DEFAULT_SQLITE_URL
    kwargs = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if is_memory_sqlite(url):
            kwargs["poolclass"] = StaticPool
    return create_engine(
        url,
        echo=DB_ECHO if echo is None else echo,
        future=True,
        **kwargs,
    )


def get_sessionmaker(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        expire_on_commit=False,  # snapshots are read after the session closes
        future=True,
    )
