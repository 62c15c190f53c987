from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

_RELATIVE_SQLITE_PREFIX = "sqlite:///./"


def resolve_sqlite_url(url: str, project_root: Path) -> str:
    """Anchor a ``sqlite:///./relative.db`` URL at ``project_root``.

    Any other URL, including in-memory SQLite, is returned unchanged so that
    scripts run from another directory still open the same database file.
    """
    if not url.startswith(_RELATIVE_SQLITE_PREFIX):
        return url
    relative = url[len(_RELATIVE_SQLITE_PREFIX) :]
    return f"sqlite:///{(project_root / relative).resolve()}"


def is_memory_sqlite(url: str) -> bool:
    """Return whether ``url`` points at a private in-memory SQLite database."""
    if not url.startswith("sqlite"):
        return False
    _, _, database = url.partition(":///")
    return database in {"", ":memory:"} or database.startswith(":memory:?")


def dt_iso(dt: Optional[datetime]) -> Optional[str]:
    """Render ``dt`` as an ISO 8601 string in UTC, or return None.

    SQLite hands ``DateTime(timezone=True)`` columns back naive; those values
    are taken to be UTC already.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)
