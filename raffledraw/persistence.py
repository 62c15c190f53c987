"""Snapshot persistence for :class:`~raffledraw.draw.state_machine.DrawStateMachine`."""

from __future__ import annotations

import json
import logging
import os
import threading
import time
from typing import Any, Callable, Optional, Protocol

from sqlalchemy import delete
from sqlalchemy.orm import sessionmaker

from .draw.planner import plan_rounds
from .draw.types import DrawState, RoundConfigurationSettings
from .models.stored_value import StoredValue

logger = logging.getLogger(__name__)

RAFFLE_STATE_KEY = "raffleState"
SNAPSHOT_VERSION = 1
DEFAULT_DEBOUNCE_SECONDS = float(os.getenv("RAFFLE_SAVE_DEBOUNCE_SECONDS", "1.0"))

Scheduler = Callable[[float, Callable[[], None]], Any]
"""Callable that runs a callback after a delay and returns a cancellable handle."""


class KeyValueStore(Protocol):
    """Minimal string key/value interface the persistence adapter writes to."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryKeyValueStore:
    """Dictionary-backed store, handy for tests and throwaway sessions."""

    def __init__(self) -> None:
        self._values: dict[str, str] = {}
        self.write_count = 0

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value
        self.write_count += 1

    def delete(self, key: str) -> None:
        self._values.pop(key, None)


class SqlKeyValueStore:
    """Store backed by the ``stored_values`` table.

    Each call opens its own short transaction from ``session_factory`` so that
    writes made from a timer thread never share a session with the caller.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def get(self, key: str) -> Optional[str]:
        with self._session_factory() as session:
            row = StoredValue.get_by_key(session, key)
            return row.value if row is not None else None

    def set(self, key: str, value: str) -> None:
        with self._session_factory.begin() as session:
            row = StoredValue.get_by_key(session, key)
            if row is None:
                session.add(StoredValue(key=key, value=value))
            else:
                row.value = value

    def delete(self, key: str) -> None:
        with self._session_factory.begin() as session:
            session.execute(delete(StoredValue).where(StoredValue.key == key))


def _timer_scheduler(delay: float, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


class DrawStatePersistence:
    """Coalescing save/load/clear of the draw state under a single key.

    A save inside the coalescing window only replaces the pending snapshot; the
    pending snapshot is written when the window closes (through ``scheduler``)
    or on :meth:`flush`. Saves of idle sessions, with nothing started and no
    participants loaded, are skipped.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        key: str = RAFFLE_STATE_KEY,
        debounce_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        """Create an adapter writing to ``store``.

        Parameters
        ----------
        store : KeyValueStore
            Destination of the serialized snapshot.
        key : str, default: ``"raffleState"``
            Storage key of the snapshot.
        debounce_seconds : Optional[float], default: None
            Coalescing window. Falls back to ``RAFFLE_SAVE_DEBOUNCE_SECONDS``
            (1 second when unset). ``0`` writes every save immediately.
        clock : Callable[[], float], default: time.monotonic
            Monotonic clock used to measure the window.
        scheduler : Optional[Scheduler], default: None
            Runs the trailing write. Defaults to a daemon ``threading.Timer``.
        """
        if debounce_seconds is None:
            debounce_seconds = DEFAULT_DEBOUNCE_SECONDS
        if debounce_seconds < 0:
            raise ValueError("debounce_seconds must be non-negative")
        self._store = store
        self._key = key
        self._debounce = debounce_seconds
        self._clock = clock
        self._scheduler = scheduler or _timer_scheduler
        self._lock = threading.RLock()
        self._pending: Optional[str] = None
        self._last_write: Optional[float] = None
        self._handle: Any = None

    @property
    def key(self) -> str:
        return self._key

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    @staticmethod
    def is_meaningful(state: DrawState) -> bool:
        """Return whether ``state`` is worth persisting."""
        return state.has_started or bool(state.all_participants)

    def save(self, state: DrawState) -> bool:
        """Queue ``state`` for writing.

        Returns
        -------
        bool
            ``True`` when the snapshot was written immediately, ``False`` when
            it was skipped or deferred to the end of the window.
        """
        if not self.is_meaningful(state):
            logger.debug("Skipping save of an idle draw state")
            return False

        payload = json.dumps({"version": SNAPSHOT_VERSION, **state.to_json()})
        with self._lock:
            self._pending = payload
            now = self._clock()
            if self._last_write is None or now - self._last_write >= self._debounce:
                self._write_pending(now)
                return True
            if self._handle is None:
                delay = self._debounce - (now - self._last_write)
                self._handle = self._scheduler(delay, self._flush_from_timer)
            return False

    def flush(self) -> bool:
        """Write the pending snapshot now. Returns whether anything was written."""
        with self._lock:
            self._cancel_scheduled()
            if self._pending is None:
                return False
            self._write_pending(self._clock())
            return True

    def load(
        self, settings: Optional[RoundConfigurationSettings] = None
    ) -> Optional[DrawState]:
        """Return the stored state, or ``None`` when nothing usable is stored.

        Fields missing from snapshots written by older versions are filled
        with empty defaults; a missing round list is replaced by the default
        ladder planned for ``settings`` (the defaults when omitted).
        """
        raw = self._store.get(self._key)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("snapshot is not a JSON object")
            state = DrawState.from_json(data)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning(f"Discarding unreadable draw state under '{self._key}': {exc}")
            return None

        if not state.rounds:
            state.rounds = plan_rounds([], settings)
        return state

    def clear(self) -> None:
        """Drop any pending write and erase the stored snapshot."""
        with self._lock:
            self._cancel_scheduled()
            self._pending = None
            self._last_write = None
            self._store.delete(self._key)
        logger.debug(f"Cleared stored draw state '{self._key}'")

    def _write_pending(self, now: float) -> None:
        payload = self._pending
        if payload is None:
            return
        self._store.set(self._key, payload)
        self._pending = None
        self._last_write = now
        logger.debug(f"Saved draw state '{self._key}' ({len(payload)} characters)")

    def _cancel_scheduled(self) -> None:
        handle, self._handle = self._handle, None
        cancel = getattr(handle, "cancel", None)
        if cancel is not None:
            cancel()

    def _flush_from_timer(self) -> None:
        try:
            self.flush()
        except Exception:
            # Runs on a timer thread with no caller to propagate to.
            logger.exception(f"Deferred save of draw state '{self._key}' failed")


__all__ = [
    "DEFAULT_DEBOUNCE_SECONDS",
    "DrawStatePersistence",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "RAFFLE_STATE_KEY",
    "SNAPSHOT_VERSION",
    "SqlKeyValueStore",
]
