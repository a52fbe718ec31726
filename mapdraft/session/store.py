"""
Session Store - The in-memory session table.

One store is constructed at process start, injected into the
SessionManager, and closed at process stop. No persistence.

Each session id has its own lock; everything that reads-modifies-writes
a session holds it, so operations on one session never interleave even
when callers run on worker threads.
"""

from __future__ import annotations
from collections.abc import Iterator
from contextlib import contextmanager
import threading

from ..engine_core.state import DraftSession


class SessionStore:
    """Process-local table of active sessions."""

    def __init__(self):
        self._sessions: dict[str, DraftSession] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._table_lock = threading.Lock()
        self._closed = False

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    @property
    def closed(self) -> bool:
        return self._closed

    def add(self, session: DraftSession) -> bool:
        """
        Register a new session.

        Returns False (and stores nothing) if the id is already taken.
        """
        with self._table_lock:
            self._ensure_open()
            if session.id in self._sessions:
                return False
            self._sessions[session.id] = session
            self._locks[session.id] = threading.RLock()
            return True

    def get(self, session_id: str) -> DraftSession | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def replace(self, session: DraftSession) -> None:
        """Swap in a new version of an existing session."""
        with self._table_lock:
            if session.id in self._sessions:
                self._sessions[session.id] = session

    def remove(self, session_id: str) -> DraftSession | None:
        """Remove a session; returns it, or None if it was not present."""
        with self._table_lock:
            self._locks.pop(session_id, None)
            return self._sessions.pop(session_id, None)

    def ids(self) -> list[str]:
        return list(self._sessions)

    def sessions(self) -> list[DraftSession]:
        return list(self._sessions.values())

    @contextmanager
    def locked(self, session_id: str) -> Iterator[DraftSession | None]:
        """
        Hold the session's lock and yield the current session.

        Yields None for unknown ids.
        """
        lock = self._locks.get(session_id)
        if lock is None:
            yield None
            return
        with lock:
            # The session may have been removed while we waited
            yield self._sessions.get(session_id)

    def close(self) -> None:
        """Drop every session. The store accepts no new sessions afterwards."""
        with self._table_lock:
            self._sessions.clear()
            self._locks.clear()
            self._closed = True

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Session store is closed")
