"""In-process tracking of visitors currently viewing a profile."""
from __future__ import annotations

import threading
import time
from typing import Callable, Dict


class PresenceTracker:
    """Counts live sessions per profile; a session expires after ``timeout_seconds`` idle."""

    def __init__(self, timeout_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._timeout = timeout_seconds
        self._clock = clock
        self._sessions: Dict[str, Dict[str, float]] = {}
        self._lock = threading.Lock()

    def _purge(self, profile_id: str, now: float) -> int:
        sessions = self._sessions.get(profile_id)
        if not sessions:
            return 0
        expired = [session_id for session_id, last_seen in sessions.items() if now - last_seen > self._timeout]
        for session_id in expired:
            sessions.pop(session_id, None)
        if not sessions:
            self._sessions.pop(profile_id, None)
        return len(sessions)

    def __len__(self) -> int:
        """Number of profiles with at least one tracked session."""
        with self._lock:
            return len(self._sessions)

    def heartbeat(self, profile_id: str, session_id: str) -> int:
        now = self._clock()
        with self._lock:
            for other in list(self._sessions):
                if other != profile_id:
                    self._purge(other, now)
            self._sessions.setdefault(profile_id, {})[session_id] = now
            return self._purge(profile_id, now)

    def count(self, profile_id: str) -> int:
        with self._lock:
            return self._purge(profile_id, self._clock())

    def leave(self, profile_id: str, session_id: str) -> None:
        with self._lock:
            sessions = self._sessions.get(profile_id)
            if sessions is None:
                return
            sessions.pop(session_id, None)
            if not sessions:
                self._sessions.pop(profile_id, None)
