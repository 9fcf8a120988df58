"""
Chat feature: Lightweight in-memory session bookkeeping.

Each chat request is tagged with a session ID (minted when the client does not
send one). The tracker remembers when the session was last active and how many
messages it has seen. A background job sweeps idle sessions. Nothing here is
persisted; a restart forgets every session.
"""

import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from counselor.config import get_settings

logger = logging.getLogger(__name__)


@dataclass
class SessionInfo:
    session_id: str
    last_active: datetime
    message_count: int = 0


class SessionTracker:
    """Map of session_id -> SessionInfo, safe to touch from request handlers and the sweeper."""

    def __init__(self, idle_minutes: int | None = None):
        if idle_minutes is None:
            idle_minutes = get_settings().SESSION_IDLE_MINUTES
        self.idle_timeout = timedelta(minutes=idle_minutes)
        self._sessions: dict[str, SessionInfo] = {}
        self._lock = threading.Lock()

    def touch(self, session_id: str | None = None, now: datetime | None = None) -> SessionInfo:
        """Record activity for a session, creating it if unknown.

        Returns:
            A snapshot of the session after the update.
        """
        now = now or datetime.now(timezone.utc)
        session_id = session_id or uuid.uuid4().hex

        with self._lock:
            info = self._sessions.get(session_id)
            if info is None:
                info = SessionInfo(session_id=session_id, last_active=now)
                self._sessions[session_id] = info
            info.last_active = now
            info.message_count += 1
            return SessionInfo(info.session_id, info.last_active, info.message_count)

    def get(self, session_id: str) -> SessionInfo | None:
        with self._lock:
            info = self._sessions.get(session_id)
            if info is None:
                return None
            return SessionInfo(info.session_id, info.last_active, info.message_count)

    def sweep(self, now: datetime | None = None) -> int:
        """Drop sessions idle for longer than the timeout.

        Returns:
            Number of sessions removed.
        """
        now = now or datetime.now(timezone.utc)
        cutoff = now - self.idle_timeout

        with self._lock:
            expired = [sid for sid, info in self._sessions.items() if info.last_active < cutoff]
            for sid in expired:
                del self._sessions[sid]
            remaining = len(self._sessions)

        if expired:
            logger.info(f"🧹 Swept {len(expired)} idle session(s), {remaining} active")
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


# Process-wide tracker shared by the chat route and the sweep job
session_tracker = SessionTracker()
