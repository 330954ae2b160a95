"""Session management for multi-user support."""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime

from variant_studio.core.gallery import ResultGallery

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """A user session; everything lives in memory only."""

    session_id: str
    created_at: datetime
    gallery: ResultGallery = field(default_factory=ResultGallery)


class SessionManager:
    """Manages in-memory user sessions."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def create_session(self) -> Session:
        """Create a new session with an empty gallery."""
        session = Session(session_id=str(uuid.uuid4()), created_at=datetime.now())
        with self._lock:
            self._sessions[session.session_id] = session
        logger.info("Created session %s", session.session_id)
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get an existing session by ID."""
        with self._lock:
            return self._sessions.get(session_id)

    def cleanup_session(self, session_id: str) -> bool:
        """Forget a session and its gallery."""
        with self._lock:
            removed = self._sessions.pop(session_id, None)
        return removed is not None

    def cleanup_old_sessions(self, max_age_hours: int = 24) -> int:
        """Remove sessions older than max_age_hours."""
        cutoff = datetime.now()
        with self._lock:
            to_remove = [
                session_id
                for session_id, session in self._sessions.items()
                if (cutoff - session.created_at).total_seconds() / 3600 > max_age_hours
            ]

        cleaned = sum(1 for session_id in to_remove if self.cleanup_session(session_id))
        if cleaned:
            logger.info("Removed %d expired sessions", cleaned)
        return cleaned

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
