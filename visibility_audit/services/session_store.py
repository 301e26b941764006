"""In-memory store of multi-page analysis sessions."""
import asyncio
import uuid
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from ..models import Session, SessionState
from ..utils.logger import logger


class SessionStore:
    """Process-wide registry of in-flight and recently finished sessions.

    Sessions are ephemeral: they live in memory only and disappear on
    restart or when swept. A session is written solely by the orchestrator
    task that owns it; readers always get a detached snapshot, so the store
    only needs to guard insertion and removal.
    """

    def __init__(self):
        """Initialize the session store."""
        self._sessions: Dict[str, Session] = {}
        self._lock = asyncio.Lock()

    def generate_session_id(self) -> str:
        """Generate a unique session ID with timestamp.

        Returns:
            Session ID in format: YYYYMMDD_HHMMSS_{uuid}
        """
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"{timestamp}_{uuid.uuid4().hex[:8]}"

    async def create(self, domain: str, page_list: List[str], page_urls: List[str]) -> Session:
        """Register a new session in the ``analyzing`` state.

        Args:
            domain: Root site being audited
            page_list: Ordered page paths
            page_urls: Full URL for each path

        Returns:
            The live session object, owned by the caller from now on
        """
        async with self._lock:
            session_id = self.generate_session_id()
            while session_id in self._sessions:
                session_id = self.generate_session_id()

            now = datetime.now()
            session = Session(
                session_id=session_id,
                domain=domain,
                page_list=list(page_list),
                page_urls=list(page_urls),
                state=SessionState.ANALYZING,
                current_step="Starting analysis",
                current_step_details=f"Queued {len(page_list)} pages for analysis",
                started_at=now,
                updated_at=now,
            )
            self._sessions[session_id] = session
            return session

    def get_snapshot(self, session_id: str) -> Optional[Session]:
        """Get a copy of the current session state.

        Args:
            session_id: The session identifier

        Returns:
            Detached session snapshot or None if unknown or swept
        """
        session = self._sessions.get(session_id)
        if session is None:
            return None
        return session.model_copy(deep=True)

    def publish(self, session: Session, **changes) -> None:
        """Apply progress changes to a live session and bump ``updated_at``.

        Args:
            session: Live session owned by the caller
            **changes: Field values to set
        """
        for field, value in changes.items():
            setattr(session, field, value)
        session.updated_at = datetime.now()

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    async def sweep_expired(self, ttl_minutes: int, now: Optional[datetime] = None) -> int:
        """Drop sessions that finished, or went quiet, more than ``ttl_minutes`` ago.

        Args:
            ttl_minutes: Retention after completion or last update
            now: Reference time. Defaults to the current time

        Returns:
            Number of sessions removed
        """
        cutoff = (now or datetime.now()) - timedelta(minutes=ttl_minutes)

        async with self._lock:
            expired = [
                session_id
                for session_id, session in self._sessions.items()
                if _last_activity(session) < cutoff
            ]
            for session_id in expired:
                del self._sessions[session_id]

        if expired:
            logger.info(f"Swept {len(expired)} expired sessions")
        return len(expired)


def _last_activity(session: Session) -> datetime:
    if session.state.is_terminal and session.completed_at is not None:
        return session.completed_at
    return session.updated_at


# Global session store instance
session_store = SessionStore()
