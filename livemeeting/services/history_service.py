"""History service: browse, search, export and delete saved sessions."""

import logging
from typing import List

from ..errors import NotFoundError
from ..models.session import PARAGRAPH_SEPARATOR, Session
from ..storage.session_store import AbstractSessionStore

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 150


class HistoryService:
    """Caller-side view over the session store.

    The store gives no ordering guarantee, so every listing is sorted here,
    newest first.
    """

    def __init__(self, store: AbstractSessionStore):
        self.store = store

    def recent(self) -> List[Session]:
        """Get all saved sessions, newest first."""
        sessions = self.store.list()
        sessions.sort(key=lambda s: s.created_at, reverse=True)
        logger.debug(f"Found {len(sessions)} saved sessions")
        return sessions

    def search(self, query: str) -> List[Session]:
        """Find sessions whose title or transcription contains ``query`` (case-insensitive)."""
        if not query or not query.strip():
            return self.recent()
        needle = query.strip().lower()
        return [s for s in self.recent()
                if needle in s.title.lower() or needle in s.transcription.lower()]

    def get(self, session_id: str) -> Session:
        """Get one session by id.

        Raises:
            NotFoundError: If no saved session has this id
        """
        for session in self.store.list():
            if session.id == session_id:
                return session
        raise NotFoundError(f"Meeting not found: {session_id}")

    def delete(self, session_id: str) -> None:
        self.store.delete_by_id(session_id)
        logger.info(f"Deleted meeting {session_id}")

    def export_text(self, session_id: str) -> str:
        """Get the title and transcription as one copyable text."""
        session = self.get(session_id)
        return f"{session.title}{PARAGRAPH_SEPARATOR}{session.transcription}"

    @staticmethod
    def preview(session: Session, length: int = PREVIEW_LENGTH) -> str:
        text = session.transcription
        if len(text) <= length:
            return text
        return text[:length] + "..."
