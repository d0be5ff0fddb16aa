"""Session store gateway: list, save and delete finalized sessions."""

import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List

from pydantic import ValidationError as RecordValidationError

from ..errors import NotFoundError, StorageError
from ..models.session import Session

logger = logging.getLogger(__name__)


class AbstractSessionStore(ABC):
    """Request/response facade over the persistent session store.

    ``list`` makes no ordering promise; callers sort by ``created_at``.
    There is no ``get`` primitive, so ids must be unique store-wide.
    """

    @abstractmethod
    def list(self) -> List[Session]:
        """Get every stored session.

        Raises:
            StorageError: If the store cannot be read
        """
        pass

    @abstractmethod
    def save(self, session: Session) -> None:
        """Insert the session, or replace the stored one with the same id.

        Raises:
            StorageError: If the store is unavailable
        """
        pass

    @abstractmethod
    def delete_by_id(self, session_id: str) -> None:
        """Delete the session with this id.

        Raises:
            NotFoundError: If no stored session has this id
            StorageError: If the store is unavailable
        """
        pass


class JsonSessionStore(AbstractSessionStore):
    """Keeps all sessions in one pretty-printed JSON array file."""

    def __init__(self, data_dir: str = "./data", filename: str = "meetings.json"):
        """Initialize the store.

        Args:
            data_dir: Directory holding the sessions file
            filename: Name of the sessions file inside ``data_dir``
        """
        self.data_dir = Path(data_dir)
        self.file_path = self.data_dir / filename
        self.lock = threading.RLock()
        logger.info(f"JsonSessionStore initialized with file: {self.file_path}")

    def list(self) -> List[Session]:
        with self.lock:
            return self._read_all()

    def save(self, session: Session) -> None:
        with self.lock:
            sessions = self._read_all()
            for i, existing in enumerate(sessions):
                if existing.id == session.id:
                    sessions[i] = session
                    break
            else:
                sessions.append(session)
            self._write_all(sessions)
        logger.info(f"Session saved: {session.id} ({session.title!r})")

    def delete_by_id(self, session_id: str) -> None:
        with self.lock:
            sessions = self._read_all()
            remaining = [s for s in sessions if s.id != session_id]
            if len(remaining) == len(sessions):
                raise NotFoundError(f"Meeting not found: {session_id}")
            self._write_all(remaining)
        logger.info(f"Session deleted: {session_id}")

    def _read_all(self) -> List[Session]:
        if not self.file_path.exists():
            return []

        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                contents = f.read()
        except OSError as e:
            logger.error(f"Error reading sessions file: {e}")
            raise StorageError(f"Cannot read {self.file_path}: {e}") from e

        if not contents.strip():
            return []

        try:
            records = json.loads(contents)
            if not isinstance(records, list):
                raise ValueError("expected a JSON array of meetings")
            return [Session.from_record(record) for record in records]
        except (ValueError, TypeError, RecordValidationError) as e:
            logger.error(f"Error parsing sessions file: {e}")
            raise StorageError(f"Cannot parse {self.file_path}: {e}") from e

    def _write_all(self, sessions: List[Session]) -> None:
        tmp_path = self.file_path.with_name(self.file_path.name + ".tmp")
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump([s.to_record() for s in sessions], f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.file_path)
        except OSError as e:
            logger.error(f"Error writing sessions file: {e}")
            raise StorageError(f"Cannot write {self.file_path}: {e}") from e
