"""Authoritative transcript log for the active live session."""

import logging
import threading
from typing import List

from ..models.session import PARAGRAPH_SEPARATOR

logger = logging.getLogger(__name__)


class TranscriptAccumulator:
    """Append-only, ordered log of captions received for one session.

    Appends may come from the engine's delivery thread while the UI reads
    snapshots; every read returns a copy taken under the lock, so readers
    never see a half-applied mutation.
    """

    def __init__(self):
        self._captions: List[str] = []
        self.lock = threading.RLock()

    def append(self, text: str) -> None:
        """Append one caption. Empty text is kept as-is."""
        with self.lock:
            self._captions.append(text)
            count = len(self._captions)
        logger.debug(f"Accumulated caption #{count}: {text[:50]!r}")

    def snapshot(self) -> List[str]:
        """Get a copy of the captions in arrival order."""
        with self.lock:
            return list(self._captions)

    def joined_text(self) -> str:
        """Get the captions joined with a blank-line paragraph separator."""
        with self.lock:
            return PARAGRAPH_SEPARATOR.join(self._captions)

    def clear(self) -> None:
        with self.lock:
            self._captions = []
        logger.debug("Transcript accumulator cleared")

    def is_empty(self) -> bool:
        with self.lock:
            return not self._captions

    def __len__(self) -> int:
        with self.lock:
            return len(self._captions)
