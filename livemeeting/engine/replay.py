"""Scripted engine that replays caption lines as if they were translated live."""

import logging
import threading
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ..events.client import EventStreamClient
from ..models.events import (
    AUDIO_LEVEL_CHANNEL,
    SUBTITLE_CHANNEL,
    AudioLevelEvent,
    SubtitleEvent,
)
from .base import AbstractTranslationEngine

logger = logging.getLogger(__name__)


class ReplayEngine(AbstractTranslationEngine):
    """Publishes one caption per interval from a script, on a worker thread."""

    def __init__(self,
                 event_client: EventStreamClient,
                 script: Union[Sequence[str], str, Path],
                 interval_seconds: float = 1.0,
                 rms: float = 0.004):
        super().__init__(event_client)
        self.lines = self._load_script(script)
        self.interval_seconds = interval_seconds
        self.rms = rms

        self.worker_thread: Optional[threading.Thread] = None
        self.stop_event = threading.Event()
        self.finished_event = threading.Event()
        self.captions_published = 0
        self.last_command: Optional[dict] = None

        logger.info(f"ReplayEngine initialized with {len(self.lines)} lines, "
                    f"interval={interval_seconds}s")

    @staticmethod
    def _load_script(script: Union[Sequence[str], str, Path]) -> List[str]:
        if isinstance(script, (str, Path)):
            with open(script, 'r', encoding='utf-8') as f:
                raw_lines = f.read().splitlines()
        else:
            raw_lines = list(script)
        return [line.strip() for line in raw_lines if line.strip()]

    @property
    def is_running(self) -> bool:
        return self.worker_thread is not None and self.worker_thread.is_alive()

    def start(self, api_key: str, target_lang: str, source: str) -> None:
        if self.is_running:
            raise RuntimeError("Replay already running")

        self.last_command = {"target_lang": target_lang, "source": source}
        self.stop_event.clear()
        self.finished_event.clear()
        self.captions_published = 0

        self.worker_thread = threading.Thread(target=self._replay_loop)
        self.worker_thread.name = "replay_engine"
        self.worker_thread.daemon = True
        self.worker_thread.start()
        logger.info(f"Replay started: target_lang={target_lang}, source={source}")

    def stop(self) -> None:
        self.stop_event.set()
        if self.worker_thread is not None:
            self.worker_thread.join(timeout=5.0)
            if self.worker_thread.is_alive():
                logger.warning("Replay thread did not terminate cleanly")
        self.worker_thread = None
        logger.info(f"Replay stopped after {self.captions_published} captions")

    def _replay_loop(self) -> None:
        try:
            for line in self.lines:
                if self.stop_event.wait(self.interval_seconds):
                    return
                self.event_client.publish(AUDIO_LEVEL_CHANNEL, AudioLevelEvent(rms=self.rms))
                self.event_client.publish(SUBTITLE_CHANNEL, SubtitleEvent(text=line))
                self.captions_published += 1
        except Exception as e:
            logger.error(f"Replay loop failed: {e}", exc_info=True)
        finally:
            self.finished_event.set()
