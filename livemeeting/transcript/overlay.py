"""Overlay feed: a ring buffer with its own subscription to the subtitle channel."""

import logging
import threading
from typing import List, Optional

from ..events.client import EventStreamClient, Subscription
from ..models.events import SUBTITLE_CHANNEL, SubtitleEvent
from .ring_buffer import OVERLAY_CAPACITY, OverlayRingBuffer

logger = logging.getLogger(__name__)


class OverlayFeed:
    """Minimal caption display fed independently of the full transcript.

    Its lossy window never touches the accumulator: it listens on a
    separate subscription to the same channel.
    """

    def __init__(self, event_client: EventStreamClient, capacity: int = OVERLAY_CAPACITY):
        self.event_client = event_client
        self.ring_buffer = OverlayRingBuffer(capacity)
        self.visible = False
        self._subscription: Optional[Subscription] = None
        self._lock = threading.Lock()

    def open(self) -> None:
        """Show the overlay with an empty window and start following captions."""
        with self._lock:
            if self._subscription is not None:
                return
            self.ring_buffer.clear()
            self._subscription = self.event_client.subscribe(SUBTITLE_CHANNEL, self._on_subtitle)
            self.visible = True
        logger.info("Overlay shown")

    def close(self) -> None:
        """Hide the overlay and stop following captions."""
        with self._lock:
            subscription, self._subscription = self._subscription, None
            self.visible = False
        if subscription is not None:
            self.event_client.unsubscribe(subscription)
            logger.info("Overlay hidden")

    def lines(self) -> List[str]:
        return self.ring_buffer.lines()

    def _on_subtitle(self, event: SubtitleEvent) -> None:
        self.ring_buffer.push(event.text)
