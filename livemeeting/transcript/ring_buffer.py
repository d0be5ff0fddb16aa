"""Fixed-capacity caption window for the always-on-top overlay."""

import threading
from collections import deque
from typing import List

OVERLAY_CAPACITY = 3


class OverlayRingBuffer:
    """Keeps only the most recent captions; the oldest is dropped first."""

    def __init__(self, capacity: int = OVERLAY_CAPACITY):
        if capacity < 1:
            raise ValueError(f"Overlay capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.buffer = deque(maxlen=capacity)
        self.lock = threading.Lock()

    def push(self, text: str) -> None:
        """Add a caption, evicting the oldest one on overflow."""
        with self.lock:
            self.buffer.append(text)

    def lines(self) -> List[str]:
        """Get the visible captions, oldest first."""
        with self.lock:
            return list(self.buffer)

    def clear(self) -> None:
        with self.lock:
            self.buffer.clear()

    def is_empty(self) -> bool:
        with self.lock:
            return not self.buffer

    def __len__(self) -> int:
        with self.lock:
            return len(self.buffer)
