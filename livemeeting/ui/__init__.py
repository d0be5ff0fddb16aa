"""Console rendering for live sessions and meeting history."""

from .live_screen import LiveScreen
from .history_screen import HistoryScreen

__all__ = [
    "LiveScreen",
    "HistoryScreen",
]
