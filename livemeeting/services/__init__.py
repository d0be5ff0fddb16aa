"""Services layer for LiveMeeting application logic."""

from .session_controller import SessionController
from .history_service import HistoryService

__all__ = [
    "SessionController",
    "HistoryService",
]
