"""Data models for the LiveMeeting application."""

from .session import (
    DEFAULT_TITLE,
    PARAGRAPH_SEPARATOR,
    AudioSource,
    Session,
    SessionState,
    TargetLanguage,
)
from .events import AUDIO_LEVEL_CHANNEL, SUBTITLE_CHANNEL, AudioLevelEvent, SubtitleEvent
from .ui import LiveStatus

__all__ = [
    "DEFAULT_TITLE",
    "PARAGRAPH_SEPARATOR",
    "AudioSource",
    "Session",
    "SessionState",
    "TargetLanguage",
    "AUDIO_LEVEL_CHANNEL",
    "SUBTITLE_CHANNEL",
    "AudioLevelEvent",
    "SubtitleEvent",
    "LiveStatus",
]
