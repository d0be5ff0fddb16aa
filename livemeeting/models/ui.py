"""UI-related data models."""

from dataclasses import dataclass, field
from typing import List, Optional

from .session import SessionState, TargetLanguage


@dataclass
class LiveStatus:
    """Read-only snapshot of the live session for renderers."""
    state: SessionState = SessionState.IDLE
    audio_level: float = 0.0
    captions: List[str] = field(default_factory=list)
    overlay_lines: List[str] = field(default_factory=list)
    overlay_visible: bool = False
    title: str = ""
    target_language: Optional[TargetLanguage] = None
    status_message: str = ""
    last_error: Optional[str] = None
    has_unsaved_transcript: bool = False
