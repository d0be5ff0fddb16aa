"""Session-related data models."""

import random
import string
import threading
import time
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_TITLE = "Untitled Meeting"
PARAGRAPH_SEPARATOR = "\n\n"


class TargetLanguage(str, Enum):
    """Languages the engine can translate into."""
    ENGLISH = "English"
    ITALIAN = "Italiano"
    SPANISH = "Español"
    FRENCH = "Français"


class AudioSource(str, Enum):
    """Where the engine captures audio from."""
    MIC = "mic"
    SYSTEM_OUTPUT = "output"


class SessionState(Enum):
    """Lifecycle states of the live session controller."""
    IDLE = "idle"
    STARTING = "starting"
    LISTENING = "listening"
    STOPPING = "stopping"
    ERROR = "error"


class Session(BaseModel):
    """A finalized live-translation session as stored in the vault.

    Serializes to ``{id, title, date, transcription, target_lang}``.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    created_at: datetime = Field(alias="date")
    transcription: str
    target_lang: TargetLanguage

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, value: datetime) -> datetime:
        # Records without an offset were written in UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def to_record(self) -> dict:
        """Return the JSON-ready wire representation."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_record(cls, record: dict) -> "Session":
        return cls.model_validate(record)


_id_lock = threading.Lock()
_last_id_millis = 0


def new_session_id() -> str:
    """Generate a unique, time-ordered session id.

    Returns:
        ``<epoch-millis>-<4 random chars>``; the millisecond part never
        repeats within the process.
    """
    global _last_id_millis
    with _id_lock:
        millis = int(time.time() * 1000)
        if millis <= _last_id_millis:
            millis = _last_id_millis + 1
        _last_id_millis = millis
    random_suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=4))
    return f"{millis}-{random_suffix}"


def resolve_title(title: str) -> str:
    """Apply the placeholder title when the user left it blank."""
    if title is None or not title.strip():
        return DEFAULT_TITLE
    return title


def finalize_session(title: str, transcription: str, target_lang: TargetLanguage) -> Session:
    """Build the persisted record for a session that just stopped."""
    return Session(
        id=new_session_id(),
        title=resolve_title(title),
        created_at=datetime.now(timezone.utc),
        transcription=transcription,
        target_lang=target_lang,
    )
