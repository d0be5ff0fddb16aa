"""Event models for the engine's live channels."""

from dataclasses import dataclass

AUDIO_LEVEL_CHANNEL = "audio_level"
SUBTITLE_CHANNEL = "new_subtitle"


@dataclass
class AudioLevelEvent:
    """Audio-level telemetry sample; only the latest one matters."""
    rms: float


@dataclass
class SubtitleEvent:
    """One increment of translated text, in emission order."""
    text: str
