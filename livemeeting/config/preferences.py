"""User preferences that survive application restarts."""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Type

import yaml

from ..models.session import AudioSource, TargetLanguage

logger = logging.getLogger(__name__)


@dataclass
class UserPreferences:
    """API key, language and audio source last used to start a session."""
    api_key: str = ""
    target_language: TargetLanguage = TargetLanguage.ENGLISH
    audio_source: AudioSource = AudioSource.MIC


def _coerce(enum_cls: Type[Enum], value: Any, default: Enum) -> Enum:
    try:
        return enum_cls(value)
    except ValueError:
        logger.warning(f"Unknown {enum_cls.__name__} {value!r} in preferences, using {default.value}")
        return default


class PreferencesStore:
    """Loads and saves ``UserPreferences`` as a small YAML file."""

    def __init__(self, path: str):
        self.path = Path(path)

    def load(self) -> UserPreferences:
        """Load preferences; a missing or empty file yields the defaults."""
        if not self.path.exists():
            logger.info(f"No preferences file at {self.path}, using defaults")
            return UserPreferences()

        with open(self.path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed preferences file: {self.path}")
            data = {}

        defaults = UserPreferences()
        return UserPreferences(
            api_key=str(data.get('api_key') or ""),
            target_language=_coerce(TargetLanguage, data.get('target_language'), defaults.target_language),
            audio_source=_coerce(AudioSource, data.get('audio_source'), defaults.audio_source),
        )

    def save(self, preferences: UserPreferences) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            'api_key': preferences.api_key,
            'target_language': preferences.target_language.value,
            'audio_source': preferences.audio_source.value,
        }
        with open(self.path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(data, f, allow_unicode=True, sort_keys=False)
        logger.debug(f"Preferences saved to {self.path}")
