"""Engine boundary: commands to, and event streams from, the translation engine."""

from .base import AbstractTranslationEngine
from .replay import ReplayEngine

__all__ = [
    "AbstractTranslationEngine",
    "ReplayEngine",
]
