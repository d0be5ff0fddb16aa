"""Abstract base class for capture-and-translate engines."""

from abc import ABC, abstractmethod

from ..events.client import EventStreamClient


class AbstractTranslationEngine(ABC):
    """Boundary to the external audio capture and translation engine.

    While running, an engine publishes ``AudioLevelEvent`` payloads on the
    ``audio_level`` channel and ``SubtitleEvent`` payloads on the
    ``new_subtitle`` channel of its event client.
    """

    def __init__(self, event_client: EventStreamClient):
        self.event_client = event_client

    @abstractmethod
    def start(self, api_key: str, target_lang: str, source: str) -> None:
        """Start capturing and translating.

        Args:
            api_key: Credential for the translation service
            target_lang: Target language name (e.g. "English")
            source: Audio source, "mic" or "output"

        Raises:
            Exception: Any exception means the command was rejected; its
                message is shown to the user.
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop capturing and translating.

        Raises:
            Exception: Any exception means the command was rejected.
        """
        pass
