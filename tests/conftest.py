"""Pytest configuration and fixtures for LiveMeeting tests."""

import pytest
import tempfile
import time
import logging
from typing import List, Optional, Tuple

from pubsub import pub

from livemeeting.engine.base import AbstractTranslationEngine
from livemeeting.events.client import EventStreamClient
from livemeeting.models.events import (
    AUDIO_LEVEL_CHANNEL,
    SUBTITLE_CHANNEL,
    AudioLevelEvent,
    SubtitleEvent,
)
from livemeeting.services.session_controller import SessionController
from livemeeting.storage.session_store import JsonSessionStore
from livemeeting.transcript.overlay import OverlayFeed


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

VALID_API_KEY = "sk-12345678901234567890"


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast isolated tests")
    config.addinivalue_line("markers", "integration: tests wiring several components together")


class FakeEngine(AbstractTranslationEngine):
    """Engine double that records commands and lets tests emit events."""

    def __init__(self, event_client: EventStreamClient,
                 start_error: Optional[Exception] = None,
                 stop_error: Optional[Exception] = None,
                 start_delay: float = 0.0,
                 stop_delay: float = 0.0):
        super().__init__(event_client)
        self.start_error = start_error
        self.stop_error = stop_error
        self.start_delay = start_delay
        self.stop_delay = stop_delay
        self.start_calls: List[Tuple[str, str, str]] = []
        self.stop_calls = 0

    def start(self, api_key: str, target_lang: str, source: str) -> None:
        self.start_calls.append((api_key, target_lang, source))
        if self.start_delay:
            time.sleep(self.start_delay)
        if self.start_error:
            raise self.start_error

    def stop(self) -> None:
        self.stop_calls += 1
        if self.stop_delay:
            time.sleep(self.stop_delay)
        if self.stop_error:
            raise self.stop_error

    def emit_subtitle(self, text: str) -> None:
        self.event_client.publish(SUBTITLE_CHANNEL, SubtitleEvent(text=text))

    def emit_level(self, rms: float) -> None:
        self.event_client.publish(AUDIO_LEVEL_CHANNEL, AudioLevelEvent(rms=rms))


@pytest.fixture(autouse=True)
def clean_pubsub():
    """Drop every pubsub listener left behind by a test."""
    yield
    pub.unsubAll()


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def event_client():
    return EventStreamClient()


@pytest.fixture
def fake_engine(event_client):
    return FakeEngine(event_client)


@pytest.fixture
def session_store(temp_data_dir):
    return JsonSessionStore(temp_data_dir)


@pytest.fixture
def overlay(event_client):
    return OverlayFeed(event_client)


@pytest.fixture
def controller(fake_engine, event_client, session_store, overlay):
    """Controller wired to a fake engine, a real JSON store and an overlay."""
    controller = SessionController(
        engine=fake_engine,
        event_client=event_client,
        store=session_store,
        overlay=overlay,
        command_timeout=2.0,
    )
    yield controller
    controller.shutdown()
