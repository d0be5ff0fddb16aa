"""Unit tests for ReplayEngine."""

import pytest

from livemeeting.engine.replay import ReplayEngine
from livemeeting.models.events import AUDIO_LEVEL_CHANNEL, SUBTITLE_CHANNEL


@pytest.fixture
def received(event_client):
    """Collect everything published on both engine channels."""
    events = {"subtitles": [], "levels": []}
    subscriptions = [
        event_client.subscribe(SUBTITLE_CHANNEL, lambda e: events["subtitles"].append(e.text)),
        event_client.subscribe(AUDIO_LEVEL_CHANNEL, lambda e: events["levels"].append(e.rms)),
    ]
    yield events
    for subscription in subscriptions:
        subscription.release()


@pytest.mark.unit
class TestReplayEngine:
    """Test cases for ReplayEngine."""

    def test_script_lines_are_cleaned(self, event_client):
        engine = ReplayEngine(event_client, ["  Hello ", "", "   ", "there"])

        assert engine.lines == ["Hello", "there"]

    def test_loads_script_file(self, event_client, temp_data_dir):
        path = f"{temp_data_dir}/script.txt"
        with open(path, 'w', encoding='utf-8') as f:
            f.write("Bonjour\n\nà tous\n")

        engine = ReplayEngine(event_client, path)

        assert engine.lines == ["Bonjour", "à tous"]

    def test_replays_all_lines(self, event_client, received):
        engine = ReplayEngine(event_client, ["one", "two", "three"], interval_seconds=0.01, rms=0.002)

        engine.start("key", "English", "mic")
        assert engine.finished_event.wait(timeout=5.0)
        engine.stop()

        assert received["subtitles"] == ["one", "two", "three"]
        assert received["levels"] == [0.002] * 3
        assert engine.captions_published == 3
        assert engine.last_command == {"target_lang": "English", "source": "mic"}

    def test_stop_interrupts_replay(self, event_client, received):
        engine = ReplayEngine(event_client, ["never"] * 10, interval_seconds=10.0)

        engine.start("key", "English", "mic")
        engine.stop()

        assert not engine.is_running
        assert engine.finished_event.is_set()
        assert received["subtitles"] == []

    def test_double_start_rejected(self, event_client):
        engine = ReplayEngine(event_client, ["line"], interval_seconds=10.0)
        engine.start("key", "English", "mic")
        try:
            with pytest.raises(RuntimeError):
                engine.start("key", "English", "mic")
        finally:
            engine.stop()

    def test_restart_after_stop(self, event_client, received):
        engine = ReplayEngine(event_client, ["again"], interval_seconds=0.01)

        for _ in range(2):
            engine.start("key", "English", "mic")
            assert engine.finished_event.wait(timeout=5.0)
            engine.stop()

        assert received["subtitles"] == ["again", "again"]

    def test_stop_without_start(self, event_client):
        engine = ReplayEngine(event_client, ["line"])

        engine.stop()

        assert not engine.is_running
