"""Tests for the command line entry point."""

import json
import logging
import pytest
from pathlib import Path
from unittest.mock import patch

import yaml

from livemeeting.errors import StorageError
from livemeeting.main import build_parser, main
from livemeeting.models.session import TargetLanguage, finalize_session
from livemeeting.storage.session_store import JsonSessionStore

from conftest import VALID_API_KEY


@pytest.fixture(autouse=True)
def restore_root_logger():
    """main() reconfigures the root logger; put pytest's handlers back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    monkeypatch.setenv("COLUMNS", "200")


@pytest.fixture
def config_path(temp_data_dir):
    path = Path(temp_data_dir) / "livemeeting.yaml"
    with open(path, 'w', encoding='utf-8') as f:
        yaml.safe_dump({
            "storage": {"data_directory": "data"},
            "engine": {"replay_interval_seconds": 0.01, "command_timeout_seconds": 2},
            "logging": {"console_output": False},
        }, f)
    return str(path)


@pytest.fixture
def vault(temp_data_dir):
    return JsonSessionStore(str(Path(temp_data_dir) / "data"))


@pytest.fixture
def script_path(temp_data_dir):
    path = Path(temp_data_dir) / "script.txt"
    path.write_text("Hello\nthere\n", encoding="utf-8")
    return str(path)


def run_main(*argv) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(list(argv))
    return exc_info.value.code


@pytest.mark.unit
class TestMain:
    """Test cases for the CLI commands."""

    def test_parser_requires_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_live_session_is_saved(self, config_path, script_path, vault, temp_data_dir):
        code = run_main("--config", config_path, "live", "--script", script_path,
                        "--api-key", VALID_API_KEY, "--lang", "Italiano",
                        "--source", "mic", "--title", "Standup")

        assert code == 0
        sessions = vault.list()
        assert len(sessions) == 1
        assert sessions[0].title == "Standup"
        assert sessions[0].transcription == "Hello\n\nthere"
        assert sessions[0].target_lang is TargetLanguage.ITALIAN

        with open(Path(temp_data_dir) / "data" / "preferences.yaml", 'r', encoding='utf-8') as f:
            assert yaml.safe_load(f)["target_language"] == "Italiano"
        assert (Path(temp_data_dir) / "data" / "logs" / "livemeeting.log").exists()

    def test_live_uses_saved_preferences(self, config_path, script_path, vault):
        assert run_main("--config", config_path, "live", "--script", script_path,
                        "--api-key", VALID_API_KEY, "--lang", "Español") == 0

        # Second run relies on the key and language remembered by the first
        assert run_main("--config", config_path, "live", "--script", script_path) == 0

        sessions = vault.list()
        assert len(sessions) == 2
        assert all(s.target_lang is TargetLanguage.SPANISH for s in sessions)

    def test_live_rejects_short_key(self, config_path, script_path, vault):
        code = run_main("--config", config_path, "live", "--script", script_path,
                        "--api-key", "short")

        assert code == 1
        assert vault.list() == []

    def test_history_show_and_delete(self, config_path, vault, capsys):
        session = finalize_session("Budget call", "Numbers look fine", TargetLanguage.ENGLISH)
        vault.save(session)

        assert run_main("--config", config_path, "history") == 0
        assert "Budget call" in capsys.readouterr().out

        assert run_main("--config", config_path, "history", "--search", "nothing") == 0
        assert "No meetings found." in capsys.readouterr().out

        assert run_main("--config", config_path, "show", session.id) == 0
        assert "Numbers look fine" in capsys.readouterr().out

        assert run_main("--config", config_path, "delete", session.id) == 0
        assert vault.list() == []

    def test_export_prints_copyable_text(self, config_path, vault, capsys):
        session = finalize_session("Budget call", "Numbers look fine\n\nShip it", TargetLanguage.ENGLISH)
        vault.save(session)

        assert run_main("--config", config_path, "export", session.id) == 0

        assert "Budget call\n\nNumbers look fine\n\nShip it" in capsys.readouterr().out

    def test_export_to_file(self, config_path, vault, temp_data_dir):
        session = finalize_session("Budget call", "Numbers look fine", TargetLanguage.ENGLISH)
        vault.save(session)
        output = Path(temp_data_dir) / "export.txt"

        assert run_main("--config", config_path, "export", session.id, "--output", str(output)) == 0

        assert output.read_text(encoding="utf-8") == "Budget call\n\nNumbers look fine"

    def test_export_missing_meeting(self, config_path):
        assert run_main("--config", config_path, "export", "missing") == 1

    def test_delete_missing_meeting(self, config_path, capsys):
        assert run_main("--config", config_path, "delete", "missing") == 1
        assert "Meeting not found: missing" in capsys.readouterr().out

    def test_corrupt_vault_reports_error(self, config_path, temp_data_dir):
        data_dir = Path(temp_data_dir) / "data"
        data_dir.mkdir(parents=True, exist_ok=True)
        (data_dir / "meetings.json").write_text("{not json", encoding="utf-8")

        assert run_main("--config", config_path, "history") == 1
        # The broken file is left untouched
        with pytest.raises(json.JSONDecodeError):
            json.loads((data_dir / "meetings.json").read_text(encoding="utf-8"))


@pytest.mark.unit
class TestUnsavedTranscriptRecovery:
    """A live session whose save fails must not lose its transcript."""

    @pytest.fixture
    def long_script_path(self, temp_data_dir):
        path = Path(temp_data_dir) / "long_script.txt"
        path.write_text("\n".join(f"caption {i}" for i in range(20)), encoding="utf-8")
        return str(path)

    def test_retry_save_succeeds(self, config_path, script_path, vault, temp_data_dir):
        real_save = JsonSessionStore.save
        calls = []

        def flaky_save(store, session):
            calls.append(session.id)
            if len(calls) == 1:
                raise StorageError("vault locked")
            real_save(store, session)

        with patch.object(JsonSessionStore, "save", autospec=True, side_effect=flaky_save):
            code = run_main("--config", config_path, "live", "--script", script_path,
                            "--api-key", VALID_API_KEY)

        assert code == 1
        assert len(calls) == 2
        assert calls[0] == calls[1]
        sessions = vault.list()
        assert len(sessions) == 1
        assert sessions[0].transcription == "Hello\n\nthere"
        assert not (Path(temp_data_dir) / "data" / "recovery").exists()

    def test_transcript_written_to_recovery_file(self, config_path, long_script_path,
                                                 vault, temp_data_dir):
        with patch.object(JsonSessionStore, "save", side_effect=StorageError("disk full")):
            code = run_main("--config", config_path, "live", "--script", long_script_path,
                            "--api-key", VALID_API_KEY, "--title", "Offsite")

        assert code == 1
        assert vault.list() == []
        recovered = list((Path(temp_data_dir) / "data" / "recovery").glob("unsaved-*.txt"))
        assert len(recovered) == 1
        text = recovered[0].read_text(encoding="utf-8")
        assert text == "Offsite\n\n" + "\n\n".join(f"caption {i}" for i in range(20))

    def test_transcript_printed_when_recovery_file_fails(self, config_path, long_script_path,
                                                         temp_data_dir, capsys):
        data_dir = Path(temp_data_dir) / "data"
        data_dir.mkdir(parents=True, exist_ok=True)
        # A plain file where the recovery directory should go
        (data_dir / "recovery").write_text("", encoding="utf-8")

        with patch.object(JsonSessionStore, "save", side_effect=StorageError("disk full")):
            code = run_main("--config", config_path, "live", "--script", long_script_path,
                            "--api-key", VALID_API_KEY)

        assert code == 1
        out = capsys.readouterr().out
        assert "full text follows" in out
        for i in range(20):
            assert f"caption {i}" in out

    def test_engine_stop_failure_saves_on_retry(self, config_path, script_path, vault):
        with patch("livemeeting.main.ReplayEngine.stop", side_effect=RuntimeError("engine crashed")):
            code = run_main("--config", config_path, "live", "--script", script_path,
                            "--api-key", VALID_API_KEY)

        assert code == 1
        assert [s.transcription for s in vault.list()] == ["Hello\n\nthere"]
