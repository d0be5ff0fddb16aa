"""Main application entry point for LiveMeeting."""

import sys
import time
import argparse
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console

from .config import LiveMeetingConfig, PreferencesStore
from .engine.replay import ReplayEngine
from .errors import LiveMeetingError
from .events.client import EventStreamClient
from .models.session import PARAGRAPH_SEPARATOR, SessionState, resolve_title
from .services.history_service import HistoryService
from .services.session_controller import SessionController
from .storage.session_store import JsonSessionStore
from .transcript.overlay import OverlayFeed
from .ui.history_screen import HistoryScreen
from .ui.live_screen import LiveScreen

logger = logging.getLogger(__name__)

REFRESH_SECONDS = 0.5
RECOVERY_DIRNAME = "recovery"


class Server:

    def __init__(self, config_path: Optional[str], log_level: Optional[str] = None):
        # Load configuration
        self.config = LiveMeetingConfig(config_path)
        # Set up logging (override config with command line if specified)
        level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, level)
        self.console = Console()
        self.store = JsonSessionStore(self.config.get_data_directory(),
                                      self.config.get('storage.sessions_file', 'meetings.json'))
        self.history = HistoryService(self.store)
        self.preferences_store = PreferencesStore(self.config.get_preferences_path())
        self.controller: Optional[SessionController] = None

    def init_live(self, script_path: str) -> None:
        logger.info("Initializing live session components...")
        self.event_client = EventStreamClient()
        self.engine = ReplayEngine(
            self.event_client,
            script_path,
            interval_seconds=self.config.get('engine.replay_interval_seconds', 1.0),
        )
        self.controller = SessionController(
            engine=self.engine,
            event_client=self.event_client,
            store=self.store,
            preferences=self.preferences_store.load(),
            preferences_store=self.preferences_store,
            overlay=OverlayFeed(self.event_client, self.config.get('overlay.capacity', 3)),
            command_timeout=self.config.get_command_timeout(),
        )
        self.screen = LiveScreen(self.console)

    def run_live(self, api_key: Optional[str], lang: Optional[str], source: Optional[str],
                 title: Optional[str], duration: Optional[int]) -> int:
        prefs = self.controller.preferences
        self.controller.title = title or ""
        exit_code = 0
        try:
            self.controller.start(
                api_key if api_key is not None else prefs.api_key,
                lang or prefs.target_language,
                source or prefs.audio_source,
            )
            deadline = time.time() + duration if duration else None
            while not self.engine.finished_event.is_set():
                if deadline is not None and time.time() >= deadline:
                    break
                self.screen.show(self.controller.status())
                time.sleep(REFRESH_SECONDS)
            self.controller.stop()
        except LiveMeetingError as e:
            logger.error(f"Live session failed: {e}")
            exit_code = 1
        finally:
            self.screen.show(self.controller.status())

        if self.controller.has_unsaved_transcript:
            self.recover_unsaved()
        self.cleanup()
        return exit_code

    def recover_unsaved(self) -> Optional[Path]:
        """Retry the save once, then write the transcript to a recovery file.

        Returns:
            Path of the recovery file, or None when the retry saved the session
            or the transcript could only be printed
        """
        try:
            session = self.controller.retry_save()
            self.console.print(f"💾 Meeting {session.id} saved on retry", style="green")
            return None
        except LiveMeetingError as e:
            logger.error(f"Retry save failed: {e}")

        text = f"{resolve_title(self.controller.title)}{PARAGRAPH_SEPARATOR}{self.controller.copy_text()}"
        recovery_dir = Path(self.config.get_data_directory()) / RECOVERY_DIRNAME
        recovery_path = recovery_dir / f"unsaved-{datetime.now():%Y%m%d-%H%M%S}.txt"
        try:
            recovery_dir.mkdir(parents=True, exist_ok=True)
            with open(recovery_path, 'w', encoding='utf-8') as f:
                f.write(text)
        except OSError as e:
            logger.error(f"Could not write recovery file {recovery_path}: {e}")
            self.console.print("⚠️  Transcript could not be saved, full text follows:", style="bold yellow")
            self.console.print(text, markup=False, highlight=False)
            return None

        logger.warning(f"Unsaved transcript written to {recovery_path}")
        self.console.print(f"⚠️  Transcript could not be saved, written to {recovery_path}",
                           style="bold yellow")
        return recovery_path

    def cleanup(self) -> None:
        if self.controller is not None:
            if self.controller.state is SessionState.LISTENING:
                logger.warning("Session still listening at exit, stopping it")
            self.controller.shutdown()


def setup_logging(config, level: str = "INFO") -> None:

    """Set up logging configuration from YAML config."""
    # Get log file path from config
    log_file_path = config.get('logging.file_path', 'data/logs/livemeeting.log')
    console_output = config.get('logging.console_output', True)

    # Create logs directory if it doesn't exist
    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    # Set up handlers
    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    # Log startup
    logger = logging.getLogger(__name__)
    logger.info("="*50)
    logger.info("LiveMeeting application starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("="*50)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="LiveMeeting - live translated meetings with a local transcript vault",
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: looks for livemeeting.yaml)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, INFO)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="LiveMeeting v0.1.0"
    )

    commands = parser.add_subparsers(dest="command", required=True)

    live = commands.add_parser("live", help="Run a live session replaying a caption script")
    live.add_argument("--script", required=True, help="UTF-8 text file, one caption per line")
    live.add_argument("--api-key", help="Translation API key (default: saved preference)")
    live.add_argument("--lang", help="Target language, e.g. English, Italiano, Español, Français")
    live.add_argument("--source", choices=["mic", "output"], help="Audio source")
    live.add_argument("--title", help="Meeting title (default: Untitled Meeting)")
    live.add_argument("--duration", type=int, help="Stop after this many seconds")

    history = commands.add_parser("history", help="List saved meetings, newest first")
    history.add_argument("--search", help="Only meetings whose title or text contains this")

    show = commands.add_parser("show", help="Print one saved meeting")
    show.add_argument("id")

    export = commands.add_parser("export", help="Print a saved meeting as plain text for copying")
    export.add_argument("id")
    export.add_argument("--output", help="Write the text to this file instead of printing it")

    delete = commands.add_parser("delete", help="Delete a saved meeting")
    delete.add_argument("id")

    return parser


def main(argv=None) -> None:
    """Main entry point for LiveMeeting application."""
    args = build_parser().parse_args(argv)

    server = Server(args.config, args.log_level)
    history_screen = HistoryScreen(server.console)
    exit_code = 0
    try:
        if args.command == "live":
            server.init_live(args.script)
            exit_code = server.run_live(args.api_key, args.lang, args.source, args.title, args.duration)
        elif args.command == "history":
            history_screen.show_list(server.history.search(args.search or ""))
        elif args.command == "show":
            history_screen.show_session(server.history.get(args.id))
        elif args.command == "export":
            text = server.history.export_text(args.id)
            if args.output:
                with open(args.output, 'w', encoding='utf-8') as f:
                    f.write(text)
                server.console.print(f"📄 Exported meeting {args.id} to {args.output}", style="green")
            else:
                server.console.print(text, markup=False, highlight=False)
        elif args.command == "delete":
            server.history.delete(args.id)
            server.console.print(f"🗑️  Deleted meeting {args.id}", style="green")
    except KeyboardInterrupt:
        server.cleanup()
        server.console.print("\n👋 Goodbye!")
    except LiveMeetingError as e:
        server.console.print(f"❌ {e}", style="bold red")
        logging.error(f"Command {args.command} failed: {e}")
        exit_code = 1
    except OSError as e:
        server.console.print(f"❌ Error: {e}", style="bold red")
        logging.error(f"Application error: {e}")
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
