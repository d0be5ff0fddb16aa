"""Rich rendering of a live session."""

import logging
from typing import Optional

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..models.session import SessionState
from ..models.ui import LiveStatus

logger = logging.getLogger(__name__)

LEVEL_BAR_WIDTH = 20
MAX_TRANSCRIPT_LINES = 12

_STATE_STYLES = {
    SessionState.IDLE: ("⏹️  IDLE", "bold yellow"),
    SessionState.STARTING: ("⏳ STARTING", "bold blue"),
    SessionState.LISTENING: ("🔴 RECORDING", "bold red"),
    SessionState.STOPPING: ("⏳ STOPPING", "bold blue"),
    SessionState.ERROR: ("❌ ERROR", "bold red"),
}


def level_bar(level: float, width: int = LEVEL_BAR_WIDTH) -> str:
    """Draw a 0-100 level as a fixed-width bar."""
    filled = int(round(max(0.0, min(100.0, level)) / 100.0 * width))
    return "█" * filled + " " * (width - filled)


class LiveScreen:
    """Draws the status header, level meter, overlay window and transcript."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def render(self, status: LiveStatus) -> Panel:
        label, style = _STATE_STYLES[status.state]

        header = Table.grid(padding=(0, 2))
        header.add_row(Text(label, style=style),
                       Text(status.title or "Meeting Title...", style="bold white"),
                       Text(status.target_language.value if status.target_language else "", style="cyan"))

        parts = [header]
        if status.state is SessionState.LISTENING:
            parts.append(Text(f"Audio: [{level_bar(status.audio_level)}] {status.audio_level:5.1f}"))

        if status.overlay_visible:
            overlay = Text()
            if status.overlay_lines:
                for i, line in enumerate(status.overlay_lines):
                    is_latest = i == len(status.overlay_lines) - 1
                    overlay.append(line + "\n", style="bold white" if is_latest else "dim")
            else:
                overlay.append("Waiting for audio stream...", style="dim italic")
            parts.append(Panel(overlay, title="Overlay", border_style="magenta"))

        parts.append(self._render_transcript(status))

        if status.status_message:
            message_style = "red" if status.last_error else "green"
            parts.append(Text(status.status_message, style=message_style))
        if status.has_unsaved_transcript:
            parts.append(Text("⚠️  Unsaved transcript kept in memory, retry the save.", style="yellow"))

        return Panel(Group(*parts), title="🎙️  LiveMeeting", border_style="blue")

    def _render_transcript(self, status: LiveStatus) -> Panel:
        if not status.captions:
            body = Text("Press 'Start Live' to begin transcribing.", style="dim")
        else:
            body = Text()
            hidden = len(status.captions) - MAX_TRANSCRIPT_LINES
            if hidden > 0:
                body.append(f"... {hidden} earlier blocks\n", style="dim")
            for idx, caption in enumerate(status.captions[-MAX_TRANSCRIPT_LINES:],
                                          start=max(hidden, 0) + 1):
                body.append(f"{idx:3d}  ", style="dim")
                body.append(caption + "\n")
        return Panel(body, title=f"Transcript ({len(status.captions)} blocks)", border_style="white")

    def show(self, status: LiveStatus) -> None:
        self.console.clear()
        self.console.print(self.render(status))
