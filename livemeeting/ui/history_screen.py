"""Rich rendering of saved sessions."""

from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..models.session import Session
from ..services.history_service import HistoryService


class HistoryScreen:
    """Lists saved sessions and shows a single one."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def render_list(self, sessions: List[Session]) -> Table:
        table = Table(title="Meeting History", show_lines=False)
        table.add_column("ID", style="dim", no_wrap=True)
        table.add_column("Date", no_wrap=True)
        table.add_column("Title", style="bold")
        table.add_column("Lang", style="cyan")
        table.add_column("Preview")

        for session in sessions:
            table.add_row(
                session.id,
                session.created_at.strftime("%Y-%m-%d %H:%M"),
                session.title,
                session.target_lang.value,
                HistoryService.preview(session, length=60),
            )
        return table

    def render_session(self, session: Session) -> Panel:
        body = Text()
        body.append(f"{session.created_at.isoformat()}  ·  {session.target_lang.value}\n\n", style="dim")
        body.append(session.transcription)
        return Panel(body, title=session.title, border_style="blue")

    def show_list(self, sessions: List[Session]) -> None:
        if not sessions:
            self.console.print("No meetings found.", style="dim")
            return
        self.console.print(self.render_list(sessions))

    def show_session(self, session: Session) -> None:
        self.console.print(self.render_session(session))
