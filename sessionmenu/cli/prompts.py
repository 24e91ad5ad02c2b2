"""Interactive confirmation and error presentation for the terminal."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm

from sessionmenu.core.errors import ActionFailedError


class TerminalPrompts:
    """Confirm and ReportError implementations backed by a rich console.

    Args:
        console: Console to write to
        assume_yes: Accept every confirmation without asking
    """

    def __init__(self, console: Console | None = None, *, assume_yes: bool = False) -> None:
        self.console = console or Console()
        self.assume_yes = assume_yes

    def confirm(self, title: str, message: str, action_label: str) -> bool:
        if self.assume_yes:
            return True
        self.console.print(f"[bold]{title}[/bold]")
        self.console.print(message)
        return Confirm.ask(action_label, console=self.console, default=False)

    def report_error(self, title: str, error: BaseException) -> None:
        detail = error.cause if isinstance(error, ActionFailedError) else error
        self.console.print(Panel(str(detail), title=title, border_style="red"))
