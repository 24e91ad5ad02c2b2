"""Terminal rendering of a session menu plan."""

from __future__ import annotations

from datetime import datetime, timezone

from rich.console import Console, Group
from rich.text import Text

from sessionmenu.core.models import SessionRow
from sessionmenu.menu.plan import (
    ConnectionMessage,
    EmptyMessage,
    Header,
    LoadingHeader,
    MenuAction,
    Plan,
    SessionEntry,
)

_MUTED = "dim"


def format_age(updated_at: datetime | None, now: datetime | None = None) -> str:
    """Relative age like '45s', '12m', '3h', '2d'. Empty when unknown."""
    if updated_at is None:
        return ""
    now = now or datetime.now(timezone.utc)
    seconds = int((now - updated_at).total_seconds())
    if seconds < 60:
        return "now" if seconds < 0 else f"{seconds}s"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h"
    return f"{hours // 24}d"


def _checked_title(actions: tuple[MenuAction, ...]) -> str:
    for action in actions:
        if action.checked:
            return action.title.lower()
    return ""


def _session_line(entry: SessionEntry, now: datetime | None) -> Text:
    row: SessionRow = entry.row
    line = Text("  ")
    line.append(row.key, style="bold" if row.is_main else "")
    age = format_age(row.updated_at, now)
    if age:
        line.append(f"  {age}", style=_MUTED)
    line.append(f"  thinking:{_checked_title(entry.actions.thinking)}", style=_MUTED)
    line.append(f"  verbose:{_checked_title(entry.actions.verbose)}", style=_MUTED)
    return line


def render_plan(plan: Plan, now: datetime | None = None) -> Group:
    """Build a renderable for `plan`, one line per entry."""
    lines: list[Text] = []
    for entry in plan:
        if isinstance(entry, ConnectionMessage):
            lines.append(Text(f"⚠ {entry.text}", style=_MUTED))
        elif isinstance(entry, LoadingHeader):
            lines.append(Text.assemble(("Sessions", "bold"), (f"  {entry.status}", _MUTED)))
        elif isinstance(entry, Header):
            lines.append(Text.assemble(("Sessions", "bold"), (f"  {entry.count} active", _MUTED)))
        elif isinstance(entry, EmptyMessage):
            lines.append(Text(f"  – {entry.text}", style=_MUTED))
        elif isinstance(entry, SessionEntry):
            lines.append(_session_line(entry, now))
    return Group(*lines)


def print_plan(plan: Plan, console: Console | None = None) -> None:
    (console or Console()).print(render_plan(plan))
