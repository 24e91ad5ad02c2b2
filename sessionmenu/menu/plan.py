"""Presentation plan for the session menu.

`build_plan()` turns the cache and connection state into an ordered tuple of
entries the renderer paints top to bottom. It is pure: the same inputs,
including `now`, always produce an equal plan.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional, TypeAlias, Union

from sessionmenu.constants import (
    ACTIVE_WINDOW_SECONDS,
    LOADING_TEXT,
    NO_ACTIVE_SESSIONS_TEXT,
    NO_CONNECTION_TEXT,
    THINKING_LEVELS,
    VERBOSE_LEVELS,
)
from sessionmenu.core.models import CacheState, ConnectionState, SessionRow


class ActionKind(str, Enum):
    """Dispatcher operation a menu item routes to."""

    PATCH_THINKING = "patch_thinking"
    PATCH_VERBOSE = "patch_verbose"
    OPEN_LOG = "open_session_log"
    RESET = "reset_session"
    COMPACT = "compact_session"
    DELETE = "delete_session"


@dataclass(frozen=True)
class MenuAction:
    """One clickable item in a session's submenu.

    `args` are the positional arguments for the dispatcher method named by `kind`.
    """

    kind: ActionKind
    title: str
    args: tuple[Optional[str], ...]
    checked: bool = False


@dataclass(frozen=True)
class SessionActionMenu:
    thinking: tuple[MenuAction, ...]
    verbose: tuple[MenuAction, ...]
    commands: tuple[MenuAction, ...]

    @property
    def kinds(self) -> frozenset[ActionKind]:
        return frozenset(action.kind for action in (*self.thinking, *self.verbose, *self.commands))


@dataclass(frozen=True)
class ConnectionMessage:
    text: str


@dataclass(frozen=True)
class LoadingHeader:
    count: int
    status: str


@dataclass(frozen=True)
class Header:
    count: int


@dataclass(frozen=True)
class EmptyMessage:
    text: str


@dataclass(frozen=True)
class SessionEntry:
    row: SessionRow
    store_path: str
    actions: SessionActionMenu


PlanEntry: TypeAlias = Union[ConnectionMessage, LoadingHeader, Header, EmptyMessage, SessionEntry]
Plan: TypeAlias = tuple[PlanEntry, ...]


@dataclass(frozen=True)
class PlanOptions:
    """Policy knobs for plan construction.

    Attributes:
        active_window_seconds: Rows older than this are hidden (except "main").
        session_log_enabled: Offer "Open Session Log" for rows with a session id.
    """

    active_window_seconds: float = ACTIVE_WINDOW_SECONDS
    session_log_enabled: bool = False


def _is_recent(row: SessionRow, now: datetime, window_seconds: float) -> bool:
    if row.is_main:
        return True
    if row.updated_at is None:
        return False
    return (now - row.updated_at).total_seconds() <= window_seconds


def _sort_key(row: SessionRow) -> tuple[int, float]:
    # Main first, then newest first; rows without a timestamp sort last.
    if row.is_main:
        return (0, 0.0)
    if row.updated_at is None:
        return (1, float("inf"))
    return (1, -row.updated_at.timestamp())


def visible_rows(rows: Iterable[SessionRow], now: datetime, window_seconds: float) -> list[SessionRow]:
    """Filter to recently active rows and order them for display."""
    return sorted((row for row in rows if _is_recent(row, now, window_seconds)), key=_sort_key)


def _level_choices(
    kind: ActionKind, key: str, levels: tuple[str, ...], current: Optional[str]
) -> tuple[MenuAction, ...]:
    selected = current if current in levels else "off"
    return tuple(
        MenuAction(kind=kind, title=level.capitalize(), args=(key, level), checked=level == selected)
        for level in levels
    )


def build_action_menu(row: SessionRow, store_path: str, options: PlanOptions) -> SessionActionMenu:
    """Build the submenu offered for one session row.

    The pinned main session is never offered deletion.
    """
    commands: list[MenuAction] = []
    if options.session_log_enabled and row.session_id:
        commands.append(MenuAction(ActionKind.OPEN_LOG, "Open Session Log", (row.session_id, store_path)))
    commands.append(MenuAction(ActionKind.RESET, "Reset Session", (row.key,)))
    commands.append(MenuAction(ActionKind.COMPACT, "Compact Session Log", (row.key,)))
    if not row.is_main:
        commands.append(MenuAction(ActionKind.DELETE, "Delete Session", (row.key,)))

    return SessionActionMenu(
        thinking=_level_choices(ActionKind.PATCH_THINKING, row.key, THINKING_LEVELS, row.thinking_level),
        verbose=_level_choices(ActionKind.PATCH_VERBOSE, row.key, VERBOSE_LEVELS, row.verbose_level),
        commands=tuple(commands),
    )


def build_plan(
    state: CacheState,
    connection: ConnectionState,
    *,
    now: datetime,
    options: PlanOptions = PlanOptions(),
) -> Plan:
    """Derive the menu plan from cache and connection state.

    Args:
        state: Current cache state
        connection: Current gateway connectivity
        now: Reference time for the active window (timezone-aware)
        options: Filtering and action policy

    Returns:
        Ordered plan entries
    """
    if connection is not ConnectionState.CONNECTED:
        return (ConnectionMessage(NO_CONNECTION_TEXT),)

    snapshot = state.snapshot
    if snapshot is None:
        # A known failure stays visible instead of flashing "Loading" while a retry runs.
        return (LoadingHeader(count=0, status=state.error_text or LOADING_TEXT),)

    rows = visible_rows(snapshot.rows, now, options.active_window_seconds)
    if not rows:
        return (Header(count=0), EmptyMessage(NO_ACTIVE_SESSIONS_TEXT))

    entries: list[PlanEntry] = [Header(count=len(rows))]
    entries.extend(
        SessionEntry(row=row, store_path=snapshot.store_path, actions=build_action_menu(row, snapshot.store_path, options))
        for row in rows
    )
    return tuple(entries)
