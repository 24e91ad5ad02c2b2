"""Typed models for the session store and the menu cache."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from sessionmenu.constants import MAIN_SESSION_KEY


class ConnectionState(str, Enum):
    """Gateway control channel connectivity."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class SessionField(str, Enum):
    """Session fields that can be patched from the menu."""

    THINKING = "thinkingLevel"
    VERBOSE = "verboseLevel"


@dataclass(frozen=True)
class SessionRow:
    """One session entry as read from the store."""

    key: str
    session_id: str | None = None
    updated_at: datetime | None = None
    thinking_level: str | None = None
    verbose_level: str | None = None

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("SessionRow.key must be non-empty")

    @property
    def is_main(self) -> bool:
        return self.key == MAIN_SESSION_KEY


@dataclass(frozen=True)
class Snapshot:
    """Point-in-time read of the session store."""

    rows: tuple[SessionRow, ...]
    store_path: str

    def __post_init__(self) -> None:
        keys = [row.key for row in self.rows]
        if len(keys) != len(set(keys)):
            raise ValueError("Snapshot rows must have unique keys")


@dataclass(frozen=True)
class CacheState:
    """Cached snapshot or error, plus the time the last refresh settled.

    `snapshot` and `error_text` are never both set. Both are absent before the
    first refresh and while disconnected.
    """

    snapshot: Snapshot | None = None
    error_text: str | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.snapshot is not None and self.error_text is not None:
            raise ValueError("CacheState cannot hold both a snapshot and an error")

    @classmethod
    def loaded(cls, snapshot: Snapshot, at: datetime) -> CacheState:
        return cls(snapshot=snapshot, error_text=None, updated_at=at)

    @classmethod
    def failed(cls, error_text: str, at: datetime) -> CacheState:
        return cls(snapshot=None, error_text=error_text, updated_at=at)

    @classmethod
    def empty(cls, at: datetime | None = None) -> CacheState:
        return cls(snapshot=None, error_text=None, updated_at=at)
