"""Session action dispatch.

Every action follows the same shape: ask for confirmation when the action is
destructive, run it through the executor, then either force a cache refresh
(success) or hand the failure to the error reporter. Executor failures never
propagate out of the dispatcher and never touch the cache.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Optional

from sessionmenu.constants import COMPACT_MAX_LINES, MAIN_SESSION_KEY, THINKING_LEVELS, VERBOSE_LEVELS
from sessionmenu.core.cache import SessionCache
from sessionmenu.core.errors import ActionFailedError
from sessionmenu.core.models import SessionField
from sessionmenu.core.protocols import ActionExecutor, Confirm, ReportError
from sessionmenu.logging_config import get_logger

logger = get_logger(__name__)


def _require_key(key: str) -> None:
    if not key:
        raise ValueError("Session key must be non-empty")


def _require_level(value: Optional[str], levels: tuple[str, ...], name: str) -> None:
    if value is not None and value not in levels:
        raise ValueError(f"Invalid {name} level: {value!r} (expected one of {', '.join(levels)})")


class ActionDispatcher:
    """Runs user-invoked session actions.

    Each public method returns True when the action ran and succeeded, False
    when it was declined, refused or failed.
    """

    def __init__(
        self,
        executor: ActionExecutor,
        cache: SessionCache,
        confirm: Confirm,
        report_error: ReportError,
        *,
        compact_max_lines: int = COMPACT_MAX_LINES,
        on_refreshed: Optional[Callable[[], None]] = None,
    ) -> None:
        self._executor = executor
        self._cache = cache
        self._confirm = confirm
        self._report_error = report_error
        self.compact_max_lines = compact_max_lines
        self._on_refreshed = on_refreshed

    async def patch_thinking(self, key: str, value: Optional[str]) -> bool:
        """Set the thinking level override, or clear it when `value` is None."""
        _require_key(key)
        _require_level(value, THINKING_LEVELS, "thinking")
        return await self._execute(
            "Update thinking failed",
            lambda: self._executor.patch(key, SessionField.THINKING, value),
            key=key,
        )

    async def patch_verbose(self, key: str, value: Optional[str]) -> bool:
        """Set the verbose level override, or clear it when `value` is None."""
        _require_key(key)
        _require_level(value, VERBOSE_LEVELS, "verbose")
        return await self._execute(
            "Update verbose failed",
            lambda: self._executor.patch(key, SessionField.VERBOSE, value),
            key=key,
        )

    async def reset_session(self, key: str) -> bool:
        _require_key(key)
        if not self._ask("Reset session?", f"Starts a new session id for “{key}”.", "Reset"):
            return False
        return await self._execute("Reset failed", lambda: self._executor.reset(key), key=key)

    async def compact_session(self, key: str) -> bool:
        _require_key(key)
        max_lines = self.compact_max_lines
        if not self._ask(
            "Compact session log?",
            f"Keeps the last {max_lines} lines; archives the old file.",
            "Compact",
        ):
            return False
        return await self._execute("Compact failed", lambda: self._executor.compact(key, max_lines), key=key)

    async def delete_session(self, key: str) -> bool:
        _require_key(key)
        if key == MAIN_SESSION_KEY:
            logger.warning("Refusing to delete the main session")
            return False
        if not self._ask("Delete session?", f"Deletes the “{key}” entry and archives its transcript.", "Delete"):
            return False
        return await self._execute("Delete failed", lambda: self._executor.delete(key), key=key)

    async def open_session_log(self, session_id: str, store_path: str) -> bool:
        """Open a session transcript. Read-only, so the cache is left alone."""
        if not session_id:
            raise ValueError("Session id must be non-empty")
        return await self._execute(
            "Open log failed",
            lambda: self._executor.open_log(session_id, store_path),
            key=session_id,
            refresh=False,
        )

    def _ask(self, title: str, message: str, action_label: str) -> bool:
        try:
            accepted = self._confirm(title, message, action_label)
        except Exception as e:
            logger.warning("Confirmation failed; treating as declined", action=action_label, error=str(e))
            return False
        if not accepted:
            logger.info("Action declined", action=action_label)
        return accepted

    async def _execute(
        self,
        title: str,
        operation: Callable[[], Awaitable[None]],
        *,
        key: str,
        refresh: bool = True,
    ) -> bool:
        try:
            await operation()
        except Exception as e:
            failure = ActionFailedError(title, e)
            logger.warning("Session action failed", title=title, key=key, error=str(e))
            self._report_error(title, failure)
            return False

        logger.info("Session action succeeded", key=key, refresh=refresh)
        if refresh:
            await self._cache.refresh(force=True)
            if self._on_refreshed is not None:
                self._on_refreshed()
        return True
