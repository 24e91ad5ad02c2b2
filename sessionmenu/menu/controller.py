"""Session menu controller.

Wires the cache, the open/close lifecycle, the plan builder and the action
dispatcher behind the entry points the renderer calls:

    controller = SessionMenuController(
        connection=connection,
        source=client,
        executor=client,
        confirm=ask_user,
        report_error=show_error,
        on_plan=render,
    )
    controller.install()
    controller.open()   # menu shown
    controller.close()  # menu hidden
    controller.perform(menu_action)
"""

from __future__ import annotations

import asyncio
from typing import Callable, Coroutine, Optional

from sessionmenu.config.schema import SessionMenuConfig
from sessionmenu.core.cache import Clock, SessionCache, utc_now
from sessionmenu.core.models import ConnectionState
from sessionmenu.core.protocols import ActionExecutor, ConnectionSource, Confirm, ReportError, SnapshotSource
from sessionmenu.core.task_registry import TaskRegistry
from sessionmenu.logging_config import get_logger
from sessionmenu.menu.actions import ActionDispatcher
from sessionmenu.menu.lifecycle import MenuLifecycle
from sessionmenu.menu.plan import ActionKind, MenuAction, Plan, PlanOptions, build_plan

logger = get_logger(__name__)


class SessionMenuController:
    """Central controller for the session menu."""

    def __init__(
        self,
        *,
        connection: ConnectionSource,
        source: SnapshotSource,
        executor: ActionExecutor,
        confirm: Confirm,
        report_error: ReportError,
        on_plan: Callable[[Plan], None],
        settings: Optional[SessionMenuConfig] = None,
        clock: Clock = utc_now,
    ) -> None:
        settings = settings or SessionMenuConfig()
        self.settings = settings
        self._connection = connection
        self._clock = clock
        self.plan_options = PlanOptions(
            active_window_seconds=settings.cache.active_window_seconds,
            session_log_enabled=settings.debug_pane_enabled and settings.connection_mode == "local",
        )
        self.tasks = TaskRegistry()
        self.cache = SessionCache(
            source,
            connection,
            refresh_interval_seconds=settings.cache.refresh_interval_seconds,
            snapshot_limit=settings.cache.snapshot_limit,
            clock=clock,
        )
        self.lifecycle = MenuLifecycle(self.cache, self.build_plan, on_plan, self.tasks)
        self.actions = ActionDispatcher(
            executor,
            self.cache,
            confirm,
            report_error,
            compact_max_lines=settings.actions.compact_max_lines,
            on_refreshed=self.lifecycle.present,
        )

    def build_plan(self) -> Plan:
        """Plan for the current cache and connection state."""
        return build_plan(self.cache.state, self._connection.state, now=self._clock(), options=self.plan_options)

    def install(self) -> asyncio.Task[None]:
        """Warm the cache so the first open has data."""
        return self.tasks.spawn(self.cache.refresh(force=True), name="menu-refresh-initial")

    def open(self) -> None:
        self.lifecycle.open()

    def close(self) -> None:
        self.lifecycle.close()

    def on_connection_changed(self, state: ConnectionState) -> None:
        """Connection listener: refetch after reconnect and show the new state."""
        if state is ConnectionState.CONNECTED:
            self.cache.invalidate()
        self.lifecycle.present()

    def perform(self, action: MenuAction) -> asyncio.Task[bool]:
        """Run a menu item's action in the background.

        Action tasks outlive the menu: closing it does not cancel them.
        """
        return self.tasks.spawn(self._route(action), name=f"menu-action-{action.kind.value}")

    def _route(self, action: MenuAction) -> Coroutine[object, object, bool]:
        args = action.args
        if action.kind is ActionKind.PATCH_THINKING:
            return self.actions.patch_thinking(_key(args), args[1])
        if action.kind is ActionKind.PATCH_VERBOSE:
            return self.actions.patch_verbose(_key(args), args[1])
        if action.kind is ActionKind.RESET:
            return self.actions.reset_session(_key(args))
        if action.kind is ActionKind.COMPACT:
            return self.actions.compact_session(_key(args))
        if action.kind is ActionKind.DELETE:
            return self.actions.delete_session(_key(args))
        if action.kind is ActionKind.OPEN_LOG:
            return self.actions.open_session_log(_key(args), args[1] or "")
        raise ValueError(f"Unknown action kind: {action.kind}")

    async def shutdown(self, timeout: float = 2.0) -> None:
        self.lifecycle.close()
        await self.tasks.shutdown(timeout=timeout)
        logger.info("Session menu controller stopped")


def _key(args: tuple[Optional[str], ...]) -> str:
    return args[0] or ""
