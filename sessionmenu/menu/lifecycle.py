"""Open/close lifecycle of the session menu surface.

On open the current plan is emitted immediately, then a background refresh
runs and the plan is emitted once more if the menu is still open when it
settles. Each refresh is tagged with a generation number; only the newest
generation may re-present.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Callable, Optional

from sessionmenu.core.cache import SessionCache
from sessionmenu.core.task_registry import TaskRegistry
from sessionmenu.logging_config import get_logger
from sessionmenu.menu.plan import Plan

logger = get_logger(__name__)


class SurfaceState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"


class MenuLifecycle:
    """Drives cache refreshes from the menu's open/close events.

    Must be used from the owner event loop; `open()` and `close()` are
    synchronous and never block on I/O.
    """

    def __init__(
        self,
        cache: SessionCache,
        plan_builder: Callable[[], Plan],
        on_plan: Callable[[Plan], None],
        tasks: Optional[TaskRegistry] = None,
    ) -> None:
        self._cache = cache
        self._plan_builder = plan_builder
        self._on_plan = on_plan
        self._tasks = tasks or TaskRegistry()
        self._state = SurfaceState.CLOSED
        self._generation = 0
        self._refresh_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> SurfaceState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is SurfaceState.OPEN

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def refresh_task(self) -> asyncio.Task[None] | None:
        """Handle of the outstanding lifecycle refresh, if any."""
        return self._refresh_task

    def open(self) -> None:
        """Surface shown: present cached data now, refresh in the background."""
        self._state = SurfaceState.OPEN
        self._emit()

        self._cancel_refresh()
        self._generation += 1
        generation = self._generation
        self._refresh_task = self._tasks.spawn(
            self._refresh_then_present(generation),
            name=f"menu-refresh-{generation}",
        )
        logger.debug("Menu opened", generation=generation)

    def close(self) -> None:
        """Surface hidden: stop the outstanding refresh from presenting."""
        if self._state is SurfaceState.CLOSED:
            return
        self._state = SurfaceState.CLOSED
        self._cancel_refresh()
        logger.debug("Menu closed", generation=self._generation)

    def present(self) -> None:
        """Re-emit the plan if the menu is open."""
        if self.is_open:
            self._emit()

    async def wait_idle(self) -> None:
        """Wait for the outstanding lifecycle refresh, if any, to finish."""
        task = self._refresh_task
        if task is not None:
            await asyncio.wait({task})

    def _emit(self) -> None:
        self._on_plan(self._plan_builder())

    def _cancel_refresh(self) -> None:
        task = self._refresh_task
        self._refresh_task = None
        if task is not None and not task.done():
            task.cancel()

    async def _refresh_then_present(self, generation: int) -> None:
        await self._cache.refresh(force=False)

        if generation != self._generation:
            logger.debug("Superseded refresh settled", generation=generation, current=self._generation)
            return
        self._refresh_task = None
        if not self.is_open:
            return
        self._emit()
