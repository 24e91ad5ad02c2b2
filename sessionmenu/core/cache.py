"""Time-bound cache for the session store snapshot.

The cache holds one immutable `CacheState`. Every refresh builds a new state
and swaps it in with a single assignment, so readers on the event loop never
observe a snapshot alongside an error or a timestamp ahead of its data.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable

from sessionmenu.constants import REFRESH_INTERVAL_SECONDS, SNAPSHOT_ROW_LIMIT
from sessionmenu.core.errors import SessionLoadError, compact_error
from sessionmenu.core.models import CacheState, ConnectionState
from sessionmenu.core.protocols import ConnectionSource, SnapshotSource
from sessionmenu.logging_config import get_logger

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionCache:
    """Owns the cached snapshot, its error text and the TTL policy.

    Only coroutines running on the owner event loop call `refresh()`; the
    state itself is never mutated, only replaced.
    """

    def __init__(
        self,
        source: SnapshotSource,
        connection: ConnectionSource,
        *,
        refresh_interval_seconds: float = REFRESH_INTERVAL_SECONDS,
        snapshot_limit: int = SNAPSHOT_ROW_LIMIT,
        clock: Clock = utc_now,
    ) -> None:
        self._source = source
        self._connection = connection
        self.refresh_interval_seconds = refresh_interval_seconds
        self.snapshot_limit = snapshot_limit
        self._clock = clock
        self._state = CacheState()
        self._started = 0
        self._applied = 0

    @property
    def state(self) -> CacheState:
        """Current cache state (immutable)."""
        return self._state

    def is_fresh(self) -> bool:
        """True when the last settled refresh is younger than the refresh interval."""
        updated_at = self._state.updated_at
        if updated_at is None:
            return False
        age = (self._clock() - updated_at).total_seconds()
        return age < self.refresh_interval_seconds

    def invalidate(self) -> None:
        """Forget the refresh timestamp so the next unforced refresh fetches.

        Cached rows stay visible until that refresh settles.
        """
        self._state = replace(self._state, updated_at=None)
        logger.debug("Session cache invalidated")

    async def refresh(self, force: bool = False) -> None:
        """Refresh the cached snapshot.

        Each refresh is stamped when it starts. A refresh that settles after a
        later-started one has already been applied is dropped, so a slow
        unforced fetch never overwrites newer data from a forced one.

        Args:
            force: Fetch even if the last refresh is younger than the refresh interval.
        """
        if not force and self.is_fresh():
            logger.debug("Session refresh skipped (fresh)")
            return

        self._started += 1
        seq = self._started

        if self._connection.state is not ConnectionState.CONNECTED:
            self._apply(seq, CacheState.empty(at=self._clock()))
            logger.debug("Session refresh skipped (not connected)", connection=self._connection.state.value)
            return

        try:
            snapshot = await self._source.fetch(self.snapshot_limit)
        except SessionLoadError as e:
            if self._apply(seq, CacheState.failed(compact_error(e), at=self._clock())):
                logger.warning("Session refresh failed", error=str(e), kind=type(e).__name__, forced=force)
            return
        except Exception as e:
            if self._apply(seq, CacheState.failed(compact_error(e), at=self._clock())):
                logger.error("Session refresh failed unexpectedly", error=str(e), exc_info=True)
            return

        if self._apply(seq, CacheState.loaded(snapshot, at=self._clock())):
            logger.debug("Session refresh settled", rows=len(snapshot.rows), forced=force)

    def _apply(self, seq: int, state: CacheState) -> bool:
        if seq < self._applied:
            logger.debug("Superseded session refresh dropped", seq=seq, applied=self._applied)
            return False
        self._applied = seq
        self._state = state
        return True
