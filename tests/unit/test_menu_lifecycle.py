"""Unit tests for MenuLifecycle open/close handling."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from sessionmenu.core.cache import SessionCache
from sessionmenu.core.models import ConnectionState, SessionRow, Snapshot
from sessionmenu.menu.lifecycle import MenuLifecycle, SurfaceState
from sessionmenu.menu.plan import ConnectionMessage, Header, LoadingHeader, build_plan

SNAPSHOT = Snapshot(rows=(SessionRow("main"),), store_path="/store/sessions.json")


class GatedSource:
    """Snapshot source whose fetches block until released."""

    def __init__(self) -> None:
        self.release = asyncio.Event()
        self.calls = 0

    async def fetch(self, limit: int) -> Snapshot:
        self.calls += 1
        await self.release.wait()
        return SNAPSHOT


def _lifecycle(source, connection, clock):
    cache = SessionCache(source, connection, clock=clock)
    plans: list = []
    lifecycle = MenuLifecycle(
        cache,
        lambda: build_plan(cache.state, connection.state, now=clock()),
        plans.append,
    )
    return lifecycle, cache, plans


@pytest.mark.asyncio
async def test_open_presents_cached_state_then_refreshed_state(connection, clock):
    source = GatedSource()
    lifecycle, _, plans = _lifecycle(source, connection, clock)

    lifecycle.open()

    assert lifecycle.state is SurfaceState.OPEN
    assert plans == [(LoadingHeader(count=0, status="Loading sessions…"),)]

    source.release.set()
    await lifecycle.wait_idle()

    assert len(plans) == 2
    assert plans[1][0] == Header(count=1)
    assert lifecycle.refresh_task is None


@pytest.mark.asyncio
async def test_close_cancels_refresh_and_suppresses_presentation(connection, clock):
    source = GatedSource()
    lifecycle, cache, plans = _lifecycle(source, connection, clock)

    lifecycle.open()
    await asyncio.sleep(0)
    task = lifecycle.refresh_task
    assert task is not None

    lifecycle.close()
    source.release.set()
    await asyncio.wait({task})

    assert task.cancelled()
    assert lifecycle.refresh_task is None
    assert lifecycle.state is SurfaceState.CLOSED
    assert len(plans) == 1
    assert cache.state.updated_at is None


@pytest.mark.asyncio
async def test_completion_after_close_does_not_present(connection, clock):
    """A refresh that finishes after close updates the cache silently."""
    lifecycle, cache, plans = _lifecycle(AsyncMock(fetch=AsyncMock(return_value=SNAPSHOT)), connection, clock)

    lifecycle.open()
    task = lifecycle.refresh_task
    lifecycle._state = SurfaceState.CLOSED  # closed without cancelling, as if cancellation came too late
    await asyncio.wait({task})

    assert len(plans) == 1
    assert cache.state.snapshot is SNAPSHOT


@pytest.mark.asyncio
async def test_reopen_supersedes_previous_refresh(connection, clock):
    source = GatedSource()
    lifecycle, _, plans = _lifecycle(source, connection, clock)

    lifecycle.open()
    await asyncio.sleep(0)
    first = lifecycle.refresh_task
    lifecycle.open()
    second = lifecycle.refresh_task

    assert first is not second
    assert lifecycle.generation == 2

    source.release.set()
    await asyncio.wait({first, second})

    assert first.cancelled()
    # One plan per open plus exactly one re-presentation.
    assert len(plans) == 3


@pytest.mark.asyncio
async def test_superseded_generation_never_presents(connection, clock):
    source = AsyncMock(fetch=AsyncMock(return_value=SNAPSHOT))
    lifecycle, _, plans = _lifecycle(source, connection, clock)

    lifecycle.open()
    stale = lifecycle.refresh_task
    lifecycle._generation += 1  # a newer open happened after this refresh was past cancellation
    await asyncio.wait({stale})

    assert len(plans) == 1


@pytest.mark.asyncio
async def test_reopen_within_interval_presents_without_refetch(connection, clock):
    source = AsyncMock(fetch=AsyncMock(return_value=SNAPSHOT))
    lifecycle, _, plans = _lifecycle(source, connection, clock)

    lifecycle.open()
    await lifecycle.wait_idle()
    lifecycle.close()
    clock.advance(5)
    lifecycle.open()
    await lifecycle.wait_idle()

    assert source.fetch.await_count == 1
    assert len(plans) == 4
    assert plans[2] == plans[3]


@pytest.mark.asyncio
async def test_connection_lost_during_refresh_is_presented(connection, clock):
    source = GatedSource()
    lifecycle, _, plans = _lifecycle(source, connection, clock)

    lifecycle.open()
    await asyncio.sleep(0)
    connection.state = ConnectionState.DISCONNECTED
    source.release.set()
    await lifecycle.wait_idle()

    assert plans[-1] == (ConnectionMessage("No connection to gateway"),)


@pytest.mark.asyncio
async def test_close_when_closed_is_noop(connection, clock):
    lifecycle, _, plans = _lifecycle(GatedSource(), connection, clock)

    lifecycle.close()

    assert lifecycle.state is SurfaceState.CLOSED
    assert plans == []


@pytest.mark.asyncio
async def test_present_only_when_open(connection, clock):
    lifecycle, _, plans = _lifecycle(AsyncMock(fetch=AsyncMock(return_value=SNAPSHOT)), connection, clock)

    lifecycle.present()
    assert plans == []

    lifecycle.open()
    await lifecycle.wait_idle()
    lifecycle.present()
    assert len(plans) == 3
