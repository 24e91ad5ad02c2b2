"""Gateway connectivity tracking.

`GatewayConnection` probes the gateway health endpoint in a background loop
and exposes the result as a `ConnectionState`. While the gateway is
unreachable the probe backs off exponentially.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Protocol

from sessionmenu.core.models import ConnectionState
from sessionmenu.logging_config import get_logger
from sessionmenu.transport.api_client import APIError
from sessionmenu.transport.wire import HealthPayload

logger = get_logger(__name__)

# Reconnection settings
PROBE_INITIAL_BACKOFF = 1.0  # Initial reprobe delay in seconds
PROBE_MAX_BACKOFF = 30.0  # Maximum reprobe delay
PROBE_BACKOFF_MULTIPLIER = 2.0  # Exponential backoff multiplier
PROBE_HEALTHY_INTERVAL = 15.0  # Delay between probes while connected

ConnectionListener = Callable[[ConnectionState], None]


class HealthProbe(Protocol):
    async def health(self) -> HealthPayload: ...


class GatewayConnection:
    """Connection state source backed by periodic health probes."""

    def __init__(
        self,
        client: HealthProbe,
        *,
        initial_backoff: float = PROBE_INITIAL_BACKOFF,
        max_backoff: float = PROBE_MAX_BACKOFF,
        healthy_interval: float = PROBE_HEALTHY_INTERVAL,
    ) -> None:
        self._client = client
        self._initial_backoff = initial_backoff
        self._max_backoff = max_backoff
        self._healthy_interval = healthy_interval
        self._state = ConnectionState.DISCONNECTED
        self._listeners: list[ConnectionListener] = []
        self._task: asyncio.Task[None] | None = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    def add_listener(self, listener: ConnectionListener) -> None:
        """Call `listener` with the new state on every transition."""
        self._listeners.append(listener)

    def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        previous = self._state
        self._state = state
        logger.info("Gateway connection changed", previous=previous.value, state=state.value)
        for listener in list(self._listeners):
            listener(state)

    async def probe(self) -> ConnectionState:
        """Check the gateway once and update the state."""
        if self._state is ConnectionState.DISCONNECTED:
            self._set_state(ConnectionState.CONNECTING)
        try:
            await self._client.health()
        except APIError as e:
            logger.debug("Gateway probe failed", error=e.detail, connect_error=e.is_connect_error)
            self._set_state(ConnectionState.DISCONNECTED)
        else:
            self._set_state(ConnectionState.CONNECTED)
        return self._state

    async def _probe_loop(self) -> None:
        backoff = self._initial_backoff
        while True:
            state = await self.probe()
            if state is ConnectionState.CONNECTED:
                backoff = self._initial_backoff
                await asyncio.sleep(self._healthy_interval)
                continue
            logger.debug("Reprobing gateway", delay=backoff)
            await asyncio.sleep(backoff)
            backoff = min(backoff * PROBE_BACKOFF_MULTIPLIER, self._max_backoff)

    def start(self) -> None:
        """Start the background probe loop on the running event loop."""
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.create_task(self._probe_loop(), name="gateway-probe")

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
