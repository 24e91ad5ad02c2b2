"""Protocol definitions for the collaborators around the session menu."""

from typing import Optional, Protocol, runtime_checkable

from sessionmenu.core.models import ConnectionState, SessionField, Snapshot


@runtime_checkable
class ConnectionSource(Protocol):
    """Reports the current gateway connectivity."""

    @property
    def state(self) -> ConnectionState: ...


@runtime_checkable
class SnapshotSource(Protocol):
    """Loads session store snapshots."""

    async def fetch(self, limit: int) -> Snapshot:
        """Fetch up to `limit` session rows.

        Raises:
            GatewayUnavailableError: If the gateway cannot be reached
            DecodeFailedError: If the response cannot be decoded
        """
        ...


@runtime_checkable
class ActionExecutor(Protocol):
    """Mutates a single session in the remote store.

    Every method may raise; the dispatcher treats any exception as a failed action.
    """

    async def patch(self, key: str, field: SessionField, value: Optional[str]) -> None: ...

    async def reset(self, key: str) -> None: ...

    async def compact(self, key: str, max_lines: int) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def open_log(self, session_id: str, store_path: str) -> None: ...


class Confirm(Protocol):
    """Blocking yes/no decision by the user."""

    def __call__(self, title: str, message: str, action_label: str) -> bool: ...


class ReportError(Protocol):
    """Fire-and-forget error presentation."""

    def __call__(self, title: str, error: BaseException) -> None: ...
