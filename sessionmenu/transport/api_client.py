"""HTTP client for the session gateway.

Implements the snapshot source and the action executor over the gateway's
Unix socket API.
"""

import asyncio
import json
import os
import stat
import time
from http import HTTPMethod
from typing import Optional, TypeAlias
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from sessionmenu.constants import API_REQUEST_TIMEOUT_S, API_SOCKET_PATH
from sessionmenu.core.errors import DecodeFailedError, GatewayRejectedError, GatewayUnavailableError
from sessionmenu.core.models import SessionField, Snapshot
from sessionmenu.logging_config import get_logger
from sessionmenu.transport.log_opener import TranscriptOpener
from sessionmenu.transport.wire import HealthPayload, SnapshotPayload

logger = get_logger(__name__)

BASE_URL = "http://localhost"
API_CONNECT_RETRY_DELAYS_S = (0.1, 0.3, 0.6)

__all__ = ["APIError", "GatewayClient"]

JsonBody: TypeAlias = dict[str, str | int | None]


class APIError(Exception):
    """API request failed with structured error info."""

    def __init__(self, message: str, status_code: int | None = None, detail: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail or message

    @property
    def is_connect_error(self) -> bool:
        return self.status_code is None


class GatewayClient:
    """Async HTTP client for the session gateway."""

    def __init__(
        self,
        socket_path: str = API_SOCKET_PATH,
        *,
        timeout: float = API_REQUEST_TIMEOUT_S,
        opener: Optional[TranscriptOpener] = None,
    ):
        """Initialize client.

        Args:
            socket_path: Path to the gateway Unix socket
            timeout: Default request timeout in seconds
            opener: Launcher used by `open_log` (defaults to `code`)
        """
        self.socket_path = socket_path
        self.timeout = timeout
        self.opener = opener or TranscriptOpener()
        self._client: httpx.AsyncClient | None = None
        self._last_connect_error_log: float | None = None

    async def connect(self) -> None:
        """Create the HTTP client bound to the gateway socket."""
        if self._client is not None:
            return
        transport = httpx.AsyncHTTPTransport(uds=self.socket_path)
        self._client = httpx.AsyncClient(transport=transport, base_url=BASE_URL, timeout=self.timeout)

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: HTTPMethod | str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        json_body: JsonBody | None = None,
    ) -> httpx.Response:
        """Make HTTP request with error handling.

        Connect failures are retried a few times while waiting for the socket.

        Returns:
            Response object

        Raises:
            APIError: If request fails
        """
        if not self._client:
            raise APIError("Client not connected. Call connect() first.")

        try:
            method_enum = HTTPMethod(method)
        except ValueError as e:
            raise APIError(f"Unsupported HTTP method: {method}") from e

        try:
            for attempt, delay in enumerate((0.0, *API_CONNECT_RETRY_DELAYS_S), start=1):
                if delay:
                    await asyncio.sleep(delay)
                try:
                    resp = await self._client.request(
                        method_enum.value,
                        url,
                        params=params,
                        json=json_body if method_enum in (HTTPMethod.POST, HTTPMethod.PATCH) else None,
                    )
                    resp.raise_for_status()
                    return resp
                except httpx.ConnectError as e:
                    self._log_connect_error(method_enum, url, e)
                    await self._wait_for_socket()
                    if attempt >= 1 + len(API_CONNECT_RETRY_DELAYS_S):
                        raise APIError("Cannot connect to gateway. Socket may be missing.") from e
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            detail = None
            try:
                body = e.response.json()
                detail = body.get("detail") if isinstance(body, dict) else None
            except (json.JSONDecodeError, ValueError):
                detail = e.response.text
            raise APIError(
                f"Gateway request failed: {status_code} {detail or e.response.text}",
                status_code=status_code,
                detail=detail,
            ) from e
        except httpx.TimeoutException as e:
            raise APIError("Gateway request timed out.") from e
        except httpx.HTTPError as e:
            raise APIError(f"Gateway request error: {e}") from e

        raise APIError("Cannot connect to gateway. Socket may be missing.")

    def _log_connect_error(self, method: HTTPMethod, url: str, error: Exception) -> None:
        now = time.monotonic()
        if self._last_connect_error_log is None or (now - self._last_connect_error_log) >= 10.0:
            self._last_connect_error_log = now
            logger.debug(
                "Gateway connect failed",
                method=method.value,
                url=url,
                socket_path=self.socket_path,
                error=str(error),
            )

    async def _wait_for_socket(self, *, timeout_s: float = 1.0) -> None:
        """Wait briefly for the gateway socket to appear."""
        deadline = time.monotonic() + timeout_s
        while time.monotonic() < deadline:
            try:
                if os.path.exists(self.socket_path) and stat.S_ISSOCK(os.stat(self.socket_path).st_mode):
                    return
            except OSError:
                pass
            await asyncio.sleep(0.05)

    # --- Snapshot source ---

    async def health(self) -> HealthPayload:
        """Probe the gateway.

        Raises:
            APIError: If the gateway does not answer
        """
        resp = await self._request(HTTPMethod.GET, "/health")
        try:
            return HealthPayload.model_validate_json(resp.text)
        except ValidationError as e:
            raise APIError(f"Invalid health payload: {e}") from e

    async def fetch(self, limit: int) -> Snapshot:
        """Load up to `limit` session rows.

        Raises:
            GatewayUnavailableError: If the gateway cannot be reached or times out
            GatewayRejectedError: If the gateway answers with an error status
            DecodeFailedError: If the response cannot be decoded
        """
        try:
            resp = await self._request(HTTPMethod.GET, "/sessions", params={"limit": str(limit)})
        except APIError as e:
            if e.is_connect_error:
                raise GatewayUnavailableError(e.detail) from e
            raise GatewayRejectedError(e.detail) from e

        try:
            return SnapshotPayload.model_validate_json(resp.text).to_snapshot()
        except (ValidationError, ValueError) as e:
            raise DecodeFailedError(str(e)) from e

    # --- Action executor ---

    @staticmethod
    def _session_url(key: str, suffix: str = "") -> str:
        return f"/sessions/{quote(key, safe='')}{suffix}"

    async def patch(self, key: str, field: SessionField, value: Optional[str]) -> None:
        """Set or clear (`value=None`) a session field."""
        await self._request(HTTPMethod.PATCH, self._session_url(key), json_body={field.value: value})

    async def reset(self, key: str) -> None:
        await self._request(HTTPMethod.POST, self._session_url(key, "/reset"))

    async def compact(self, key: str, max_lines: int) -> None:
        await self._request(HTTPMethod.POST, self._session_url(key, "/compact"), json_body={"maxLines": max_lines})

    async def delete(self, key: str) -> None:
        await self._request(HTTPMethod.DELETE, self._session_url(key))

    async def open_log(self, session_id: str, store_path: str) -> None:
        await self.opener.open(session_id, store_path)
