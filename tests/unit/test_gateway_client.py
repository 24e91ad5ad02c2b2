"""Unit tests for GatewayClient."""

# type: ignore - test swaps the httpx transport

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import httpx
import pytest

from sessionmenu.core.errors import DecodeFailedError, GatewayRejectedError, GatewayUnavailableError
from sessionmenu.core.models import SessionField
from sessionmenu.core.protocols import ActionExecutor, SnapshotSource
from sessionmenu.transport import api_client
from sessionmenu.transport.api_client import APIError, GatewayClient


def _client(handler) -> GatewayClient:
    client = GatewayClient("/tmp/test-gateway.sock")
    client._client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=api_client.BASE_URL)
    client._wait_for_socket = AsyncMock()
    return client


SNAPSHOT_BODY = {
    "path": "/home/user/.gateway/sessions/sessions.json",
    "sessions": [
        {"key": "main", "sessionId": "m-1", "updatedAt": 1768478400000, "thinkingLevel": "low"},
        {"key": "s1", "updatedAt": None, "verboseLevel": "on", "extra": "ignored"},
    ],
}


@pytest.mark.asyncio
async def test_connect_creates_client():
    client = GatewayClient("/tmp/test-gateway.sock")
    assert client.is_connected is False

    await client.connect()
    assert client.is_connected is True

    await client.close()
    assert client.is_connected is False
    await client.close()


@pytest.mark.asyncio
async def test_request_requires_connect():
    client = GatewayClient("/tmp/test-gateway.sock")

    with pytest.raises(GatewayUnavailableError):
        await client.fetch(32)


@pytest.mark.asyncio
async def test_fetch_decodes_snapshot():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=SNAPSHOT_BODY)

    client = _client(handler)
    snapshot = await client.fetch(32)

    assert seen[0].method == "GET"
    assert seen[0].url.path == "/sessions"
    assert seen[0].url.params["limit"] == "32"
    assert snapshot.store_path == SNAPSHOT_BODY["path"]
    main, s1 = snapshot.rows
    assert main.key == "main"
    assert main.session_id == "m-1"
    assert main.updated_at == datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)
    assert main.thinking_level == "low"
    assert s1.updated_at is None
    assert s1.verbose_level == "on"
    await client.close()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        "not json",
        json.dumps({"sessions": []}),
        json.dumps({"path": "/x", "sessions": [{"key": ""}]}),
        json.dumps({"path": "/x", "sessions": [{"key": "a"}, {"key": "a"}]}),
    ],
)
async def test_fetch_decode_failures(body):
    client = _client(lambda request: httpx.Response(200, text=body))

    with pytest.raises(DecodeFailedError):
        await client.fetch(32)


@pytest.mark.asyncio
async def test_fetch_http_error_is_rejected_not_unavailable():
    client = _client(lambda request: httpx.Response(503, json={"detail": "store locked"}))

    with pytest.raises(GatewayRejectedError) as exc_info:
        await client.fetch(32)

    assert "store locked" in str(exc_info.value)
    assert exc_info.value.display_text == "Sessions unavailable"


@pytest.mark.asyncio
async def test_fetch_timeout_is_gateway_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    client = _client(handler)

    with pytest.raises(GatewayUnavailableError):
        await client.fetch(32)


@pytest.mark.asyncio
async def test_connect_error_retries_then_fails(monkeypatch):
    monkeypatch.setattr(api_client, "API_CONNECT_RETRY_DELAYS_S", (0.0, 0.0))
    attempts = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal attempts
        attempts += 1
        raise httpx.ConnectError("no socket", request=request)

    client = _client(handler)

    with pytest.raises(GatewayUnavailableError):
        await client.fetch(32)
    assert attempts == 3


@pytest.mark.asyncio
async def test_connect_error_recovers_on_retry(monkeypatch):
    monkeypatch.setattr(api_client, "API_CONNECT_RETRY_DELAYS_S", (0.0,))
    attempts = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise httpx.ConnectError("starting", request=request)
        return httpx.Response(200, json=SNAPSHOT_BODY)

    client = _client(handler)
    snapshot = await client.fetch(32)

    assert len(snapshot.rows) == 2


@pytest.mark.asyncio
async def test_timeout_raises_api_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    client = _client(handler)

    with pytest.raises(APIError, match="timed out"):
        await client.reset("s1")


@pytest.mark.asyncio
async def test_patch_sends_field_and_value():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    client = _client(handler)
    await client.patch("s1", SessionField.THINKING, "high")
    await client.patch("s1", SessionField.VERBOSE, None)

    assert seen[0].method == "PATCH"
    assert seen[0].url.path == "/sessions/s1"
    assert json.loads(seen[0].content) == {"thinkingLevel": "high"}
    assert json.loads(seen[1].content) == {"verboseLevel": None}


@pytest.mark.asyncio
async def test_mutations_hit_expected_routes():
    seen: list[tuple[str, str, bytes]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.raw_path.decode(), request.content))
        return httpx.Response(200, json={"ok": True})

    client = _client(handler)
    await client.reset("s1")
    await client.compact("s1", 400)
    await client.delete("team/alpha")

    assert seen[0][:2] == ("POST", "/sessions/s1/reset")
    assert seen[1][:2] == ("POST", "/sessions/s1/compact")
    assert json.loads(seen[1][2]) == {"maxLines": 400}
    assert seen[2][:2] == ("DELETE", "/sessions/team%2Falpha")


@pytest.mark.asyncio
async def test_mutation_http_error_carries_status():
    client = _client(lambda request: httpx.Response(404, json={"detail": "unknown session"}))

    with pytest.raises(APIError) as exc_info:
        await client.delete("s9")

    assert exc_info.value.status_code == 404
    assert exc_info.value.detail == "unknown session"


@pytest.mark.asyncio
async def test_health():
    client = _client(lambda request: httpx.Response(200, json={"status": "ok"}))

    payload = await client.health()

    assert payload.status == "ok"


@pytest.mark.asyncio
async def test_open_log_delegates_to_opener():
    opener = AsyncMock()
    client = GatewayClient("/tmp/test-gateway.sock", opener=opener)

    await client.open_log("abc", "/store/sessions.json")

    opener.open.assert_awaited_once_with("abc", "/store/sessions.json")


def test_client_satisfies_menu_protocols():
    client = GatewayClient("/tmp/test-gateway.sock")

    assert isinstance(client, SnapshotSource)
    assert isinstance(client, ActionExecutor)


def test_api_error_connect_flag():
    assert APIError("Cannot connect to gateway.").is_connect_error is True
    assert APIError("Gateway request failed: 500", status_code=500).is_connect_error is False
