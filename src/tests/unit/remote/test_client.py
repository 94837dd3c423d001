"""Tests for the middleware websocket client."""

import asyncio
import json
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest

from appctl.app.config import RemoteConfig
from appctl.remote.client import MiddlewareClient, is_job_id, wrap_params
from appctl.remote.errors import MiddlewareError

Handler = Callable[[dict[str, Any]], list[dict[str, Any]]]


class FakeWebSocket:
    """Answers each sent request with the messages the handler returns."""

    def __init__(self, handler: Handler) -> None:
        self._handler = handler
        self._inbox: asyncio.Queue[str] = asyncio.Queue()
        self.sent: list[dict[str, Any]] = []
        self.closed = False

    async def send(self, data: str) -> None:
        request = json.loads(data)
        self.sent.append(request)
        for message in self._handler(request):
            self._inbox.put_nowait(json.dumps(message))

    async def recv(self) -> str:
        return await self._inbox.get()

    async def close(self) -> None:
        self.closed = True

    @property
    def methods(self) -> list[str]:
        return [r["method"] for r in self.sent]


def reply(request: dict[str, Any], result: Any) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request["id"], "result": result}


def middleware(results: dict[str, Any]) -> Handler:
    """Handler answering by method; auth always succeeds."""

    def handle(request: dict[str, Any]) -> list[dict[str, Any]]:
        if request["method"] == "auth.login_with_api_key":
            return [reply(request, True)]
        return [reply(request, results[request["method"]])]

    return handle


@pytest.fixture
def config() -> RemoteConfig:
    return RemoteConfig(
        url="ws://nas.local/api/current",
        api_key="secret",
        max_retries=1,
        retry_base_delay=0.0,
        retry_max_delay=0.0,
        job_poll_initial=0.0,
        job_poll_max=0.0,
        calls_per_minute=0,
    )


def connect_to(*sockets: Any):
    return patch(
        "appctl.remote.client.websockets.connect",
        new_callable=AsyncMock,
        side_effect=list(sockets),
    )


class TestParams:
    def test_wrap_params(self) -> None:
        assert wrap_params(None) == []
        assert wrap_params("web") == ["web"]
        assert wrap_params({"app_name": "web"}) == [{"app_name": "web"}]
        assert wrap_params(["web", {}]) == ["web", {}]

    def test_is_job_id(self) -> None:
        assert is_job_id(12) is True
        assert is_job_id(True) is False
        assert is_job_id(None) is False
        assert is_job_id({"id": 1}) is False


class TestCall:
    async def test_authenticates_then_calls(self, config: RemoteConfig) -> None:
        ws = FakeWebSocket(middleware({"app.query": [{"name": "web"}]}))

        with connect_to(ws) as connect:
            client = MiddlewareClient(config)
            result = await client.call("app.query", [[["name", "=", "web"]]])

        assert result == [{"name": "web"}]
        assert ws.methods == ["auth.login_with_api_key", "app.query"]
        assert ws.sent[0]["params"] == ["secret"]
        assert ws.sent[1]["jsonrpc"] == "2.0"
        connect.assert_awaited_once_with("ws://nas.local/api/current")

    async def test_connection_reused(self, config: RemoteConfig) -> None:
        ws = FakeWebSocket(middleware({"app.query": []}))

        with connect_to(ws) as connect:
            client = MiddlewareClient(config)
            await client.call("app.query")
            await client.call("app.query")

        assert connect.await_count == 1
        assert ws.methods == ["auth.login_with_api_key", "app.query", "app.query"]

    async def test_no_api_key_skips_auth(self, config: RemoteConfig) -> None:
        config.api_key = ""
        ws = FakeWebSocket(middleware({"app.query": []}))

        with connect_to(ws):
            await MiddlewareClient(config).call("app.query")

        assert ws.methods == ["app.query"]

    async def test_notifications_skipped(self, config: RemoteConfig) -> None:
        def handle(request: dict[str, Any]) -> list[dict[str, Any]]:
            if request["method"] == "auth.login_with_api_key":
                return [reply(request, True)]
            return [
                {"jsonrpc": "2.0", "method": "collection_update", "params": {}},
                reply(request, "ok"),
            ]

        with connect_to(FakeWebSocket(handle)):
            assert await MiddlewareClient(config).call("system.info") == "ok"

    async def test_rpc_error_is_parsed(self, config: RemoteConfig) -> None:
        def handle(request: dict[str, Any]) -> list[dict[str, Any]]:
            if request["method"] == "auth.login_with_api_key":
                return [reply(request, True)]
            return [
                {
                    "jsonrpc": "2.0",
                    "id": request["id"],
                    "error": {
                        "code": -32001,
                        "message": "Method call error",
                        "data": {"reason": "[ENOENT] app_name: App not found", "error": 2},
                    },
                }
            ]

        with connect_to(FakeWebSocket(handle)):
            with pytest.raises(MiddlewareError) as exc_info:
                await MiddlewareClient(config).call("app.get_instance", "web")

        assert exc_info.value.code == "ENOENT"
        assert exc_info.value.field == "app_name"

    async def test_auth_failure(self, config: RemoteConfig) -> None:
        ws = FakeWebSocket(lambda request: [reply(request, False)])

        with connect_to(ws):
            with pytest.raises(MiddlewareError) as exc_info:
                await MiddlewareClient(config).call("app.query")

        assert exc_info.value.code == "EACCES"
        assert ws.closed is True

    async def test_connection_refused_is_retried(self, config: RemoteConfig) -> None:
        ws = FakeWebSocket(middleware({"app.query": []}))

        with connect_to(ConnectionRefusedError("refused"), ws) as connect:
            assert await MiddlewareClient(config).call("app.query") == []

        assert connect.await_count == 2

    async def test_close(self, config: RemoteConfig) -> None:
        ws = FakeWebSocket(middleware({"app.query": []}))

        with connect_to(ws):
            client = MiddlewareClient(config)
            await client.call("app.query")
            await client.close()

        assert ws.closed is True


class TestCallAndWait:
    async def test_waits_for_job(self, config: RemoteConfig) -> None:
        ws = FakeWebSocket(
            middleware(
                {
                    "app.start": 42,
                    "core.get_jobs": [{"id": 42, "state": "SUCCESS", "result": None}],
                }
            )
        )

        with connect_to(ws):
            result = await MiddlewareClient(config).call_and_wait("app.start", "web", timeout=30)

        assert result is None
        assert ws.methods == ["auth.login_with_api_key", "app.start", "core.get_jobs"]
        assert ws.sent[1]["params"] == ["web"]
        assert ws.sent[2]["params"] == [[["id", "=", 42]]]

    async def test_failed_job(self, config: RemoteConfig) -> None:
        ws = FakeWebSocket(
            middleware(
                {
                    "app.stop": 43,
                    "core.get_jobs": [{"id": 43, "state": "FAILED", "error": "[EFAULT] stop failed"}],
                }
            )
        )

        with connect_to(ws):
            with pytest.raises(MiddlewareError) as exc_info:
                await MiddlewareClient(config).call_and_wait("app.stop", "web")

        assert exc_info.value.code == "EFAULT"
        assert exc_info.value.job_id == 43

    async def test_non_job_result_returned(self, config: RemoteConfig) -> None:
        ws = FakeWebSocket(middleware({"app.config": {"services": {}}}))

        with connect_to(ws):
            result = await MiddlewareClient(config).call_and_wait("app.config", "web")

        assert result == {"services": {}}
        assert "core.get_jobs" not in ws.methods

    async def test_lifecycle_job_has_no_default_deadline(self) -> None:
        client = MiddlewareClient(RemoteConfig(calls_per_minute=0))
        with (
            patch.object(client, "_request", new_callable=AsyncMock, return_value=7),
            patch.object(client._poller, "wait", new_callable=AsyncMock) as wait,
        ):
            await client.call_and_wait("app.create", {"app_name": "web"})

        wait.assert_awaited_once_with(7, None)

    async def test_explicit_timeout_bounds_job(self) -> None:
        client = MiddlewareClient(RemoteConfig(job_timeout=900.0, calls_per_minute=0))
        with (
            patch.object(client, "_request", new_callable=AsyncMock, return_value=8),
            patch.object(client._poller, "wait", new_callable=AsyncMock) as wait,
        ):
            await client.call_and_wait("app.start", "web", timeout=45)
            await client.call_and_wait("app.update", ["web", {}])

        assert [c.args for c in wait.await_args_list] == [(8, 45), (8, 900.0)]


class TestPacing:
    async def test_every_call_is_paced(self, config: RemoteConfig) -> None:
        ws = FakeWebSocket(middleware({"app.query": [], "app.start": None}))
        client = MiddlewareClient(config)

        with (
            connect_to(ws),
            patch.object(client._pacer, "acquire", new_callable=AsyncMock) as acquire,
        ):
            await client.call("app.query")
            await client.call_and_wait("app.start", "web")

        assert acquire.await_count == 2
