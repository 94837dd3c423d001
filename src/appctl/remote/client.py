"""JSON-RPC 2.0 websocket client for the remote middleware API.

Single connection, opened lazily and authenticated with an API key.
Requests are serialized over the connection; notifications (messages
without an id) are skipped while waiting for a response.
"""

import asyncio
import itertools
import json
import logging
import ssl
import time
from typing import Any

import websockets
from websockets.asyncio.client import ClientConnection

from appctl.app.config import RemoteConfig, get_settings
from appctl.app.metrics.collector import REMOTE_CALL_DURATION
from appctl.core.interfaces.remote import RemoteClient
from appctl.core.logging_schema import Component, LogEvent
from appctl.core.retryable import with_retry
from appctl.remote.errors import MiddlewareError, parse_middleware_error
from appctl.remote.jobs import JobPoller
from appctl.remote.ratelimit import CallPacer

logger = logging.getLogger(__name__)


def wrap_params(params: Any) -> list[Any]:
    """JSON-RPC positional params: None -> [], list kept, scalar/dict wrapped."""
    if params is None:
        return []
    if isinstance(params, list):
        return params
    return [params]


def is_job_id(result: Any) -> bool:
    return isinstance(result, int) and not isinstance(result, bool)


class MiddlewareClient(RemoteClient):
    """RemoteClient over the middleware websocket API.

    call() retries connection-level failures; call_and_wait() never re-sends
    the mutating request, only the job polls go through call().
    """

    def __init__(self, config: RemoteConfig | None = None) -> None:
        self._config = config or get_settings().remote
        self._ws: ClientConnection | None = None
        self._lock = asyncio.Lock()
        self._ids = itertools.count(1)
        self._pacer = CallPacer(self._config.calls_per_minute)
        self._poller = JobPoller(
            self,
            initial=self._config.job_poll_initial,
            maximum=self._config.job_poll_max,
            multiplier=self._config.job_poll_multiplier,
        )

    async def call(self, method: str, params: Any = None) -> Any:
        await self._pacer.acquire()
        start = time.monotonic()
        try:
            return await with_retry(
                lambda: self._request(method, params),
                max_retries=self._config.max_retries,
                base_delay=self._config.retry_base_delay,
                max_delay=self._config.retry_max_delay,
            )
        finally:
            REMOTE_CALL_DURATION.labels(method=method, mode="call").observe(
                time.monotonic() - start
            )

    async def call_and_wait(
        self, method: str, params: Any = None, *, timeout: float | None = None
    ) -> Any:
        wait_timeout = timeout if timeout is not None else self._config.job_timeout
        await self._pacer.acquire()
        start = time.monotonic()
        try:
            result = await self._request(method, params)
            if not is_job_id(result):
                return result
            logger.debug("%s started job %d", method, result, extra={"job_id": result})
            return await self._poller.wait(result, wait_timeout)
        finally:
            REMOTE_CALL_DURATION.labels(method=method, mode="wait").observe(
                time.monotonic() - start
            )

    async def close(self) -> None:
        async with self._lock:
            if self._ws is not None:
                await self._ws.close()
                self._ws = None

    # =========================================================================
    # Transport
    # =========================================================================

    async def _request(self, method: str, params: Any) -> Any:
        async with self._lock:
            ws = await self._ensure_connected()
            try:
                async with asyncio.timeout(self._config.call_timeout):
                    return await self._roundtrip(ws, method, params)
            except (websockets.ConnectionClosed, OSError, TimeoutError):
                # connection state is unknown after a transport failure
                await self._drop(ws)
                raise

    async def _roundtrip(self, ws: ClientConnection, method: str, params: Any) -> Any:
        request_id = str(next(self._ids))
        await ws.send(
            json.dumps(
                {
                    "jsonrpc": "2.0",
                    "id": request_id,
                    "method": method,
                    "params": wrap_params(params),
                }
            )
        )

        while True:
            message = json.loads(await ws.recv())
            if message.get("id") != request_id:
                continue
            if error := message.get("error"):
                raise _rpc_error(error)
            return message.get("result")

    async def _ensure_connected(self) -> ClientConnection:
        if self._ws is not None:
            return self._ws

        kwargs: dict[str, Any] = {}
        if self._config.url.startswith("wss://"):
            ctx = ssl.create_default_context()
            if not self._config.verify_ssl:
                ctx.check_hostname = False
                ctx.verify_mode = ssl.CERT_NONE
            kwargs["ssl"] = ctx

        ws = await websockets.connect(self._config.url, **kwargs)
        try:
            if self._config.api_key:
                await self._authenticate(ws)
        except BaseException:
            await ws.close()
            raise

        self._ws = ws
        logger.info(
            "Connected to middleware",
            extra={
                "event": LogEvent.REMOTE_CONNECTED,
                "component": Component.REMOTE,
                "url": self._config.url,
            },
        )
        return ws

    async def _authenticate(self, ws: ClientConnection) -> None:
        async with asyncio.timeout(self._config.call_timeout):
            ok = await self._roundtrip(ws, "auth.login_with_api_key", [self._config.api_key])
        if ok is not True:
            raise MiddlewareError(
                code="EACCES",
                message="Authentication failed",
                suggestion="Check that the configured API key is valid and not revoked.",
            )

    async def _drop(self, ws: ClientConnection) -> None:
        if self._ws is ws:
            self._ws = None
        await ws.close()


def _rpc_error(error: dict[str, Any]) -> MiddlewareError:
    """Build a MiddlewareError from a JSON-RPC error object.

    The middleware puts its formatted "[ECODE] ..." text in data.reason.
    """
    data = error.get("data") or {}
    reason = data.get("reason") if isinstance(data, dict) else None
    return parse_middleware_error(reason or str(error.get("message", "Unknown error")))
