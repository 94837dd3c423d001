"""Tests for retryable error classification and retry logic."""

import asyncio

import pytest
import websockets
from websockets.frames import Close

from appctl.core.logging_schema import ErrorClass
from appctl.core.retryable import calculate_backoff, classify_error, is_retryable, with_retry
from appctl.remote.errors import MiddlewareError


class TestClassifyError:
    """Tests for classify_error function."""

    def test_timeout(self) -> None:
        assert classify_error(asyncio.TimeoutError()) == ErrorClass.TIMEOUT
        assert is_retryable(TimeoutError()) is True

    def test_connection_refused_is_transient(self) -> None:
        assert classify_error(ConnectionRefusedError()) == ErrorClass.TRANSIENT

    def test_connection_closed_error_is_transient(self) -> None:
        exc = websockets.ConnectionClosedError(Close(1006, ""), None)
        assert classify_error(exc) == ErrorClass.TRANSIENT

    def test_invalid_uri_is_permanent(self) -> None:
        exc = websockets.InvalidURI("nas", "not a websocket URI")
        assert classify_error(exc) == ErrorClass.PERMANENT

    def test_message_pattern_is_transient(self) -> None:
        assert classify_error(RuntimeError("dial tcp: i/o timeout")) == ErrorClass.TRANSIENT

    def test_middleware_error_is_permanent(self) -> None:
        exc = MiddlewareError(code="EINVAL", message="app_name: invalid")
        assert classify_error(exc) == ErrorClass.PERMANENT
        assert is_retryable(exc) is False

    def test_unknown_error_is_permanent(self) -> None:
        assert classify_error(ValueError("some value error")) == ErrorClass.PERMANENT


class TestCalculateBackoff:
    def test_exponential_with_jitter(self) -> None:
        for attempt, base in [(0, 2.0), (1, 4.0), (2, 8.0)]:
            delay = calculate_backoff(attempt, 2.0, 30.0)
            assert base * 0.75 <= delay <= base * 1.25

    def test_capped(self) -> None:
        assert calculate_backoff(10, 2.0, 30.0) <= 30.0 * 1.25


class TestWithRetry:
    """Tests for with_retry function."""

    @pytest.mark.asyncio
    async def test_success_on_first_attempt(self) -> None:
        call_count = 0

        async def success_func() -> str:
            nonlocal call_count
            call_count += 1
            return "success"

        assert await with_retry(success_func, max_retries=3) == "success"
        assert call_count == 1

    @pytest.mark.asyncio
    async def test_retry_on_transient_error(self) -> None:
        call_count = 0

        async def failing_then_success() -> str:
            nonlocal call_count
            call_count += 1
            if call_count < 3:
                raise ConnectionResetError("connection reset by peer")
            return "success"

        result = await with_retry(failing_then_success, max_retries=3, base_delay=0.01)
        assert result == "success"
        assert call_count == 3

    @pytest.mark.asyncio
    async def test_no_retry_on_permanent_error(self) -> None:
        call_count = 0

        async def permanent_error() -> str:
            nonlocal call_count
            call_count += 1
            raise MiddlewareError(code="ENOENT", message="gone")

        with pytest.raises(MiddlewareError):
            await with_retry(permanent_error, max_retries=3)

        assert call_count == 1

    @pytest.mark.asyncio
    async def test_max_retries_exceeded(self) -> None:
        call_count = 0

        async def always_fail() -> str:
            nonlocal call_count
            call_count += 1
            raise ConnectionRefusedError("connection refused")

        with pytest.raises(ConnectionRefusedError):
            await with_retry(always_fail, max_retries=2, base_delay=0.01)

        assert call_count == 3  # Initial + 2 retries
