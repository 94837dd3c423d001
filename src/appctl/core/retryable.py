"""Retryable error classification with exponential backoff retry.

Classifies remote transport errors as retryable (transient) or
non-retryable (permanent). Used by the remote client for non-mutating
calls only; act-and-wait calls are never re-sent.

Usage:
    from appctl.core.retryable import is_retryable, with_retry

    if is_retryable(exc):
        # retry logic

    result = await with_retry(lambda: client.call("app.query", params))
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

import websockets

from appctl.core.logging_schema import ErrorClass, LogEvent

logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# websockets / socket error classification
# =============================================================================

WS_RETRYABLE = (
    websockets.ConnectionClosedError,
    ConnectionRefusedError,
    ConnectionResetError,
    ConnectionAbortedError,
)

WS_NON_RETRYABLE = (
    websockets.InvalidURI,
    websockets.InvalidStatus,
)

# Error substrings that indicate transient connection failures
RETRYABLE_PATTERNS = (
    "failed connection handshake",
    "unexpected closure of remote connection",
    "connection refused",
    "connection reset",
    "i/o timeout",
    "no route to host",
    "network is unreachable",
)


def _matches_retryable_pattern(exc: Exception) -> bool:
    msg = str(exc).lower()
    return any(pattern in msg for pattern in RETRYABLE_PATTERNS)


# =============================================================================
# Unified classification
# =============================================================================


def classify_error(exc: Exception) -> ErrorClass:
    """Classify error as transient, timeout or permanent.

    Args:
        exc: Exception to classify

    Returns:
        ErrorClass.TIMEOUT: asyncio/OS timeout
        ErrorClass.TRANSIENT: Connection-level failure, can retry
        ErrorClass.PERMANENT: Everything else (conservative)
    """
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return ErrorClass.TIMEOUT

    if isinstance(exc, WS_NON_RETRYABLE):
        return ErrorClass.PERMANENT

    if isinstance(exc, WS_RETRYABLE):
        return ErrorClass.TRANSIENT

    if isinstance(exc, websockets.InvalidHandshake):
        return ErrorClass.TRANSIENT

    if _matches_retryable_pattern(exc):
        return ErrorClass.TRANSIENT

    return ErrorClass.PERMANENT


def is_retryable(exc: Exception) -> bool:
    """Check if error is retryable (transient or timeout)."""
    return classify_error(exc) != ErrorClass.PERMANENT


# =============================================================================
# Retry utility
# =============================================================================


def calculate_backoff(attempt: int, base_delay: float, max_delay: float) -> float:
    """Delay before retry attempt n (0-indexed): base * 2^n, capped, ±25% jitter."""
    delay = min(base_delay * (2**attempt), max_delay)
    return delay * (0.75 + random.random() * 0.5)


async def with_retry(
    coro_factory: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay: float = 2.0,
    max_delay: float = 30.0,
) -> T:
    """Execute async operation with exponential backoff retry.

    Only retries for retryable errors (transient failures).
    Non-retryable errors are raised immediately.

    Args:
        coro_factory: Factory function that creates new coroutine for each attempt
        max_retries: Maximum number of retry attempts (default: 3)
        base_delay: Initial delay in seconds (default: 2.0)
        max_delay: Maximum delay in seconds (default: 30.0)

    Returns:
        Result of successful operation

    Raises:
        Exception: The last exception if all retries fail, or immediately
                   for non-retryable errors
    """
    last_exc: Exception | None = None

    for attempt in range(max_retries + 1):
        try:
            return await coro_factory()
        except Exception as exc:
            last_exc = exc
            error_class = classify_error(exc)

            if error_class == ErrorClass.PERMANENT:
                raise

            if attempt == max_retries:
                logger.error(
                    "Max retries exceeded (%d attempts): %s",
                    max_retries + 1,
                    exc,
                    extra={"error_class": error_class, "attempt": attempt + 1},
                )
                raise

            delay = calculate_backoff(attempt, base_delay, max_delay)
            logger.warning(
                "Retryable error (attempt %d/%d, retry in %.1fs): %s",
                attempt + 1,
                max_retries + 1,
                delay,
                exc,
                extra={
                    "event": LogEvent.REMOTE_CALL_RETRY,
                    "error_class": error_class,
                    "attempt": attempt + 1,
                    "delay": delay,
                },
            )
            await asyncio.sleep(delay)

    # This should never be reached, but satisfy type checker
    if last_exc:
        raise last_exc
    raise RuntimeError("Unexpected state in with_retry")
