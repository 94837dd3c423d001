"""Request logging middleware.

Canonical log line per host API request with trace ID propagation.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from appctl.app.config import get_settings
from appctl.app.logging import clear_trace_context, set_trace_id
from appctl.app.metrics.collector import HTTP_REQUEST_DURATION, HTTP_REQUESTS_TOTAL
from appctl.core.logging_schema import Component, LogEvent

logger = logging.getLogger(__name__)

# Whitelist of known endpoints for metrics (cardinality control)
_KNOWN_ENDPOINTS = frozenset({
    "/api/v1/apps/create",
    "/api/v1/apps/read",
    "/api/v1/apps/update",
    "/api/v1/apps/delete",
    "/api/v1/apps/import",
    "/api/v1/apps/plan",
})

_QUIET_PATHS = ("/health", "/metrics")


def _normalize_path(path: str) -> str:
    return path if path in _KNOWN_ENDPOINTS else "other"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Request logging with trace ID propagation.

    - Uses X-Trace-ID from the host or generates one
    - Logs one line per request (health/metrics skipped)
    - Echoes X-Trace-ID on the response
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        trace_id = set_trace_id(request.headers.get("x-trace-id"))
        path = request.url.path
        start = time.monotonic()

        try:
            try:
                response = await call_next(request)
            except Exception:
                logger.error(
                    "Request failed",
                    extra={
                        "event": LogEvent.REQUEST_FAILED,
                        "component": Component.API,
                        "method": request.method,
                        "path": path,
                        "duration_ms": (time.monotonic() - start) * 1000,
                    },
                )
                raise

            duration_seconds = time.monotonic() - start
            duration_ms = duration_seconds * 1000

            if path not in _QUIET_PATHS:
                endpoint = _normalize_path(path)
                HTTP_REQUESTS_TOTAL.labels(
                    method=request.method,
                    endpoint=endpoint,
                    status=str(response.status_code),
                ).inc()
                HTTP_REQUEST_DURATION.labels(
                    method=request.method,
                    endpoint=endpoint,
                ).observe(duration_seconds)

                logger.info(
                    "Request completed",
                    extra={
                        "event": LogEvent.REQUEST_COMPLETE,
                        "component": Component.API,
                        "method": request.method,
                        "path": path,
                        "status": response.status_code,
                        "duration_ms": duration_ms,
                    },
                )

                threshold_ms = get_settings().logging.slow_threshold_ms
                if duration_ms > threshold_ms:
                    logger.warning(
                        "Slow request detected",
                        extra={
                            "event": LogEvent.REQUEST_SLOW,
                            "component": Component.API,
                            "method": request.method,
                            "path": path,
                            "duration_ms": duration_ms,
                            "threshold_ms": threshold_ms,
                        },
                    )
        finally:
            clear_trace_context()

        response.headers["X-Trace-ID"] = trace_id
        return response
