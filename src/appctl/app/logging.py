"""JSON logging for the controller.

Every lifecycle operation runs inside an operation context (trace_id,
operation, app). Log lines emitted anywhere below the controller, including
the remote client and job poller, are stamped with that context.
"""

import logging
import sys
import time
from collections import defaultdict, deque
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pythonjsonlogger import jsonlogger

from appctl.app.config import get_settings

trace_id_ctx: ContextVar[str | None] = ContextVar("trace_id", default=None)
operation_ctx: ContextVar[tuple[str, str] | None] = ContextVar("operation", default=None)


def get_trace_id() -> str | None:
    return trace_id_ctx.get()


def set_trace_id(trace_id: str | None = None) -> str:
    """Set the trace id for the current context; a short id is generated when omitted."""
    tid = trace_id or uuid4().hex[:8]
    trace_id_ctx.set(tid)
    return tid


def set_operation_context(operation: str, app: str) -> Token:
    """Tag subsequent log lines with the lifecycle operation and app name."""
    return operation_ctx.set((operation, app))


def reset_operation_context(token: Token) -> None:
    operation_ctx.reset(token)


def clear_trace_context() -> None:
    trace_id_ctx.set(None)
    operation_ctx.set(None)


class RateLimitFilter(logging.Filter):
    """Drops repeats of the same log call beyond `rate_per_minute`.

    Records are keyed by their `event` (falling back to the call site), so a
    job poller that logs the same timeout for many apps is throttled as one
    stream. The first suppressed record is let through with a marker.
    ERROR and above are never dropped.
    """

    def __init__(self, rate_per_minute: int = 100) -> None:
        super().__init__()
        self.rate_per_minute = rate_per_minute
        self._seen: dict[str, deque[float]] = defaultdict(deque)
        self._suppressing: set[str] = set()

    def _key(self, record: logging.LogRecord) -> str:
        event = getattr(record, "event", None)
        if event is not None:
            return f"{record.name}:{event}"
        return f"{record.name}:{record.lineno}"

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno >= logging.ERROR:
            return True

        key = self._key(record)
        now = time.monotonic()
        seen = self._seen[key]
        while seen and now - seen[0] >= 60:
            seen.popleft()

        if len(seen) < self.rate_per_minute:
            if len(seen) < self.rate_per_minute // 2:
                self._suppressing.discard(key)
            seen.append(now)
            return True

        if key in self._suppressing:
            return False
        self._suppressing.add(key)
        record.msg = f"[RATE LIMITED] {record.msg} (max {self.rate_per_minute}/min)"
        seen.append(now)
        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter carrying schema, service and operation context.

    Standard fields: timestamp, level, logger, schema_version, service.
    Inside an operation: trace_id, operation, app (explicit `extra` values
    win over the context).
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        settings = get_settings()
        self._schema_version = settings.logging.schema_version
        self._service = settings.logging.service_name

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.fromtimestamp(
            record.created, tz=timezone.utc
        ).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["schema_version"] = self._schema_version
        log_record["service"] = self._service

        if trace_id := get_trace_id():
            log_record["trace_id"] = trace_id
        if context := operation_ctx.get():
            operation, app = context
            log_record.setdefault("operation", operation)
            log_record.setdefault("app", app)

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        log_record.pop("color_message", None)


def setup_logging(level: int | None = None) -> None:
    """Install the JSON handler on the root and uvicorn loggers.

    Args:
        level: Log level. If None, uses APPCTL_LOGGING__LEVEL.
    """
    settings = get_settings()

    if level is None:
        level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter())
    handler.addFilter(RateLimitFilter(settings.logging.rate_limit_per_minute))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in ("uvicorn", "uvicorn.error"):
        uv_logger = logging.getLogger(name)
        uv_logger.handlers.clear()
        uv_logger.propagate = False
        uv_logger.addHandler(handler)

    # request logging middleware replaces the access log
    logging.getLogger("uvicorn.access").disabled = True
    logging.getLogger("websockets").setLevel(logging.WARNING)
