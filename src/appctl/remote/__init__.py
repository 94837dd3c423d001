"""Middleware JSON-RPC client."""

from appctl.remote.client import MiddlewareClient
from appctl.remote.errors import MiddlewareError, parse_middleware_error
from appctl.remote.jobs import JobPoller

__all__ = [
    "JobPoller",
    "MiddlewareClient",
    "MiddlewareError",
    "parse_middleware_error",
]
