"""HTTP middleware."""

from appctl.app.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware"]
