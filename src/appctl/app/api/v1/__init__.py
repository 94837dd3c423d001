"""API v1 module."""

from appctl.app.api.v1.apps import router as apps_router

__all__ = ["apps_router"]
