"""Process-wide remote client and controller for the host API."""

from typing import Annotated

from fastapi import Depends

from appctl.app.config import get_settings
from appctl.control import AppController
from appctl.core.interfaces.remote import RemoteClient
from appctl.remote import MiddlewareClient

_remote_client: RemoteClient | None = None


async def init_remote() -> None:
    """Create the remote client (it connects lazily on first call)."""
    global _remote_client
    if _remote_client is None:
        _remote_client = MiddlewareClient(get_settings().remote)


def get_remote_client() -> RemoteClient:
    if _remote_client is None:
        raise RuntimeError("Remote client not initialized. Call init_remote() first.")
    return _remote_client


async def close_remote() -> None:
    global _remote_client
    if _remote_client is not None:
        await _remote_client.close()
        _remote_client = None


def reset_remote() -> None:
    """Reset the client singleton (for testing)."""
    global _remote_client
    _remote_client = None


def get_controller(
    client: Annotated[RemoteClient, Depends(get_remote_client)],
) -> AppController:
    return AppController(client)


Controller = Annotated[AppController, Depends(get_controller)]
