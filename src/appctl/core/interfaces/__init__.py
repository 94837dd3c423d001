"""Core interfaces for the app controller."""

from appctl.core.interfaces.remote import RemoteClient

__all__ = ["RemoteClient"]
