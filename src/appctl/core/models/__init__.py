"""Resource and remote record models."""

from appctl.core.models.app import AppRecord, AppResourceModel

__all__ = ["AppRecord", "AppResourceModel"]
