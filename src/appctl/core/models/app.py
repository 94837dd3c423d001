"""App resource models.

AppResourceModel: persisted resource state exchanged with the host.
AppRecord: one element of the middleware's app.query result.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AppResourceModel(BaseModel):
    """Persisted state of one managed app.

    Attributes:
        id: External identifier (the app name)
        name: Immutable app name, the remote lookup key
        custom_app: Whether this is a custom Docker Compose app
        compose_config: Docker Compose YAML (None = unset)
        desired_state: User intent, RUNNING/STOPPED (None = resolve on refresh)
        state_timeout: Seconds to wait for start/stop (None = default)
        state: Observed state reported by the remote system
        restart_triggers: Opaque fingerprints; a change restarts a running app
    """

    id: str | None = None
    name: str
    custom_app: bool = True
    compose_config: str | None = None
    desired_state: str | None = None
    state_timeout: int | None = None
    state: str | None = None
    restart_triggers: dict[str, str] | None = None


class AppRecord(BaseModel):
    """App as returned by app.query (fields not listed here are ignored)."""

    model_config = ConfigDict(extra="ignore")

    name: str
    state: str
    custom_app: bool = False
    config: dict[str, Any] = Field(default_factory=dict)
