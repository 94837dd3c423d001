"""App domain enums and constants.

State values match what the middleware reports for apps.
"""

from enum import StrEnum


class AppState(StrEnum):
    """Observed app state (reported by the remote system).

    Open set: values outside this enum are passed through unchanged.
    """

    RUNNING = "RUNNING"
    STOPPED = "STOPPED"
    DEPLOYING = "DEPLOYING"
    STARTING = "STARTING"
    STOPPING = "STOPPING"
    CRASHED = "CRASHED"


class DesiredState(StrEnum):
    """User-declared target run-state."""

    RUNNING = "RUNNING"
    STOPPED = "STOPPED"


class Action(StrEnum):
    """Reconciliation action."""

    NONE = "NONE"
    START = "START"
    STOP = "STOP"

    @property
    def method(self) -> str:
        """Remote method for this action."""
        match self:
            case Action.START:
                return "app.start"
            case Action.STOP:
                return "app.stop"
        raise ValueError("Action.NONE has no remote method")


# seconds
DEFAULT_STATE_TIMEOUT = 120
MIN_STATE_TIMEOUT = 30
MAX_STATE_TIMEOUT = 600


def normalize_state(value: str | None) -> str | None:
    """Normalize a state value for comparison ("running " -> "RUNNING")."""
    if value is None:
        return None
    return value.strip().upper()
