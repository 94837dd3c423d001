"""Domain models and enums."""

from appctl.core.domain.app import (
    DEFAULT_STATE_TIMEOUT,
    MAX_STATE_TIMEOUT,
    MIN_STATE_TIMEOUT,
    Action,
    AppState,
    DesiredState,
    normalize_state,
)

__all__ = [
    "Action",
    "AppState",
    "DesiredState",
    "normalize_state",
    "DEFAULT_STATE_TIMEOUT",
    "MAX_STATE_TIMEOUT",
    "MIN_STATE_TIMEOUT",
]
