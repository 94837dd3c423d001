"""Drift & default resolution on refresh - pure function.

A refresh carries user intent forward: a missing desired_state defaults to
the observed state, a missing timeout to the default. Drift is reported,
never corrected here.
"""

from pydantic import BaseModel

from appctl.control.judge import is_drift
from appctl.core.domain.app import DEFAULT_STATE_TIMEOUT


class Resolution(BaseModel):
    """Resolver output.

    Attributes:
        desired_state: Effective desired state (prior value, or observed when unset)
        state_timeout: Effective timeout in seconds
        drift: Observed state disagrees with a prior declared desired state
    """

    desired_state: str | None
    state_timeout: int
    drift: bool

    model_config = {"frozen": True}


def resolve_refresh(
    desired: str | None,
    timeout: int | None,
    observed: str,
    default_timeout: int = DEFAULT_STATE_TIMEOUT,
) -> Resolution:
    """Resolve desired_state/state_timeout for a refresh.

    Args:
        desired: Persisted desired_state (None = never declared)
        timeout: Persisted state_timeout (None = unset)
        observed: State just reported by the remote system
        default_timeout: Timeout applied when unset

    Returns:
        Resolution; desired_state is preserved verbatim when present
    """
    resolved_timeout = timeout if timeout is not None else default_timeout

    # first observation: whatever it is doing now is the intent
    if desired is None:
        return Resolution(desired_state=observed, state_timeout=resolved_timeout, drift=False)

    return Resolution(
        desired_state=desired,
        state_timeout=resolved_timeout,
        drift=is_drift(desired, observed),
    )
