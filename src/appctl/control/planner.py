"""Plan normalization and state prediction - pure functions.

normalize_plan: validate and canonicalize desired_state/state_timeout
predict_state: computed `state` after apply (None = unknown until apply)
"""

from appctl.core.diagnostics import Diagnostics
from appctl.core.domain.app import (
    DEFAULT_STATE_TIMEOUT,
    MAX_STATE_TIMEOUT,
    MIN_STATE_TIMEOUT,
    AppState,
    DesiredState,
    normalize_state,
)
from appctl.core.models import AppResourceModel


def normalize_plan(
    plan: AppResourceModel,
    default_timeout: int = DEFAULT_STATE_TIMEOUT,
) -> tuple[AppResourceModel, Diagnostics]:
    """Validate a plan and return its canonical form.

    desired_state is upper-cased (None stays None: resolved at next refresh).
    state_timeout defaults to `default_timeout`.

    Returns:
        (normalized plan, diagnostics). On error diagnostics the returned
        plan is the input unchanged.
    """
    diagnostics = Diagnostics()

    desired = normalize_state(plan.desired_state)
    if desired is not None and desired not in (DesiredState.RUNNING, DesiredState.STOPPED):
        diagnostics.add_error(
            "Invalid Desired State",
            f"desired_state must be 'running' or 'stopped' (case-insensitive), got {plan.desired_state!r}",
        )

    timeout = plan.state_timeout if plan.state_timeout is not None else default_timeout
    if not MIN_STATE_TIMEOUT <= timeout <= MAX_STATE_TIMEOUT:
        diagnostics.add_error(
            "Invalid State Timeout",
            f"state_timeout must be between {MIN_STATE_TIMEOUT} and {MAX_STATE_TIMEOUT} seconds, got {timeout}",
        )

    if diagnostics.has_error():
        return plan, diagnostics

    return plan.model_copy(update={"desired_state": desired, "state_timeout": timeout}), diagnostics


def predict_state(prior: AppResourceModel, plan: AppResourceModel) -> str | None:
    """Predict the observed state after apply.

    Cases:
    1. desired_state changing → None (unknown)
    2. drift (state != desired) → desired, reconciliation will converge it
       (CRASHED with desired STOPPED keeps CRASHED)
    3. no drift → prior state
    """
    if prior.state is None:
        return None

    prior_desired = normalize_state(prior.desired_state)
    plan_desired = normalize_state(plan.desired_state)

    if prior_desired != plan_desired:
        return None

    current = prior.state
    if plan_desired is None or current == plan_desired:
        return current

    if current == AppState.CRASHED and plan_desired == DesiredState.STOPPED:
        return current

    return plan_desired
