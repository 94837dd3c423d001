"""Reconciliation decisions - pure functions, no I/O.

select_action: desired x observed -> Action
restart_required: prior/new restart triggers x observed -> bool
is_drift: desired vs observed, with the crashed/stopped equivalence
"""

from appctl.core.domain.app import Action, AppState, DesiredState, normalize_state


def select_action(desired: str | None, observed: str | None) -> Action:
    """Action that converges observed to desired.

    | desired | observed | action |
    |---------|----------|--------|
    | RUNNING | RUNNING  | NONE   |
    | RUNNING | STOPPED  | START  |
    | RUNNING | CRASHED  | START  |
    | STOPPED | RUNNING  | STOP   |
    | STOPPED | STOPPED  | NONE   |
    | STOPPED | CRASHED  | NONE   |
    | *       | other    | NONE   |

    Comparison is case-insensitive. Unmodeled observed states (DEPLOYING,
    STOPPING, ...) never trigger an action.
    """
    want = normalize_state(desired)
    have = normalize_state(observed)

    match (want, have):
        case (DesiredState.RUNNING, AppState.STOPPED | AppState.CRASHED):
            return Action.START
        case (DesiredState.STOPPED, AppState.RUNNING):
            return Action.STOP
        case _:
            return Action.NONE


def restart_required(
    prior: dict[str, str] | None,
    new: dict[str, str] | None,
    observed: str | None,
) -> bool:
    """Whether a restart-trigger change warrants stop+start.

    Only a change between two present maps counts; adding or removing the
    whole map establishes or drops the baseline. A stopped (or otherwise
    not running) app is never restarted.
    """
    if prior is None or new is None:
        return False
    if prior == new:
        return False
    return normalize_state(observed) == AppState.RUNNING


def is_drift(desired: str | None, observed: str | None) -> bool:
    """Observed state disagrees with a declared desired state.

    CRASHED satisfies a STOPPED desire.
    """
    want = normalize_state(desired)
    have = normalize_state(observed)
    if not want or want == have:
        return False
    if want == DesiredState.STOPPED and have == AppState.CRASHED:
        return False
    return True
