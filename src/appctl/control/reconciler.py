"""Desired-state reconciliation and trigger-driven restart.

One-shot converge-or-fail: each action is a single act-and-wait call
bounded by the caller's timeout. Nothing here retries or re-queries; the
controller re-queries after reconciliation.
"""

import logging
import time

from appctl.app.metrics.collector import DRIFT_DETECTED_TOTAL, RECONCILE_ACTION_TOTAL
from appctl.control.judge import select_action
from appctl.core.diagnostics import Diagnostics
from appctl.core.domain.app import Action, normalize_state
from appctl.core.errors import RestartPhaseError, StateActionError
from appctl.core.interfaces.remote import RemoteClient
from appctl.core.logging_schema import Component, LogEvent

logger = logging.getLogger(__name__)

DRIFT_WARNING = "App State Externally Changed"


async def _run_action(
    client: RemoteClient, name: str, action: Action, timeout: float, source: str
) -> None:
    """Issue one start/stop act-and-wait call; metrics and logs only, errors propagate."""
    logger.info(
        "%s %s",
        action.method,
        name,
        extra={
            "event": LogEvent.ACTION_STARTED,
            "component": Component.RECONCILER,
            "app": name,
            "action": action,
            "source": source,
            "timeout_s": timeout,
        },
    )
    start = time.monotonic()
    try:
        await client.call_and_wait(action.method, name, timeout=timeout)
    except Exception as exc:
        RECONCILE_ACTION_TOTAL.labels(action=action, source=source, status="error").inc()
        logger.warning(
            "%s %s failed: %s",
            action.method,
            name,
            exc,
            extra={
                "event": LogEvent.ACTION_FAILED,
                "component": Component.RECONCILER,
                "app": name,
                "action": action,
                "source": source,
            },
        )
        raise

    RECONCILE_ACTION_TOTAL.labels(action=action, source=source, status="success").inc()
    logger.info(
        "%s %s succeeded",
        action.method,
        name,
        extra={
            "event": LogEvent.ACTION_SUCCEEDED,
            "component": Component.RECONCILER,
            "app": name,
            "action": action,
            "source": source,
            "duration_ms": (time.monotonic() - start) * 1000,
        },
    )


async def reconcile_desired_state(
    client: RemoteClient,
    name: str,
    prior_desired: str | None,
    desired: str | None,
    observed: str | None,
    timeout: float,
    diagnostics: Diagnostics,
) -> Action:
    """Converge observed state to desired state.

    When intent is unchanged (prior_desired == desired) any action corrects
    drift, so a drift warning is added before acting.

    Returns:
        The action taken (Action.NONE when already converged: zero calls)

    Raises:
        StateActionError: The start/stop call failed
    """
    action = select_action(desired, observed)
    if action == Action.NONE:
        return action

    if normalize_state(prior_desired) == normalize_state(desired):
        DRIFT_DETECTED_TOTAL.labels(operation="update").inc()
        logger.warning(
            "App state changed outside of management",
            extra={
                "event": LogEvent.DRIFT_DETECTED,
                "component": Component.RECONCILER,
                "app": name,
                "desired": normalize_state(desired),
                "observed": observed,
            },
        )
        diagnostics.add_warning(
            DRIFT_WARNING,
            f"App {name!r} was {observed} but desired_state is {normalize_state(desired)}; "
            f"issuing {action.method} to reconcile.",
        )

    try:
        await _run_action(client, name, action, timeout, source="reconcile")
    except Exception as exc:
        raise StateActionError(action, name, exc) from exc
    return action


async def restart_app(client: RemoteClient, name: str, timeout: float) -> None:
    """Restart as stop then start; each phase capped by `timeout`.

    Raises:
        RestartPhaseError: phase=STOP (start not attempted) or phase=START
    """
    logger.info(
        "Restart triggers changed, restarting %s",
        name,
        extra={
            "event": LogEvent.RESTART_TRIGGERED,
            "component": Component.RECONCILER,
            "app": name,
        },
    )
    for phase in (Action.STOP, Action.START):
        try:
            await _run_action(client, name, phase, timeout, source="restart")
        except Exception as exc:
            raise RestartPhaseError(phase, name, exc) from exc
