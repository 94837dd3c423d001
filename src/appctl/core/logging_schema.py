"""Logging field schema - v1.0

Standard fields (added to all logs):
- schema_version: Log schema version
- service: Service name (appctl-controller)
- component: Component name (controller, reconciler, remote, api)
- event: Event type (lifecycle_complete, action_failed, etc.)
- trace_id: Per-operation trace ID
- duration_ms: Duration in milliseconds

High cardinality fields (OK in logs, NOT in metric labels):
- app: App name
- job_id: Middleware job ID
"""

from enum import StrEnum


class LogEvent(StrEnum):
    """Standard log event types.

    Use these event types in the 'event' extra field for consistent
    log filtering and analysis.
    """

    # Lifecycle events
    LIFECYCLE_STARTED = "lifecycle_started"
    LIFECYCLE_COMPLETE = "lifecycle_complete"
    LIFECYCLE_FAILED = "lifecycle_failed"
    LIFECYCLE_SLOW = "lifecycle_slow"
    APP_REMOVED = "app_removed"

    # Reconciliation events
    ACTION_STARTED = "action_started"
    ACTION_SUCCEEDED = "action_succeeded"
    ACTION_FAILED = "action_failed"
    DRIFT_DETECTED = "drift_detected"
    RESTART_TRIGGERED = "restart_triggered"

    # HTTP events
    REQUEST_COMPLETE = "request_complete"
    REQUEST_FAILED = "request_failed"
    REQUEST_SLOW = "request_slow"

    # Remote client events
    REMOTE_CONNECTED = "remote_connected"
    REMOTE_CALL_RETRY = "remote_call_retry"
    JOB_FAILED = "job_failed"
    JOB_TIMEOUT = "job_timeout"

    # Process events
    APP_STARTED = "app_started"
    APP_STOPPED = "app_stopped"


class ErrorClass(StrEnum):
    """Error classification for structured error logging."""

    TRANSIENT = "transient"  # Retryable (connection reset, temp failure)
    PERMANENT = "permanent"  # Not retryable (invalid input, not found)
    TIMEOUT = "timeout"  # Timeout error


class Component(StrEnum):
    """Component identifiers for log filtering."""

    CONTROLLER = "controller"
    RECONCILER = "reconciler"
    REMOTE = "remote"
    API = "api"
