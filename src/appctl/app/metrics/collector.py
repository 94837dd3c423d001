"""Prometheus metrics definitions for lifecycle operations and reconciliation."""

from prometheus_client import Counter, Histogram

# =============================================================================
# Histogram Buckets
# =============================================================================

# FAST: single RPC round-trips (5ms ~ 30s)
_BUCKETS_FAST = (
    0.005, 0.01, 0.025, 0.05, 0.1,
    0.25, 0.5, 1, 2.5, 5,
    10, 30,
)

# SLOW: act-and-wait jobs bounded by state_timeout (100ms ~ 600s)
_BUCKETS_SLOW = (
    0.1, 0.5, 1, 2.5, 5,
    10, 20, 40, 80, 120,
    300, 600,
)

# =============================================================================
# Lifecycle Metrics
# =============================================================================

LIFECYCLE_OPERATION_TOTAL = Counter(
    "appctl_lifecycle_operation_total",
    "Lifecycle operations by operation and status",
    ["operation", "status"],
)

LIFECYCLE_OPERATION_DURATION = Histogram(
    "appctl_lifecycle_operation_duration_seconds",
    "Lifecycle operation duration",
    ["operation"],
    buckets=_BUCKETS_SLOW,
)

# =============================================================================
# Reconciliation Metrics
# =============================================================================

RECONCILE_ACTION_TOTAL = Counter(
    "appctl_reconcile_action_total",
    "Start/stop actions issued by reconciliation or restart",
    ["action", "source", "status"],
)

DRIFT_DETECTED_TOTAL = Counter(
    "appctl_drift_detected_total",
    "Drift detections (observed != desired)",
    ["operation"],
)

# =============================================================================
# Remote Client Metrics
# =============================================================================

REMOTE_CALL_DURATION = Histogram(
    "appctl_remote_call_duration_seconds",
    "Remote RPC duration by method",
    ["method", "mode"],
    buckets=_BUCKETS_FAST + (60, 120, 300, 600),
)

# =============================================================================
# HTTP Metrics
# =============================================================================

HTTP_REQUESTS_TOTAL = Counter(
    "appctl_http_requests_total",
    "Host API requests by method, endpoint and status",
    ["method", "endpoint", "status"],
)

HTTP_REQUEST_DURATION = Histogram(
    "appctl_http_request_duration_seconds",
    "Host API request duration",
    ["method", "endpoint"],
    buckets=_BUCKETS_SLOW,
)
