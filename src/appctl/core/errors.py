"""Error handling module for app-controller.

This module defines error codes, exception classes, and response models.
Lifecycle operations convert these exceptions into error diagnostics, using
each exception's ``summary`` as the diagnostic summary.

Error Response Format:
{
    "error": {
        "code": "APP_NOT_FOUND",
        "message": "App 'web' was not found after create"
    }
}

Usage:
    from appctl.core.errors import AppNotFoundError, StateActionError

    raise AppNotFoundError("web", summary="App Not Found After Create")
    raise StateActionError(Action.START, "web", cause=exc)
"""

from enum import Enum, StrEnum

from pydantic import BaseModel

from appctl.core.domain.app import Action


class ErrorCode(str, Enum):
    """Error codes."""

    APP_QUERY_FAILED = "APP_QUERY_FAILED"
    APP_RESPONSE_INVALID = "APP_RESPONSE_INVALID"
    APP_NOT_FOUND = "APP_NOT_FOUND"
    APP_ACTION_FAILED = "APP_ACTION_FAILED"
    APP_RESTART_FAILED = "APP_RESTART_FAILED"
    APP_CALL_FAILED = "APP_CALL_FAILED"
    CONFIG_RENDER_FAILED = "CONFIG_RENDER_FAILED"
    INVALID_PLAN = "INVALID_PLAN"


class QueryStep(StrEnum):
    """Step at which an app query failed."""

    TRANSPORT = "transport"
    DECODE = "decode"


class ErrorDetail(BaseModel):
    """Error detail containing code and message."""

    code: str
    message: str


class ErrorResponse(BaseModel):
    """Error response format."""

    error: ErrorDetail


class AppCtlError(Exception):
    """Base exception for app-controller.

    Attributes:
        code: The error code from ErrorCode enum
        message: Human-readable error message
        status_code: HTTP status code to return
        summary: Diagnostic summary reported to the host
    """

    summary = "App Controller Error"

    def __init__(self, code: ErrorCode, message: str, status_code: int = 500) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert exception to ErrorResponse model."""
        return ErrorResponse(
            error=ErrorDetail(code=self.code.value, message=self.message)
        )


class AppQueryError(AppCtlError):
    """app.query failed, either in transport or while decoding the result.

    `after` names the lifecycle step the query followed ("Create", "Update");
    a transport failure then reports "Unable to Query App After <step>".
    """

    def __init__(
        self, name: str, step: QueryStep, cause: Exception, after: str | None = None
    ) -> None:
        self.name = name
        self.step = step
        self.cause = cause
        self.after = after
        if step == QueryStep.DECODE:
            code = ErrorCode.APP_RESPONSE_INVALID
            message = f"Unable to parse app query response for {name!r}: {cause}"
        elif after:
            code = ErrorCode.APP_QUERY_FAILED
            message = f"Unable to query app {name!r} after {after.lower()}: {cause}"
        else:
            code = ErrorCode.APP_QUERY_FAILED
            message = f"Unable to read app {name!r}: {cause}"
        super().__init__(code, message, 502)

    def following(self, after: str) -> "AppQueryError":
        """Same failure, reported as the query following `after`."""
        return AppQueryError(self.name, self.step, self.cause, after=after)

    @property
    def summary(self) -> str:  # type: ignore[override]
        if self.step == QueryStep.DECODE:
            return "Unable to Parse App Response"
        if self.after:
            return f"Unable to Query App After {self.after}"
        return "Unable to Read App"


class AppNotFoundError(AppCtlError):
    """App missing when it was expected to exist (e.g. right after create)."""

    def __init__(self, name: str, summary: str = "App Not Found") -> None:
        self.name = name
        self.summary = summary
        super().__init__(ErrorCode.APP_NOT_FOUND, f"App {name!r} was not found", 404)


class StateActionError(AppCtlError):
    """Start or stop failed while converging to the desired state."""

    def __init__(self, action: Action, name: str, cause: Exception) -> None:
        self.action = action
        self.name = name
        self.cause = cause
        verb = "start" if action == Action.START else "stop"
        super().__init__(
            ErrorCode.APP_ACTION_FAILED,
            f"Unable to {verb} app {name!r}: {cause}",
            502,
        )

    @property
    def summary(self) -> str:  # type: ignore[override]
        return "Unable to Start App" if self.action == Action.START else "Unable to Stop App"


class RestartPhaseError(AppCtlError):
    """One phase of a trigger-driven restart failed.

    STOP failure: the app may still be running.
    START failure after a successful stop: the app is down.
    """

    def __init__(self, phase: Action, name: str, cause: Exception) -> None:
        self.phase = phase
        self.name = name
        self.cause = cause
        verb = "start" if phase == Action.START else "stop"
        super().__init__(
            ErrorCode.APP_RESTART_FAILED,
            f"Unable to {verb} app {name!r} for restart: {cause}",
            502,
        )

    @property
    def summary(self) -> str:  # type: ignore[override]
        if self.phase == Action.START:
            return "Unable to Start App for Restart"
        return "Unable to Stop App for Restart"


class InvalidPlanError(AppCtlError):
    """422 Unprocessable - plan values failed validation."""

    def __init__(self, summary: str, message: str) -> None:
        self.summary = summary
        super().__init__(ErrorCode.INVALID_PLAN, message, 422)


class RemoteCallError(AppCtlError):
    """A lifecycle call (app.create / app.update / app.delete) failed."""

    def __init__(self, summary: str, method: str, name: str, cause: Exception) -> None:
        self.summary = summary
        self.method = method
        self.name = name
        self.cause = cause
        verb = method.rsplit(".", 1)[-1]
        super().__init__(
            ErrorCode.APP_CALL_FAILED,
            f"Unable to {verb} app {name!r}: {cause}",
            502,
        )


class ConfigRenderError(AppCtlError):
    """Remote compose config could not be rendered back to YAML."""

    summary = "Unable to Marshal Config"

    def __init__(self, name: str, cause: Exception) -> None:
        self.name = name
        self.cause = cause
        super().__init__(
            ErrorCode.CONFIG_RENDER_FAILED,
            f"Unable to marshal config of app {name!r} to YAML: {cause}",
        )
