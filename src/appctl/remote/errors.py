"""Middleware error parsing.

Raw middleware errors look like:
    Process exited with status 1: [EINVAL] app_name: Invalid name
    Traceback (most recent call last): ...

parse_middleware_error() turns them into a MiddlewareError with the code,
failing field and an actionable suggestion.
"""

import re
from dataclasses import dataclass

# [CODE] at start of error message
_ERROR_CODE_RE = re.compile(r"\[([A-Z]+)\]\s*(.*)", re.DOTALL)
# field path before colon
_FIELD_RE = re.compile(r"^([\w.]+):\s*(.*)", re.DOTALL)
_PROCESS_EXIT_RE = re.compile(r"^Process exited with status \d+:\s*")
_APP_LIFECYCLE_RE = re.compile(
    r"Failed '(\w+)' action for '([^']+)' app.*(/var/log/app_lifecycle\.log)",
    re.DOTALL,
)

ERROR_SUGGESTIONS = {
    "EINVAL": "Check the configuration schema. A field may be invalid or unexpected.",
    "ENOENT": "Resource not found. It may have been deleted outside of management.",
    "EFAULT": "Container failed to start. Check compose_config and image availability.",
    "EEXIST": "Resource already exists. Import it or choose a different name.",
    "ENOTEMPTY": "Directory or dataset has children. Delete children first.",
}


@dataclass(eq=False)
class MiddlewareError(Exception):
    """Structured error from the remote middleware.

    Attributes:
        code: Error code, e.g. "EINVAL", "ENOENT", "ETIMEDOUT"
        message: Cleaned error message
        field: Field that caused the error (if reported)
        job_id: Job ID for job-related errors
        suggestion: Actionable guidance
        logs_excerpt: Job log excerpt
        app_action / app_name / log_path: Parsed from app lifecycle failures
        app_lifecycle_error: Clean error extracted from the lifecycle log
    """

    code: str
    message: str
    field: str = ""
    job_id: int | None = None
    suggestion: str = ""
    logs_excerpt: str = ""
    app_action: str = ""
    app_name: str = ""
    log_path: str = ""
    app_lifecycle_error: str = ""

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.app_lifecycle_error:
            text = self.app_lifecycle_error
        else:
            text = self.message
            if self.logs_excerpt:
                text += f"\n\nJob logs:\n{self.logs_excerpt}"
        if self.suggestion:
            text += f"\n\nSuggestion: {self.suggestion}"
        return text


def parse_middleware_error(raw: str) -> MiddlewareError:
    """Parse a raw middleware error string into a MiddlewareError."""
    cleaned = _PROCESS_EXIT_RE.sub("", raw)

    # Keep only what precedes a Python traceback
    for marker in ("\nTraceback", "Traceback (most recent call last)"):
        idx = cleaned.find(marker)
        if idx != -1:
            cleaned = cleaned[:idx].strip()

    err = MiddlewareError(code="UNKNOWN", message=cleaned)

    if m := _ERROR_CODE_RE.match(cleaned):
        err.code = m.group(1)
        err.message = m.group(2).strip()
        if fm := _FIELD_RE.match(err.message):
            err.field = fm.group(1)

    err.suggestion = ERROR_SUGGESTIONS.get(err.code, "")

    if m := _APP_LIFECYCLE_RE.search(raw):
        err.app_action, err.app_name, err.log_path = m.group(1), m.group(2), m.group(3)

    return err


def parse_app_lifecycle_log(content: str, action: str, app_name: str) -> str:
    """Extract the most recent Docker error for app/action from the lifecycle log.

    Returns "" when nothing matches.
    """
    if not content or not action or not app_name:
        return ""

    pattern = re.compile(
        rf"Failed '{re.escape(action)}' action for '{re.escape(app_name)}' app: (.+)"
    )
    matches = pattern.findall(content)
    if not matches:
        return ""

    last = matches[-1]
    # Docker output is joined with literal "\n"; the error is the last segment
    for part in reversed(last.split("\\n")):
        if part.strip():
            return part.strip()
    return last


def timeout_error(job_id: int | None, timeout: float) -> MiddlewareError:
    return MiddlewareError(
        code="ETIMEDOUT",
        message=f"Operation timed out after {timeout:g}s",
        job_id=job_id,
        suggestion="Increase the timeout or check the remote server for issues.",
    )
