"""Tests for middleware error parsing."""

from appctl.remote.errors import (
    MiddlewareError,
    parse_app_lifecycle_log,
    parse_middleware_error,
    timeout_error,
)


class TestParseMiddlewareError:
    def test_strips_process_exit_prefix(self) -> None:
        err = parse_middleware_error("Process exited with status 1: [EINVAL] app_name: Invalid name")

        assert err.code == "EINVAL"
        assert err.message == "app_name: Invalid name"
        assert err.field == "app_name"

    def test_strips_traceback(self) -> None:
        raw = (
            "[EFAULT] Failed to start\n"
            "Traceback (most recent call last):\n"
            '  File "/usr/lib/middlewared/main.py", line 1, in run\n'
        )
        err = parse_middleware_error(raw)

        assert err.code == "EFAULT"
        assert err.message == "Failed to start"
        assert "Traceback" not in str(err)

    def test_suggestions(self) -> None:
        assert "schema" in parse_middleware_error("[EINVAL] x: bad").suggestion
        assert "deleted" in parse_middleware_error("[ENOENT] gone").suggestion
        assert "compose_config" in parse_middleware_error("[EFAULT] failed").suggestion
        assert "Import" in parse_middleware_error("[EEXIST] exists").suggestion
        assert "children" in parse_middleware_error("[ENOTEMPTY] busy").suggestion

    def test_unknown_format(self) -> None:
        err = parse_middleware_error("something odd happened")

        assert err.code == "UNKNOWN"
        assert err.message == "something odd happened"
        assert err.suggestion == ""

    def test_app_lifecycle_failure(self) -> None:
        raw = (
            "[EFAULT] Failed 'up' action for 'web' app. Please check "
            "/var/log/app_lifecycle.log for more details"
        )
        err = parse_middleware_error(raw)

        assert err.app_action == "up"
        assert err.app_name == "web"
        assert err.log_path == "/var/log/app_lifecycle.log"


class TestMiddlewareErrorStr:
    def test_includes_suggestion(self) -> None:
        err = MiddlewareError(code="EINVAL", message="bad", suggestion="fix it")
        assert str(err) == "bad\n\nSuggestion: fix it"

    def test_includes_logs_excerpt(self) -> None:
        err = MiddlewareError(code="EFAULT", message="failed", logs_excerpt="pull denied")
        assert "Job logs:\npull denied" in str(err)

    def test_lifecycle_error_replaces_message(self) -> None:
        err = MiddlewareError(
            code="EFAULT",
            message="Failed 'up' action",
            logs_excerpt="noise",
            app_lifecycle_error="image not found",
        )
        assert str(err) == "image not found"


class TestParseAppLifecycleLog:
    LOG = (
        "[2026-01-01 10:00:00] Failed 'up' action for 'web' app: old error\\n\n"
        "[2026-01-01 11:00:00] Failed 'up' action for 'other' app: not ours\n"
        "[2026-01-01 12:00:00] Failed 'up' action for 'web' app: "
        "Pulling web\\nError response from daemon: manifest unknown\\n\n"
    )

    def test_last_matching_entry_last_line(self) -> None:
        assert parse_app_lifecycle_log(self.LOG, "up", "web") == "Error response from daemon: manifest unknown"

    def test_no_match(self) -> None:
        assert parse_app_lifecycle_log(self.LOG, "down", "web") == ""

    def test_empty_inputs(self) -> None:
        assert parse_app_lifecycle_log("", "up", "web") == ""
        assert parse_app_lifecycle_log(self.LOG, "", "web") == ""


def test_timeout_error() -> None:
    err = timeout_error(42, 120)

    assert err.code == "ETIMEDOUT"
    assert err.job_id == 42
    assert "120s" in err.message
