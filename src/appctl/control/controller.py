"""AppController - lifecycle orchestration for one managed app.

Operations (invoked by the host, one at a time per resource):
- create: app.create → query → reconcile desired_state → re-query
- read:   query → resolve defaults/drift (never starts/stops)
- update: app.update (if compose changed) → query → restart triggers
          → reconcile desired_state → re-query
- delete: app.delete
- import_state: seed id/name; the next read fills the rest
- plan:   normalize plan values and predict the computed state

Every operation returns a LifecycleResult. Failures become error
diagnostics here and nowhere below; on error no state is returned.
"""

import logging
import time
from collections.abc import Awaitable, Callable

import yaml
from pydantic import BaseModel, Field

from appctl.app.config import Settings, get_settings
from appctl.app.logging import (
    clear_trace_context,
    get_trace_id,
    reset_operation_context,
    set_operation_context,
    set_trace_id,
)
from appctl.app.metrics.collector import (
    DRIFT_DETECTED_TOTAL,
    LIFECYCLE_OPERATION_DURATION,
    LIFECYCLE_OPERATION_TOTAL,
)
from appctl.control.judge import restart_required
from appctl.control.planner import normalize_plan, predict_state
from appctl.control.query import query_app
from appctl.control.reconciler import DRIFT_WARNING, reconcile_desired_state, restart_app
from appctl.control.resolver import resolve_refresh
from appctl.core.compose import compose_equal, render_compose
from appctl.core.diagnostics import Diagnostics
from appctl.core.domain.app import Action
from appctl.core.errors import (
    AppCtlError,
    AppNotFoundError,
    AppQueryError,
    ConfigRenderError,
    InvalidPlanError,
    RemoteCallError,
)
from appctl.core.interfaces.remote import RemoteClient
from appctl.core.logging_schema import Component, LogEvent
from appctl.core.models import AppRecord, AppResourceModel

logger = logging.getLogger(__name__)


class LifecycleResult(BaseModel):
    """Outcome of one lifecycle operation.

    Attributes:
        state: State to persist (None on error, on delete, or when removed)
        removed: Remote app confirmed absent; host drops the resource
        diagnostics: Errors and warnings for the host
    """

    state: AppResourceModel | None = None
    removed: bool = False
    diagnostics: Diagnostics = Field(default_factory=Diagnostics)


class AppController:
    """Translates desired app configuration into remote calls."""

    def __init__(self, client: RemoteClient, settings: Settings | None = None) -> None:
        self._client = client
        self._settings = settings or get_settings()

    @property
    def _default_timeout(self) -> int:
        return self._settings.reconcile.default_state_timeout

    # =========================================================================
    # Operations
    # =========================================================================

    async def create(self, plan: AppResourceModel) -> LifecycleResult:
        return await self._run("create", plan.name, lambda r: self._create(plan, r))

    async def read(self, prior: AppResourceModel) -> LifecycleResult:
        return await self._run("read", prior.name, lambda r: self._read(prior, r))

    async def update(
        self, prior: AppResourceModel, plan: AppResourceModel
    ) -> LifecycleResult:
        return await self._run("update", plan.name, lambda r: self._update(prior, plan, r))

    async def delete(self, prior: AppResourceModel) -> LifecycleResult:
        return await self._run("delete", prior.name, lambda r: self._delete(prior, r))

    async def import_state(self, import_id: str) -> LifecycleResult:
        """Seed state from an import id (the app name)."""
        result = LifecycleResult()
        import_id = import_id.strip()
        if not import_id:
            err = InvalidPlanError("Invalid Import ID", "Import ID must be the app name")
            result.diagnostics.add_error(err.summary, err.message)
            return result
        result.state = AppResourceModel(id=import_id, name=import_id)
        return result

    def plan(
        self, prior: AppResourceModel | None, plan: AppResourceModel
    ) -> LifecycleResult:
        """Normalize plan values; predict `state` when a prior state exists."""
        normalized, diagnostics = normalize_plan(plan, self._default_timeout)
        result = LifecycleResult(diagnostics=diagnostics)
        if diagnostics.has_error():
            return result

        if prior is None:
            result.state = normalized.model_copy(update={"id": None, "state": None})
        else:
            result.state = normalized.model_copy(
                update={"id": prior.id, "state": predict_state(prior, normalized)}
            )
        return result

    # =========================================================================
    # Steps
    # =========================================================================

    async def _create(self, plan: AppResourceModel, result: LifecycleResult) -> None:
        plan = self._validated(plan, result)
        if plan is None:
            return
        name = plan.name

        params: dict = {"app_name": name, "custom_app": plan.custom_app}
        if plan.compose_config is not None:
            params["custom_compose_config_string"] = plan.compose_config
        await self._call("Unable to Create App", "app.create", name, params)

        record = await self._query_after(name, "Create")
        state = plan.model_copy(update={"id": record.name, "state": record.state})

        action = await reconcile_desired_state(
            self._client,
            name,
            None,
            plan.desired_state,
            record.state,
            plan.state_timeout or self._default_timeout,
            result.diagnostics,
        )
        if action != Action.NONE:
            record = await self._query_after(name, "Create")
            state = state.model_copy(update={"state": record.state})

        result.state = state

    async def _read(self, prior: AppResourceModel, result: LifecycleResult) -> None:
        name = prior.name
        record = await query_app(self._client, name)
        if record is None:
            logger.info(
                "App %s no longer exists, removing from state",
                name,
                extra={"event": LogEvent.APP_REMOVED, "component": Component.CONTROLLER, "app": name},
            )
            result.removed = True
            return

        resolution = resolve_refresh(
            prior.desired_state, prior.state_timeout, record.state, self._default_timeout
        )
        if resolution.drift:
            DRIFT_DETECTED_TOTAL.labels(operation="read").inc()
            logger.warning(
                "App state changed outside of management",
                extra={
                    "event": LogEvent.DRIFT_DETECTED,
                    "component": Component.CONTROLLER,
                    "app": name,
                    "desired": resolution.desired_state,
                    "observed": record.state,
                },
            )
            result.diagnostics.add_warning(
                DRIFT_WARNING,
                f"App {name!r} is {record.state} but desired_state is "
                f"{resolution.desired_state}. The next apply will reconcile it.",
            )

        result.state = prior.model_copy(
            update={
                "id": record.name,
                "state": record.state,
                "custom_app": record.custom_app,
                "compose_config": self._compose_from_record(prior, record),
                "desired_state": resolution.desired_state,
                "state_timeout": resolution.state_timeout,
            }
        )

    async def _update(
        self, prior: AppResourceModel, plan: AppResourceModel, result: LifecycleResult
    ) -> None:
        plan = self._validated(plan, result)
        if plan is None:
            return
        name = plan.name
        timeout = plan.state_timeout or self._default_timeout

        if plan.compose_config is not None and not compose_equal(
            prior.compose_config, plan.compose_config
        ):
            await self._call(
                "Unable to Update App",
                "app.update",
                name,
                [name, {"custom_compose_config_string": plan.compose_config}],
            )

        record = await self._query_after(name, "Update")
        observed = record.state

        if restart_required(prior.restart_triggers, plan.restart_triggers, observed):
            await restart_app(self._client, name, timeout)
            record = await self._query_after(name, "Update")
            observed = record.state

        action = await reconcile_desired_state(
            self._client,
            name,
            prior.desired_state,
            plan.desired_state,
            observed,
            timeout,
            result.diagnostics,
        )
        if action != Action.NONE:
            record = await self._query_after(name, "Update")

        result.state = plan.model_copy(
            update={"id": record.name, "state": record.state}
        )

    async def _delete(self, prior: AppResourceModel, result: LifecycleResult) -> None:
        await self._call("Unable to Delete App", "app.delete", prior.name, prior.name)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _validated(
        self, plan: AppResourceModel, result: LifecycleResult
    ) -> AppResourceModel | None:
        normalized, diagnostics = normalize_plan(plan, self._default_timeout)
        result.diagnostics.extend(diagnostics)
        if diagnostics.has_error():
            return None
        return normalized

    async def _call(self, summary: str, method: str, name: str, params: object) -> None:
        """Act-and-wait lifecycle call; the response body is not meaningful."""
        try:
            await self._client.call_and_wait(method, params)
        except Exception as exc:
            raise RemoteCallError(summary, method, name, exc) from exc

    async def _query_after(self, name: str, step: str) -> AppRecord:
        """Query that must find the app (after create/update)."""
        try:
            record = await query_app(self._client, name)
        except AppQueryError as exc:
            raise exc.following(step) from exc.cause
        if record is None:
            raise AppNotFoundError(name, summary=f"App Not Found After {step}")
        return record

    def _compose_from_record(self, prior: AppResourceModel, record: AppRecord) -> str | None:
        """Remote config as YAML; the prior string is kept when semantically equal."""
        try:
            rendered = render_compose(record.config)
        except yaml.YAMLError as exc:
            raise ConfigRenderError(record.name, exc) from exc
        if rendered is not None and prior.compose_config is not None:
            if compose_equal(prior.compose_config, rendered):
                return prior.compose_config
        return rendered

    async def _run(
        self,
        operation: str,
        name: str,
        step: Callable[[LifecycleResult], Awaitable[None]],
    ) -> LifecycleResult:
        """Run one lifecycle step with tracing, metrics and error conversion."""
        # HTTP requests already carry a trace id
        owns_trace = get_trace_id() is None
        if owns_trace:
            set_trace_id()
        context = set_operation_context(operation, name)
        start = time.monotonic()
        result = LifecycleResult()
        logger.info(
            "%s %s",
            operation,
            name,
            extra={
                "event": LogEvent.LIFECYCLE_STARTED,
                "component": Component.CONTROLLER,
                "operation": operation,
                "app": name,
            },
        )

        try:
            try:
                await step(result)
            except AppCtlError as exc:
                result.state = None
                result.diagnostics.add_error(exc.summary, exc.message)

            duration = time.monotonic() - start
            duration_ms = duration * 1000
            status = "error" if result.diagnostics.has_error() else "success"
            LIFECYCLE_OPERATION_TOTAL.labels(operation=operation, status=status).inc()
            LIFECYCLE_OPERATION_DURATION.labels(operation=operation).observe(duration)

            extra = {
                "component": Component.CONTROLLER,
                "operation": operation,
                "app": name,
                "duration_ms": duration_ms,
            }
            if status == "error":
                logger.warning(
                    "%s %s failed: %s",
                    operation,
                    name,
                    "; ".join(d.summary for d in result.diagnostics.errors()),
                    extra={**extra, "event": LogEvent.LIFECYCLE_FAILED},
                )
            else:
                logger.info(
                    "%s %s complete",
                    operation,
                    name,
                    extra={**extra, "event": LogEvent.LIFECYCLE_COMPLETE},
                )

            if duration_ms > self._settings.logging.slow_threshold_ms:
                logger.warning(
                    "Slow %s: %.0fms",
                    operation,
                    duration_ms,
                    extra={**extra, "event": LogEvent.LIFECYCLE_SLOW},
                )
            return result
        finally:
            reset_operation_context(context)
            if owns_trace:
                clear_trace_context()
