"""App lifecycle endpoints invoked by the host.

Each endpoint takes the host's plan/state JSON and returns
{state, removed, diagnostics}. Lifecycle failures are reported as error
diagnostics with HTTP 200; the host decides how to surface them.
"""

from fastapi import APIRouter
from pydantic import BaseModel, Field

from appctl.app.dependencies import Controller
from appctl.control import LifecycleResult
from appctl.core.errors import InvalidPlanError
from appctl.core.models import AppResourceModel

router = APIRouter(prefix="/apps", tags=["apps"])


# =============================================================================
# Request Models
# =============================================================================


class CreateRequest(BaseModel):
    plan: AppResourceModel


class ReadRequest(BaseModel):
    state: AppResourceModel


class UpdateRequest(BaseModel):
    state: AppResourceModel
    plan: AppResourceModel


class DeleteRequest(BaseModel):
    state: AppResourceModel


class ImportRequest(BaseModel):
    id: str = Field(max_length=255)


class PlanRequest(BaseModel):
    """Plan request; `state` is absent for a resource not yet created."""

    state: AppResourceModel | None = None
    plan: AppResourceModel


# =============================================================================
# Endpoints
# =============================================================================


def _check_same_app(state: AppResourceModel, plan: AppResourceModel) -> None:
    """name is immutable; renaming is a delete + create on the host side."""
    if state.name != plan.name:
        raise InvalidPlanError(
            "Name Change Requires Replace",
            f"App name cannot change in place ({state.name!r} -> {plan.name!r})",
        )


@router.post("/create", response_model=LifecycleResult)
async def create_app(body: CreateRequest, controller: Controller) -> LifecycleResult:
    return await controller.create(body.plan)


@router.post("/read", response_model=LifecycleResult)
async def read_app(body: ReadRequest, controller: Controller) -> LifecycleResult:
    return await controller.read(body.state)


@router.post("/update", response_model=LifecycleResult)
async def update_app(body: UpdateRequest, controller: Controller) -> LifecycleResult:
    _check_same_app(body.state, body.plan)
    return await controller.update(body.state, body.plan)


@router.post("/delete", response_model=LifecycleResult)
async def delete_app(body: DeleteRequest, controller: Controller) -> LifecycleResult:
    return await controller.delete(body.state)


@router.post("/import", response_model=LifecycleResult)
async def import_app(body: ImportRequest, controller: Controller) -> LifecycleResult:
    return await controller.import_state(body.id)


@router.post("/plan", response_model=LifecycleResult)
async def plan_app(body: PlanRequest, controller: Controller) -> LifecycleResult:
    if body.state is not None:
        _check_same_app(body.state, body.plan)
    return controller.plan(body.state, body.plan)
