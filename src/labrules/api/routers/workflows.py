"""
Workflow router: CRUD for ordered chains of algorithms.

GET    /workflows
POST   /workflows
GET    /workflows/{workflow_id}
PUT    /workflows/{workflow_id}
DELETE /workflows/{workflow_id}
"""

from __future__ import annotations

from fastapi import APIRouter, Path, Query
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from labrules.api.deps import OpContext, Pagination
from labrules.api.schemas.common import PagedResponse, SuccessResponse
from labrules.api.schemas.domains import (
    DeleteResultSchema,
    WorkflowDetailSchema,
    WorkflowSummarySchema,
)
from labrules.api.utils import _dc, _handle_error, _page_meta

router = APIRouter(prefix="/workflows", tags=["workflows"])


class WorkflowBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    algorithm_order: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("algorithm_order", "algorithmOrder"),
    )


def _detail_response(result) -> SuccessResponse[WorkflowDetailSchema]:
    return SuccessResponse(
        data=WorkflowDetailSchema(**_dc(result.data)),
        elapsed_ms=result.elapsed_ms,
        warnings=result.warnings,
    )


@router.get("", response_model=PagedResponse[WorkflowSummarySchema])
def list_workflows(
    ctx: OpContext,
    pagination: Pagination,
    search: str | None = Query(None, description="Case-insensitive match on name"),
):
    """List workflows in creation order."""
    from labrules.ops.requests import ListWorkflowsRequest
    from labrules.ops.workflows import list_workflows as _list

    result = _list(
        ctx,
        ListWorkflowsRequest(search=search, limit=pagination.limit, offset=pagination.offset),
    )
    if not result.success:
        return _handle_error(result)
    return PagedResponse(
        data=[WorkflowSummarySchema(**_dc(w)) for w in (result.data or [])],
        page=_page_meta(result),
        elapsed_ms=result.elapsed_ms,
        warnings=result.warnings,
    )


@router.post("", response_model=SuccessResponse[WorkflowDetailSchema], status_code=201)
def create_workflow(ctx: OpContext, body: WorkflowBody):
    """Create a workflow.

    Example:
        POST /api/workflows
        {"name": "Morning panel", "algorithmOrder": ["65f0...", "65f1..."]}

    Raises:
        400 VALIDATION_FAILED: Missing name, no algorithms selected, or an
            algorithm id that does not exist.
    """
    from labrules.ops.requests import CreateWorkflowRequest
    from labrules.ops.workflows import create_workflow as _create

    result = _create(ctx, CreateWorkflowRequest(data=body.model_dump()))
    if not result.success:
        return _handle_error(result, instance="/workflows")
    return _detail_response(result)


@router.get("/{workflow_id}", response_model=SuccessResponse[WorkflowDetailSchema])
def get_workflow(ctx: OpContext, workflow_id: str = Path(..., description="Workflow ID")):
    """Get a workflow with each step resolved to its algorithm name.

    Steps whose algorithm was deleted come back with ``found: false`` and a
    warning.
    """
    from labrules.ops.requests import GetWorkflowRequest
    from labrules.ops.workflows import get_workflow as _get

    result = _get(ctx, GetWorkflowRequest(workflow_id=workflow_id))
    if not result.success:
        return _handle_error(result, instance=f"/workflows/{workflow_id}")
    return _detail_response(result)


@router.put("/{workflow_id}", response_model=SuccessResponse[WorkflowDetailSchema])
def update_workflow(
    ctx: OpContext,
    body: WorkflowBody,
    workflow_id: str = Path(..., description="Workflow ID"),
):
    from labrules.ops.requests import UpdateWorkflowRequest
    from labrules.ops.workflows import update_workflow as _update

    result = _update(ctx, UpdateWorkflowRequest(workflow_id=workflow_id, data=body.model_dump()))
    if not result.success:
        return _handle_error(result, instance=f"/workflows/{workflow_id}")
    return _detail_response(result)


@router.delete("/{workflow_id}", response_model=SuccessResponse[DeleteResultSchema])
def delete_workflow(ctx: OpContext, workflow_id: str = Path(..., description="Workflow ID")):
    from labrules.ops.requests import DeleteWorkflowRequest
    from labrules.ops.workflows import delete_workflow as _delete

    result = _delete(ctx, DeleteWorkflowRequest(workflow_id=workflow_id))
    if not result.success:
        return _handle_error(result, instance=f"/workflows/{workflow_id}")
    return SuccessResponse(
        data=DeleteResultSchema(**_dc(result.data)),
        elapsed_ms=result.elapsed_ms,
        warnings=result.warnings,
    )
