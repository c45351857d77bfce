"""
Execution router: run algorithms and workflows, read stored reports.

POST /executions/algorithms/{algorithm_id}
POST /executions/workflows/{workflow_id}
GET  /executions
GET  /executions/{execution_id}
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Path, Query
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from labrules.api.deps import OpContext, Pagination
from labrules.api.schemas.common import PagedResponse, SuccessResponse
from labrules.api.schemas.domains import ExecutionSummarySchema
from labrules.api.utils import _dc, _handle_error, _page_meta

router = APIRouter(prefix="/executions", tags=["executions"])


class ExecutionBody(BaseModel):
    """Execution parameters.

    ``mode`` defaults to ``evaluate`` when ``results`` are given and to
    ``simulate`` otherwise.
    """

    model_config = ConfigDict(extra="ignore")

    patient_id: str = Field(default="", validation_alias=AliasChoices("patient_id", "patientId"))
    data_source: str = Field(default="manual", validation_alias=AliasChoices("data_source", "dataSource"))
    analysis_type: str = Field(
        default="blood", validation_alias=AliasChoices("analysis_type", "analysisType")
    )
    mode: str | None = None
    results: dict[str, Any] = Field(default_factory=dict)
    patient: dict[str, Any] = Field(default_factory=dict)
    seed: int | None = None
    persist: bool = True


def _report_response(result) -> SuccessResponse[dict[str, Any]]:
    return SuccessResponse(
        data=result.data,
        elapsed_ms=result.elapsed_ms,
        warnings=result.warnings,
    )


@router.post("/algorithms/{algorithm_id}", response_model=SuccessResponse[dict[str, Any]])
def execute_algorithm(
    ctx: OpContext,
    body: ExecutionBody | None = None,
    algorithm_id: str = Path(..., description="Algorithm ID"),
):
    """Run one algorithm against a patient record.

    Example:
        POST /api/executions/algorithms/65f0...
        {"patientId": "P-001", "dataSource": "manual", "analysisType": "blood", "seed": 7}

        Response data holds the full report: ``outcome``, ``status``,
        ``checks``, ``logs`` and ``counts``.
    """
    from labrules.ops.executions import execute_algorithm as _execute
    from labrules.ops.requests import ExecuteAlgorithmRequest

    body = body or ExecutionBody()
    result = _execute(
        ctx,
        ExecuteAlgorithmRequest(
            algorithm_id=algorithm_id,
            execution=body.model_dump(exclude={"persist"}),
            persist=body.persist,
        ),
    )
    if not result.success:
        return _handle_error(result, instance=f"/executions/algorithms/{algorithm_id}")
    return _report_response(result)


@router.post("/workflows/{workflow_id}", response_model=SuccessResponse[dict[str, Any]])
def execute_workflow(
    ctx: OpContext,
    body: ExecutionBody | None = None,
    workflow_id: str = Path(..., description="Workflow ID"),
):
    """Run every algorithm of a workflow in order.

    The workflow is VALIDATED only when every algorithm was found and
    validated.
    """
    from labrules.ops.executions import execute_workflow as _execute
    from labrules.ops.requests import ExecuteWorkflowRequest

    body = body or ExecutionBody()
    result = _execute(
        ctx,
        ExecuteWorkflowRequest(
            workflow_id=workflow_id,
            execution=body.model_dump(exclude={"persist"}),
            persist=body.persist,
        ),
    )
    if not result.success:
        return _handle_error(result, instance=f"/executions/workflows/{workflow_id}")
    return _report_response(result)


@router.get("", response_model=PagedResponse[ExecutionSummarySchema])
def list_executions(
    ctx: OpContext,
    pagination: Pagination,
    kind: str | None = Query(None, description="algorithm or workflow"),
    target_id: str | None = Query(None, description="Algorithm or workflow ID"),
    patient_id: str | None = Query(None),
    outcome: str | None = Query(None, description="VALIDATED or EXPERT_REQUIRED"),
):
    """List stored execution reports, newest first."""
    from labrules.ops.executions import list_executions as _list
    from labrules.ops.requests import ListExecutionsRequest

    result = _list(
        ctx,
        ListExecutionsRequest(
            kind=kind,
            target_id=target_id,
            patient_id=patient_id,
            outcome=outcome,
            limit=pagination.limit,
            offset=pagination.offset,
        ),
    )
    if not result.success:
        return _handle_error(result)
    return PagedResponse(
        data=[ExecutionSummarySchema(**_dc(e)) for e in (result.data or [])],
        page=_page_meta(result),
        elapsed_ms=result.elapsed_ms,
        warnings=result.warnings,
    )


@router.get("/{execution_id}", response_model=SuccessResponse[dict[str, Any]])
def get_execution(ctx: OpContext, execution_id: str = Path(..., description="Execution ID")):
    from labrules.ops.executions import get_execution as _get
    from labrules.ops.requests import GetExecutionRequest

    result = _get(ctx, GetExecutionRequest(execution_id=execution_id))
    if not result.success:
        return _handle_error(result, instance=f"/executions/{execution_id}")
    return _report_response(result)
