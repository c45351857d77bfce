"""
Workflow operations.

A workflow is an ordered list of algorithm ids.  Saving checks that the
name is present, that at least one algorithm is selected and that every
referenced algorithm exists; reading resolves the ids to algorithm names.
"""

from __future__ import annotations

from typing import Any

from labrules.core.logging import get_logger
from labrules.core.models import Workflow
from labrules.core.repositories import AlgorithmRepository, WorkflowRepository
from labrules.core.timestamps import to_iso8601
from labrules.ops._helpers import failed
from labrules.ops.context import OperationContext
from labrules.ops.requests import (
    CreateWorkflowRequest,
    DeleteWorkflowRequest,
    GetWorkflowRequest,
    ListWorkflowsRequest,
    UpdateWorkflowRequest,
)
from labrules.ops.responses import DeleteResult, WorkflowDetail, WorkflowStep, WorkflowSummary
from labrules.ops.result import OperationResult, PagedResult, start_timer

logger = get_logger(__name__)


def _wf_repo(ctx: OperationContext) -> WorkflowRepository:
    return WorkflowRepository(ctx.store)


def _not_found(workflow_id: str, timer: Any) -> OperationResult[Any]:
    return OperationResult.fail(
        "NOT_FOUND",
        f"Workflow '{workflow_id}' not found",
        elapsed_ms=timer.elapsed_ms,
    )


def _detail(ctx: OperationContext, workflow: Workflow) -> WorkflowDetail:
    found = AlgorithmRepository(ctx.store).get_many(workflow.algorithm_order)
    steps = [
        WorkflowStep(
            position=i,
            algorithm_id=algorithm_id,
            name=found[algorithm_id].name if algorithm_id in found else None,
            found=algorithm_id in found,
        )
        for i, algorithm_id in enumerate(workflow.algorithm_order, start=1)
    ]
    return WorkflowDetail(
        id=workflow.id or "",
        name=workflow.name,
        algorithm_order=list(workflow.algorithm_order),
        steps=steps,
        created=to_iso8601(workflow.created),
        last_modified=to_iso8601(workflow.last_modified),
    )


def _validated(
    ctx: OperationContext, data: dict[str, Any], timer: Any
) -> tuple[Workflow | None, OperationResult[Any] | None]:
    """Parse and check a workflow document; returns ``(workflow, failure)``."""
    workflow = Workflow.from_dict(data).cleaned()
    found = AlgorithmRepository(ctx.store).get_many(workflow.algorithm_order)
    missing = [a for a in workflow.algorithm_order if a not in found]
    if missing:
        return None, OperationResult.fail(
            "VALIDATION_FAILED",
            f"Unknown algorithm(s): {', '.join(missing)}",
            details={"field": "algorithm_order", "missing": missing},
            elapsed_ms=timer.elapsed_ms,
        )
    return workflow, None


def list_workflows(
    ctx: OperationContext,
    request: ListWorkflowsRequest | None = None,
) -> PagedResult[WorkflowSummary]:
    """List stored workflows in creation order."""
    timer = start_timer()
    request = request or ListWorkflowsRequest()

    try:
        workflows, total = _wf_repo(ctx).list(
            offset=request.offset,
            limit=request.limit,
            search=request.search,
        )
        return PagedResult.from_items(
            [WorkflowSummary.from_workflow(w) for w in workflows],
            total=total,
            limit=request.limit,
            offset=request.offset,
            elapsed_ms=timer.elapsed_ms,
        )
    except Exception as exc:
        return failed(exc, timer, PagedResult)


def get_workflow(
    ctx: OperationContext,
    request: GetWorkflowRequest,
) -> OperationResult[WorkflowDetail]:
    """Get a workflow with its algorithm order resolved to names."""
    timer = start_timer()

    if not request.workflow_id:
        return OperationResult.fail(
            "VALIDATION_FAILED",
            "workflow_id is required",
            elapsed_ms=timer.elapsed_ms,
        )

    try:
        workflow = _wf_repo(ctx).get(request.workflow_id)
        if workflow is None:
            return _not_found(request.workflow_id, timer)
        detail = _detail(ctx, workflow)
    except Exception as exc:
        return failed(exc, timer)

    warnings = [
        f"Algorithm '{s.algorithm_id}' at position {s.position} no longer exists"
        for s in detail.steps
        if not s.found
    ]
    return OperationResult.ok(detail, warnings=warnings, elapsed_ms=timer.elapsed_ms)


def create_workflow(
    ctx: OperationContext,
    request: CreateWorkflowRequest,
) -> OperationResult[WorkflowDetail]:
    """Validate and store a new workflow."""
    timer = start_timer()

    try:
        workflow, failure = _validated(ctx, request.data, timer)
        if failure is not None:
            return failure
        assert workflow is not None
        workflow.id = None

        if ctx.dry_run:
            return OperationResult.ok(
                _detail(ctx, workflow),
                elapsed_ms=timer.elapsed_ms,
                metadata={"dry_run": True},
            )

        saved = _wf_repo(ctx).create(workflow)
        detail = _detail(ctx, saved)
    except Exception as exc:
        return failed(exc, timer)

    logger.info(
        "workflow_created",
        workflow_id=saved.id,
        algorithms=len(saved.algorithm_order),
        request_id=ctx.request_id,
    )
    return OperationResult.ok(detail, elapsed_ms=timer.elapsed_ms)


def update_workflow(
    ctx: OperationContext,
    request: UpdateWorkflowRequest,
) -> OperationResult[WorkflowDetail]:
    """Replace a stored workflow, keeping its creation time."""
    timer = start_timer()

    if not request.workflow_id:
        return OperationResult.fail(
            "VALIDATION_FAILED",
            "workflow_id is required",
            elapsed_ms=timer.elapsed_ms,
        )

    try:
        repo = _wf_repo(ctx)
        if repo.get(request.workflow_id) is None:
            return _not_found(request.workflow_id, timer)

        workflow, failure = _validated(ctx, request.data, timer)
        if failure is not None:
            return failure
        assert workflow is not None
        workflow.id = request.workflow_id

        if ctx.dry_run:
            return OperationResult.ok(
                _detail(ctx, workflow),
                elapsed_ms=timer.elapsed_ms,
                metadata={"dry_run": True},
            )

        saved = repo.update(request.workflow_id, workflow)
        if saved is None:
            return _not_found(request.workflow_id, timer)
        detail = _detail(ctx, saved)
    except Exception as exc:
        return failed(exc, timer)

    logger.info("workflow_updated", workflow_id=saved.id, request_id=ctx.request_id)
    return OperationResult.ok(detail, elapsed_ms=timer.elapsed_ms)


def delete_workflow(
    ctx: OperationContext,
    request: DeleteWorkflowRequest,
) -> OperationResult[DeleteResult]:
    timer = start_timer()

    if not request.workflow_id:
        return OperationResult.fail(
            "VALIDATION_FAILED",
            "workflow_id is required",
            elapsed_ms=timer.elapsed_ms,
        )

    try:
        repo = _wf_repo(ctx)
        if repo.get(request.workflow_id) is None:
            return _not_found(request.workflow_id, timer)
        if ctx.dry_run:
            return OperationResult.ok(
                DeleteResult(id=request.workflow_id, deleted=False, dry_run=True),
                elapsed_ms=timer.elapsed_ms,
            )
        deleted = repo.delete(request.workflow_id)
    except Exception as exc:
        return failed(exc, timer)

    logger.info("workflow_deleted", workflow_id=request.workflow_id, request_id=ctx.request_id)
    return OperationResult.ok(
        DeleteResult(id=request.workflow_id, deleted=deleted),
        elapsed_ms=timer.elapsed_ms,
    )
