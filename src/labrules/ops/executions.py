"""
Execution operations.

Run a stored algorithm or workflow against a patient record, persist the
report, and read reports back.  Dry-run requests validate the target and the
execution parameters without running anything.
"""

from __future__ import annotations

from typing import Any

from labrules.core.execution import ExecutionRequest
from labrules.core.logging import get_logger
from labrules.core.repositories import (
    AlgorithmRepository,
    ExecutionRepository,
    WorkflowRepository,
)
from labrules.ops._helpers import failed
from labrules.ops.context import OperationContext
from labrules.ops.requests import (
    ExecuteAlgorithmRequest,
    ExecuteWorkflowRequest,
    GetExecutionRequest,
    ListExecutionsRequest,
)
from labrules.ops.responses import ExecutionSummary
from labrules.ops.result import OperationResult, PagedResult, start_timer

logger = get_logger(__name__)


def _preview(kind: str, target_id: str, request: ExecutionRequest) -> dict[str, Any]:
    return {
        "kind": kind,
        "target_id": target_id,
        "patient_id": request.patient_id,
        "mode": request.effective_mode.value,
        "dry_run": True,
        "would_execute": True,
    }


def execute_algorithm(
    ctx: OperationContext,
    request: ExecuteAlgorithmRequest,
) -> OperationResult[dict[str, Any]]:
    """Run one algorithm and return the execution report."""
    timer = start_timer()

    try:
        execution = ExecutionRequest.from_dict(request.execution)
        algorithm = AlgorithmRepository(ctx.store).get(request.algorithm_id)
        if algorithm is None:
            return OperationResult.fail(
                "NOT_FOUND",
                f"Algorithm '{request.algorithm_id}' not found",
                elapsed_ms=timer.elapsed_ms,
            )

        if ctx.dry_run:
            return OperationResult.ok(
                _preview("algorithm", request.algorithm_id, execution),
                elapsed_ms=timer.elapsed_ms,
            )

        report = ctx.get_runner().run_algorithm(algorithm, execution)
        doc = report.to_dict()
        if request.persist:
            doc = ExecutionRepository(ctx.store).save(doc)
    except Exception as exc:
        return failed(exc, timer)

    logger.info(
        "algorithm_executed",
        algorithm_id=request.algorithm_id,
        execution_id=doc.get("id"),
        outcome=report.outcome.value,
        request_id=ctx.request_id,
    )
    return OperationResult.ok(doc, warnings=list(report.warnings), elapsed_ms=timer.elapsed_ms)


def execute_workflow(
    ctx: OperationContext,
    request: ExecuteWorkflowRequest,
) -> OperationResult[dict[str, Any]]:
    """Run every algorithm of a workflow in order."""
    timer = start_timer()

    try:
        execution = ExecutionRequest.from_dict(request.execution)
        workflow = WorkflowRepository(ctx.store).get(request.workflow_id)
        if workflow is None:
            return OperationResult.fail(
                "NOT_FOUND",
                f"Workflow '{request.workflow_id}' not found",
                elapsed_ms=timer.elapsed_ms,
            )

        algorithms = AlgorithmRepository(ctx.store).get_many(workflow.algorithm_order)
        missing = [a for a in workflow.algorithm_order if a not in algorithms]
        warnings = [f"Algorithm '{a}' not found; counted as EXPERT_REQUIRED" for a in missing]

        if ctx.dry_run:
            return OperationResult.ok(
                _preview("workflow", request.workflow_id, execution),
                warnings=warnings,
                elapsed_ms=timer.elapsed_ms,
            )

        report = ctx.get_runner().run_workflow(workflow, algorithms, execution)
        doc = report.to_dict()
        if request.persist:
            doc = ExecutionRepository(ctx.store).save(doc)
    except Exception as exc:
        return failed(exc, timer)

    logger.info(
        "workflow_executed",
        workflow_id=request.workflow_id,
        execution_id=doc.get("id"),
        outcome=report.outcome.value,
        request_id=ctx.request_id,
    )
    return OperationResult.ok(doc, warnings=warnings, elapsed_ms=timer.elapsed_ms)


def get_execution(
    ctx: OperationContext,
    request: GetExecutionRequest,
) -> OperationResult[dict[str, Any]]:
    """Get a stored execution report."""
    timer = start_timer()

    if not request.execution_id:
        return OperationResult.fail(
            "VALIDATION_FAILED",
            "execution_id is required",
            elapsed_ms=timer.elapsed_ms,
        )

    try:
        doc = ExecutionRepository(ctx.store).get(request.execution_id)
    except Exception as exc:
        return failed(exc, timer)
    if doc is None:
        return OperationResult.fail(
            "NOT_FOUND",
            f"Execution '{request.execution_id}' not found",
            elapsed_ms=timer.elapsed_ms,
        )
    return OperationResult.ok(doc, elapsed_ms=timer.elapsed_ms)


def list_executions(
    ctx: OperationContext,
    request: ListExecutionsRequest | None = None,
) -> PagedResult[ExecutionSummary]:
    """List stored execution reports, newest first."""
    timer = start_timer()
    request = request or ListExecutionsRequest()

    if request.kind is not None and request.kind not in ("algorithm", "workflow"):
        return PagedResult.fail(
            "VALIDATION_FAILED",
            f"Invalid kind '{request.kind}' (expected algorithm or workflow)",
            elapsed_ms=timer.elapsed_ms,
        )

    try:
        docs, total = ExecutionRepository(ctx.store).list(
            offset=request.offset,
            limit=request.limit,
            kind=request.kind,
            target_id=request.target_id,
            patient_id=request.patient_id,
            outcome=request.outcome,
        )
        return PagedResult.from_items(
            [ExecutionSummary.from_document(d) for d in docs],
            total=total,
            limit=request.limit,
            offset=request.offset,
            elapsed_ms=timer.elapsed_ms,
        )
    except Exception as exc:
        return failed(exc, timer, PagedResult)
