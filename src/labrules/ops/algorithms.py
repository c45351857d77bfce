"""
Algorithm operations.

CRUD over stored validation algorithms plus the two ways of deriving a new
one: duplicating an existing algorithm and instantiating a catalog template.
"""

from __future__ import annotations

import copy
from typing import Any

from labrules.core.catalog import build_algorithm_from_template
from labrules.core.logging import get_logger
from labrules.core.models import Algorithm, AlgorithmAction
from labrules.core.repositories import AlgorithmRepository, WorkflowRepository
from labrules.core.timestamps import is_valid_id
from labrules.ops._helpers import failed
from labrules.ops.context import OperationContext
from labrules.ops.requests import (
    CreateAlgorithmRequest,
    CreateFromTemplateRequest,
    DeleteAlgorithmRequest,
    DuplicateAlgorithmRequest,
    GetAlgorithmRequest,
    ListAlgorithmsRequest,
    SaveAlgorithmRequest,
    UpdateAlgorithmRequest,
)
from labrules.ops.responses import AlgorithmSummary, DeleteResult
from labrules.ops.result import OperationResult, PagedResult, start_timer

logger = get_logger(__name__)


def _algo_repo(ctx: OperationContext) -> AlgorithmRepository:
    return AlgorithmRepository(ctx.store)


def _not_found(algorithm_id: str, timer: Any) -> OperationResult[Any]:
    return OperationResult.fail(
        "NOT_FOUND",
        f"Algorithm '{algorithm_id}' not found",
        elapsed_ms=timer.elapsed_ms,
    )


def _parse(data: dict[str, Any]) -> Algorithm:
    return Algorithm.from_dict(data).cleaned()


def list_algorithms(
    ctx: OperationContext,
    request: ListAlgorithmsRequest | None = None,
) -> PagedResult[AlgorithmSummary]:
    """List stored algorithms in creation order."""
    timer = start_timer()
    request = request or ListAlgorithmsRequest()

    try:
        algorithms, total = _algo_repo(ctx).list(
            offset=request.offset,
            limit=request.limit,
            search=request.search,
        )
        return PagedResult.from_items(
            [AlgorithmSummary.from_algorithm(a) for a in algorithms],
            total=total,
            limit=request.limit,
            offset=request.offset,
            elapsed_ms=timer.elapsed_ms,
        )
    except Exception as exc:
        return failed(exc, timer, PagedResult)


def get_algorithm(
    ctx: OperationContext,
    request: GetAlgorithmRequest,
) -> OperationResult[Algorithm]:
    """Get one algorithm with all of its parameters."""
    timer = start_timer()

    if not request.algorithm_id:
        return OperationResult.fail(
            "VALIDATION_FAILED",
            "algorithm_id is required",
            elapsed_ms=timer.elapsed_ms,
        )

    try:
        algorithm = _algo_repo(ctx).get(request.algorithm_id)
    except Exception as exc:
        return failed(exc, timer)
    if algorithm is None:
        return _not_found(request.algorithm_id, timer)
    return OperationResult.ok(algorithm, elapsed_ms=timer.elapsed_ms)


def create_algorithm(
    ctx: OperationContext,
    request: CreateAlgorithmRequest,
) -> OperationResult[Algorithm]:
    """Validate and store a new algorithm.

    Blank parameters and checks are dropped before saving.  In dry-run mode
    the cleaned algorithm is returned without being stored.
    """
    timer = start_timer()

    try:
        algorithm = _parse(request.data)
        if not request.keep_id:
            algorithm.id = None
            algorithm.created = None

        if ctx.dry_run:
            return OperationResult.ok(
                algorithm,
                elapsed_ms=timer.elapsed_ms,
                metadata={"dry_run": True},
            )

        saved = _algo_repo(ctx).create(algorithm)
    except Exception as exc:
        return failed(exc, timer)

    logger.info(
        "algorithm_created",
        algorithm_id=saved.id,
        parameters=len(saved.parameters),
        request_id=ctx.request_id,
    )
    return OperationResult.ok(saved, elapsed_ms=timer.elapsed_ms)


def update_algorithm(
    ctx: OperationContext,
    request: UpdateAlgorithmRequest,
) -> OperationResult[Algorithm]:
    """Replace a stored algorithm, keeping its creation time."""
    timer = start_timer()

    if not request.algorithm_id:
        return OperationResult.fail(
            "VALIDATION_FAILED",
            "algorithm_id is required",
            elapsed_ms=timer.elapsed_ms,
        )

    try:
        algorithm = _parse(request.data)
        algorithm.id = request.algorithm_id
        repo = _algo_repo(ctx)

        if ctx.dry_run:
            if repo.get(request.algorithm_id) is None:
                return _not_found(request.algorithm_id, timer)
            return OperationResult.ok(
                algorithm,
                elapsed_ms=timer.elapsed_ms,
                metadata={"dry_run": True},
            )

        saved = repo.update(request.algorithm_id, algorithm)
    except Exception as exc:
        return failed(exc, timer)

    if saved is None:
        return _not_found(request.algorithm_id, timer)
    logger.info("algorithm_updated", algorithm_id=saved.id, request_id=ctx.request_id)
    return OperationResult.ok(saved, elapsed_ms=timer.elapsed_ms)


def save_algorithm(
    ctx: OperationContext,
    request: SaveAlgorithmRequest,
) -> OperationResult[Algorithm]:
    """Update when the document's id names a stored algorithm, else create."""
    timer = start_timer()
    raw_id = request.data.get("id") or request.data.get("_id")
    algorithm_id = str(raw_id) if raw_id else ""

    try:
        stored = is_valid_id(algorithm_id) and _algo_repo(ctx).exists(algorithm_id)
    except Exception as exc:
        return failed(exc, timer)

    if stored:
        return update_algorithm(
            ctx, UpdateAlgorithmRequest(algorithm_id=algorithm_id, data=request.data)
        )
    data = {k: v for k, v in request.data.items() if k not in ("id", "_id")}
    return create_algorithm(ctx, CreateAlgorithmRequest(data=data))


def delete_algorithm(
    ctx: OperationContext,
    request: DeleteAlgorithmRequest,
) -> OperationResult[DeleteResult]:
    """Delete an algorithm.

    Workflows that still reference it are left untouched and reported as
    warnings; running them later logs the missing algorithm.
    """
    timer = start_timer()

    if not request.algorithm_id:
        return OperationResult.fail(
            "VALIDATION_FAILED",
            "algorithm_id is required",
            elapsed_ms=timer.elapsed_ms,
        )

    try:
        repo = _algo_repo(ctx)
        if repo.get(request.algorithm_id) is None:
            return _not_found(request.algorithm_id, timer)

        referencing = WorkflowRepository(ctx.store).referencing(request.algorithm_id)
        warnings = [
            f"Algorithm is still used by workflow '{wf.name}' ({wf.id})" for wf in referencing
        ]
        referenced_by = [wf.id or "" for wf in referencing]

        if ctx.dry_run:
            return OperationResult.ok(
                DeleteResult(
                    id=request.algorithm_id,
                    deleted=False,
                    dry_run=True,
                    referenced_by=referenced_by,
                ),
                warnings=warnings,
                elapsed_ms=timer.elapsed_ms,
            )

        deleted = repo.delete(request.algorithm_id)
    except Exception as exc:
        return failed(exc, timer)

    logger.info(
        "algorithm_deleted",
        algorithm_id=request.algorithm_id,
        referenced_by=len(referenced_by),
        request_id=ctx.request_id,
    )
    return OperationResult.ok(
        DeleteResult(id=request.algorithm_id, deleted=deleted, referenced_by=referenced_by),
        warnings=warnings,
        elapsed_ms=timer.elapsed_ms,
    )


def duplicate_algorithm(
    ctx: OperationContext,
    request: DuplicateAlgorithmRequest,
) -> OperationResult[Algorithm]:
    """Store a copy of an algorithm under a new id."""
    timer = start_timer()

    try:
        source = _algo_repo(ctx).get(request.algorithm_id)
    except Exception as exc:
        return failed(exc, timer)
    if source is None:
        return _not_found(request.algorithm_id, timer)

    data = copy.deepcopy(source.to_dict())
    data.pop("id", None)
    data.pop("created", None)
    data.pop("last_modified", None)
    data["name"] = (request.name or "").strip() or f"{source.name} (Copy)"
    if request.description is not None:
        data["description"] = request.description

    result = create_algorithm(ctx, CreateAlgorithmRequest(data=data))
    if result.success:
        result.metadata["source_id"] = source.id
    return result


def create_from_template(
    ctx: OperationContext,
    request: CreateFromTemplateRequest,
) -> OperationResult[Algorithm]:
    """Store a new algorithm seeded from a catalog template."""
    timer = start_timer()

    try:
        action = AlgorithmAction(str(request.action or "validate").lower())
    except ValueError:
        return OperationResult.fail(
            "VALIDATION_FAILED",
            f"Invalid action '{request.action}'",
            details={"field": "action"},
            elapsed_ms=timer.elapsed_ms,
        )

    try:
        algorithm = build_algorithm_from_template(
            request.template_key,
            name=request.name,
            description=request.description,
            action=action,
        )
    except Exception as exc:
        return failed(exc, timer)

    result = create_algorithm(ctx, CreateAlgorithmRequest(data=algorithm.to_dict()))
    if result.success:
        result.metadata["template"] = request.template_key
    return result
