"""
Algorithm router: CRUD plus duplicate and create-from-template.

GET    /algorithms
POST   /algorithms
POST   /algorithms/from-template/{template_key}
GET    /algorithms/{algorithm_id}
PUT    /algorithms/{algorithm_id}
DELETE /algorithms/{algorithm_id}
POST   /algorithms/{algorithm_id}/duplicate
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Path, Query
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from labrules.api.deps import OpContext, Pagination
from labrules.api.schemas.common import PagedResponse, SuccessResponse
from labrules.api.schemas.domains import (
    AlgorithmSchema,
    AlgorithmSummarySchema,
    DeleteResultSchema,
)
from labrules.api.utils import _dc, _handle_error, _page_meta

router = APIRouter(prefix="/algorithms", tags=["algorithms"])


class AlgorithmBody(BaseModel):
    """Algorithm document as sent by clients (snake_case or camelCase)."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    name: str = ""
    description: str = ""
    parameters: list[dict[str, Any]] = Field(default_factory=list)
    action: str = "validate"
    global_parameters: list[dict[str, Any]] = Field(
        default_factory=list,
        validation_alias=AliasChoices("global_parameters", "globalParameters"),
    )


class DuplicateBody(BaseModel):
    name: str | None = None
    description: str | None = None


class FromTemplateBody(BaseModel):
    name: str | None = None
    description: str = ""
    action: str = "validate"


def _algorithm_response(result) -> SuccessResponse[AlgorithmSchema]:
    return SuccessResponse(
        data=AlgorithmSchema(**_dc(result.data)),
        elapsed_ms=result.elapsed_ms,
        warnings=result.warnings,
    )


@router.get("", response_model=PagedResponse[AlgorithmSummarySchema])
def list_algorithms(
    ctx: OpContext,
    pagination: Pagination,
    search: str | None = Query(None, description="Case-insensitive match on name or description"),
):
    """List algorithms in creation order.

    Example:
        GET /api/algorithms?search=blood

        Response:
        {
            "data": [{"id": "65f0...", "name": "Blood Analysis (FNS)", "parameter_count": 3, ...}],
            "page": {"total": 1, "limit": 50, "offset": 0, "has_more": false, ...}
        }
    """
    from labrules.ops.algorithms import list_algorithms as _list
    from labrules.ops.requests import ListAlgorithmsRequest

    result = _list(
        ctx,
        ListAlgorithmsRequest(search=search, limit=pagination.limit, offset=pagination.offset),
    )
    if not result.success:
        return _handle_error(result)
    return PagedResponse(
        data=[AlgorithmSummarySchema(**_dc(a)) for a in (result.data or [])],
        page=_page_meta(result),
        elapsed_ms=result.elapsed_ms,
        warnings=result.warnings,
    )


@router.post("", response_model=SuccessResponse[AlgorithmSchema], status_code=201)
def create_algorithm(ctx: OpContext, body: AlgorithmBody):
    """Create an algorithm.

    Blank parameters and blank checks are dropped before saving.

    Raises:
        400 VALIDATION_FAILED: Missing name or an invalid rule config.
    """
    from labrules.ops.algorithms import create_algorithm as _create
    from labrules.ops.requests import CreateAlgorithmRequest

    result = _create(ctx, CreateAlgorithmRequest(data=body.model_dump()))
    if not result.success:
        return _handle_error(result, instance="/algorithms")
    return _algorithm_response(result)


@router.post(
    "/from-template/{template_key}",
    response_model=SuccessResponse[AlgorithmSchema],
    status_code=201,
)
def create_from_template(
    ctx: OpContext,
    body: FromTemplateBody | None = None,
    template_key: str = Path(..., description="Template key (blood, urine, biochemistry, hematology)"),
):
    """Create an algorithm from a catalog template.

    Raises:
        404 NOT_FOUND: Unknown template key.
    """
    from labrules.ops.algorithms import create_from_template as _create
    from labrules.ops.requests import CreateFromTemplateRequest

    body = body or FromTemplateBody()
    result = _create(
        ctx,
        CreateFromTemplateRequest(
            template_key=template_key,
            name=body.name,
            description=body.description,
            action=body.action,
        ),
    )
    if not result.success:
        return _handle_error(result)
    return _algorithm_response(result)


@router.get("/{algorithm_id}", response_model=SuccessResponse[AlgorithmSchema])
def get_algorithm(ctx: OpContext, algorithm_id: str = Path(..., description="Algorithm ID")):
    """Get an algorithm with its parameters and global values.

    Raises:
        404 NOT_FOUND: No algorithm with this id.
    """
    from labrules.ops.algorithms import get_algorithm as _get
    from labrules.ops.requests import GetAlgorithmRequest

    result = _get(ctx, GetAlgorithmRequest(algorithm_id=algorithm_id))
    if not result.success:
        return _handle_error(result, instance=f"/algorithms/{algorithm_id}")
    return _algorithm_response(result)


@router.put("/{algorithm_id}", response_model=SuccessResponse[AlgorithmSchema])
def update_algorithm(
    ctx: OpContext,
    body: AlgorithmBody,
    algorithm_id: str = Path(..., description="Algorithm ID"),
):
    """Replace an algorithm.  ``created`` is preserved, ``last_modified`` bumped."""
    from labrules.ops.algorithms import update_algorithm as _update
    from labrules.ops.requests import UpdateAlgorithmRequest

    result = _update(ctx, UpdateAlgorithmRequest(algorithm_id=algorithm_id, data=body.model_dump()))
    if not result.success:
        return _handle_error(result, instance=f"/algorithms/{algorithm_id}")
    return _algorithm_response(result)


@router.delete("/{algorithm_id}", response_model=SuccessResponse[DeleteResultSchema])
def delete_algorithm(ctx: OpContext, algorithm_id: str = Path(..., description="Algorithm ID")):
    """Delete an algorithm.

    Workflows still referencing it are listed in ``referenced_by`` and in
    ``warnings``.
    """
    from labrules.ops.algorithms import delete_algorithm as _delete
    from labrules.ops.requests import DeleteAlgorithmRequest

    result = _delete(ctx, DeleteAlgorithmRequest(algorithm_id=algorithm_id))
    if not result.success:
        return _handle_error(result, instance=f"/algorithms/{algorithm_id}")
    return SuccessResponse(
        data=DeleteResultSchema(**_dc(result.data)),
        elapsed_ms=result.elapsed_ms,
        warnings=result.warnings,
    )


@router.post(
    "/{algorithm_id}/duplicate",
    response_model=SuccessResponse[AlgorithmSchema],
    status_code=201,
)
def duplicate_algorithm(
    ctx: OpContext,
    body: DuplicateBody | None = None,
    algorithm_id: str = Path(..., description="Algorithm ID"),
):
    """Copy an algorithm.  The name defaults to ``"<name> (Copy)"``."""
    from labrules.ops.algorithms import duplicate_algorithm as _duplicate
    from labrules.ops.requests import DuplicateAlgorithmRequest

    body = body or DuplicateBody()
    result = _duplicate(
        ctx,
        DuplicateAlgorithmRequest(
            algorithm_id=algorithm_id,
            name=body.name,
            description=body.description,
        ),
    )
    if not result.success:
        return _handle_error(result, instance=f"/algorithms/{algorithm_id}/duplicate")
    return _algorithm_response(result)
