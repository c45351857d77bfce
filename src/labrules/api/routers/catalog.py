"""
Catalog router: the read-only building blocks of the algorithm builder.

GET /catalog/parameters
GET /catalog/global-parameters
GET /catalog/templates
GET /catalog/templates/{template_key}
"""

from __future__ import annotations

from fastapi import APIRouter, Path, Query

from labrules.api.deps import OpContext
from labrules.api.schemas.common import PagedResponse, SuccessResponse
from labrules.api.schemas.domains import (
    GlobalParameterSchema,
    ParameterDefinitionSchema,
    TemplateSchema,
    TemplateSummarySchema,
)
from labrules.api.utils import _dc, _handle_error, _page_meta

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("/parameters", response_model=PagedResponse[ParameterDefinitionSchema])
def list_parameter_definitions(
    ctx: OpContext,
    scope: str | None = Query(None, description="global or specific; omit for both"),
    category: str | None = Query(None, description="Filter by category, e.g. Biochemistry"),
):
    """List the checks that can be attached to a parameter.

    Example:
        GET /api/catalog/parameters?scope=specific

        Response:
        {
            "data": [
                {"name": "result", "label": "Result", "type": "range",
                 "default_config": {"type": "range", "min": 0, "max": 100, "required": false},
                 "is_global": false, "category": "General"},
                ...
            ]
        }
    """
    from labrules.ops.catalog import list_parameter_definitions as _list
    from labrules.ops.requests import ListParameterDefinitionsRequest

    result = _list(ctx, ListParameterDefinitionsRequest(scope=scope, category=category))
    if not result.success:
        return _handle_error(result)
    return PagedResponse(
        data=[ParameterDefinitionSchema(**_dc(d)) for d in (result.data or [])],
        page=_page_meta(result),
        elapsed_ms=result.elapsed_ms,
    )


@router.get("/global-parameters", response_model=PagedResponse[GlobalParameterSchema])
def list_global_parameters(ctx: OpContext):
    """Context values every algorithm carries (patient age, gender, questionnaire)."""
    from labrules.ops.catalog import list_global_parameters as _list

    result = _list(ctx)
    if not result.success:
        return _handle_error(result)
    return PagedResponse(
        data=[GlobalParameterSchema(**_dc(g)) for g in (result.data or [])],
        page=_page_meta(result),
        elapsed_ms=result.elapsed_ms,
    )


@router.get("/templates", response_model=PagedResponse[TemplateSummarySchema])
def list_templates(ctx: OpContext):
    from labrules.ops.catalog import list_templates as _list

    result = _list(ctx)
    if not result.success:
        return _handle_error(result)
    return PagedResponse(
        data=[TemplateSummarySchema(**_dc(t)) for t in (result.data or [])],
        page=_page_meta(result),
        elapsed_ms=result.elapsed_ms,
    )


@router.get("/templates/{template_key}", response_model=SuccessResponse[TemplateSchema])
def get_template(ctx: OpContext, template_key: str = Path(..., description="Template key")):
    from labrules.ops.catalog import get_template as _get
    from labrules.ops.requests import GetTemplateRequest

    result = _get(ctx, GetTemplateRequest(key=template_key))
    if not result.success:
        return _handle_error(result, instance=f"/catalog/templates/{template_key}")
    return SuccessResponse(data=TemplateSchema(**_dc(result.data)), elapsed_ms=result.elapsed_ms)
