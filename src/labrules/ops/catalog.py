"""
Catalog operations.

Read-only access to the parameter definitions, global parameters and
algorithm templates the algorithm builder offers.
"""

from __future__ import annotations

from labrules.core import catalog
from labrules.core.catalog import AlgorithmTemplate
from labrules.core.models import GlobalParameter, ParameterDefinition
from labrules.ops._helpers import failed
from labrules.ops.context import OperationContext
from labrules.ops.requests import GetTemplateRequest, ListParameterDefinitionsRequest
from labrules.ops.responses import TemplateSummary
from labrules.ops.result import OperationResult, PagedResult, start_timer


def list_parameter_definitions(
    ctx: OperationContext,
    request: ListParameterDefinitionsRequest | None = None,
) -> PagedResult[ParameterDefinition]:
    """List catalog checks, optionally only global or specific ones."""
    timer = start_timer()
    request = request or ListParameterDefinitionsRequest()

    if request.scope == "global":
        definitions = catalog.global_definitions()
    elif request.scope == "specific":
        definitions = catalog.specific_parameters()
    elif request.scope is None:
        definitions = catalog.global_definitions() + catalog.specific_parameters()
    else:
        return PagedResult.fail(
            "VALIDATION_FAILED",
            f"Invalid scope '{request.scope}' (expected global or specific)",
            elapsed_ms=timer.elapsed_ms,
        )

    if request.category:
        wanted = request.category.lower()
        definitions = [d for d in definitions if d.category.lower() == wanted]

    return PagedResult.from_items(
        definitions,
        total=len(definitions),
        limit=max(len(definitions), 1),
        elapsed_ms=timer.elapsed_ms,
    )


def list_global_parameters(ctx: OperationContext) -> PagedResult[GlobalParameter]:
    timer = start_timer()
    items = list(catalog.GLOBAL_PARAMETERS)
    return PagedResult.from_items(
        items, total=len(items), limit=max(len(items), 1), elapsed_ms=timer.elapsed_ms
    )


def list_templates(ctx: OperationContext) -> PagedResult[TemplateSummary]:
    timer = start_timer()
    items = [
        TemplateSummary(
            key=t.key,
            name=t.name,
            parameter_count=len(t.parameters),
            parameters=[p.name for p in t.parameters],
        )
        for t in catalog.ALGORITHM_TEMPLATES.values()
    ]
    return PagedResult.from_items(
        items, total=len(items), limit=max(len(items), 1), elapsed_ms=timer.elapsed_ms
    )


def get_template(
    ctx: OperationContext,
    request: GetTemplateRequest,
) -> OperationResult[AlgorithmTemplate]:
    """Get one template with its full parameter set."""
    timer = start_timer()
    try:
        template = catalog.get_template(request.key)
    except Exception as exc:
        return failed(exc, timer)
    return OperationResult.ok(template, elapsed_ms=timer.elapsed_ms)
