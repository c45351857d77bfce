"""Helpers the routers share for turning ops results into responses."""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from typing import Any

from fastapi.responses import JSONResponse

from labrules.api.middleware.errors import problem_response, status_for_error_code
from labrules.api.schemas.common import PageMeta
from labrules.ops.result import OperationResult, PagedResult


def _dc(obj: Any) -> dict[str, Any]:
    """Plain dict for a schema constructor.

    Domain models go through their own ``to_dict`` so enums and datetimes
    arrive as strings.
    """
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if is_dataclass(obj):
        return asdict(obj)
    return obj if isinstance(obj, dict) else {}


def _handle_error(result: OperationResult, instance: str = "") -> JSONResponse:
    """Problem Details response for a failed result."""
    error = result.error
    if error is None:
        return problem_response(status=500, title="Operation failed", code="INTERNAL", instance=instance)
    field = error.details.get("field")
    return problem_response(
        status=status_for_error_code(error.code),
        title=error.message,
        code=error.code,
        instance=instance,
        errors=[{"code": error.code, "message": error.message, "field": field}] if field else [],
    )


def _page_meta(result: PagedResult) -> PageMeta:
    return PageMeta.from_result(total=result.total, limit=result.limit or 50, offset=result.offset)
