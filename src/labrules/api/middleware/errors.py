"""
Problem Details (RFC 7807) responses.

Failed operations carry an ops error code; the API answers with the matching
HTTP status and a :class:`ProblemDetail` body.  Exceptions that escape a
router are logged and answered with a generic 500.
"""

from __future__ import annotations

from collections.abc import Iterable
from http import HTTPStatus
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from labrules.api.schemas.common import ErrorDetail, ProblemDetail
from labrules.core.logging import get_logger

logger = get_logger(__name__)

_STATUS_BY_CODE: dict[str, HTTPStatus] = {
    "VALIDATION_FAILED": HTTPStatus.BAD_REQUEST,
    "NOT_FOUND": HTTPStatus.NOT_FOUND,
    "CONFLICT": HTTPStatus.CONFLICT,
    "UNAVAILABLE": HTTPStatus.SERVICE_UNAVAILABLE,
    "INTERNAL": HTTPStatus.INTERNAL_SERVER_ERROR,
}


def status_for_error_code(code: str) -> int:
    """HTTP status for an ops error code; unknown codes are 500."""
    return int(_STATUS_BY_CODE.get(code, HTTPStatus.INTERNAL_SERVER_ERROR))


def problem_response(
    *,
    status: int,
    title: str,
    code: str = "",
    instance: str = "",
    detail: str = "",
    errors: Iterable[dict[str, Any]] = (),
) -> JSONResponse:
    body = ProblemDetail(
        title=title,
        status=status,
        code=code,
        detail=detail,
        instance=instance,
        errors=[ErrorDetail(**e) for e in errors],
    )
    return JSONResponse(status_code=status, content=body.model_dump())


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_exception", path=request.url.path, error=str(exc))
    debug = request.app.state.settings.debug
    return problem_response(
        status=int(HTTPStatus.INTERNAL_SERVER_ERROR),
        title="Internal Server Error",
        code="INTERNAL",
        instance=request.url.path,
        detail=str(exc) if debug else "An unexpected error occurred.",
    )
