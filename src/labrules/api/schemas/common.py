"""
Response envelopes shared by every router.

Successful calls answer with ``{"data": ..., "elapsed_ms": ..., "warnings": [...]}``
(listings add a ``page`` block); failures answer with an RFC 7807
:class:`ProblemDetail` whose ``code`` is the ops error code::

    {
      "type": "about:blank",
      "title": "Algorithm '65f0c1d2e3a4b5c6d7e8f901' not found",
      "status": 404,
      "code": "NOT_FOUND",
      "instance": "/api/algorithms/65f0c1d2e3a4b5c6d7e8f901",
      "errors": []
    }
"""

from __future__ import annotations

from math import ceil
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ErrorDetail(BaseModel):
    code: str
    message: str
    field: str | None = Field(default=None, description="Offending document field, if any")


class ProblemDetail(BaseModel):
    type: str = "about:blank"
    title: str
    status: int
    code: str = ""
    detail: str = ""
    instance: str = Field(default="", description="Path of the failing request")
    errors: list[ErrorDetail] = Field(default_factory=list)


class PageMeta(BaseModel):
    """Where a listing page sits in the whole result; ``page`` is 1-based."""

    total: int
    limit: int
    offset: int
    has_more: bool
    page: int = 1
    total_pages: int = 1

    @classmethod
    def from_result(cls, total: int, limit: int, offset: int) -> PageMeta:
        limit = max(limit, 1)
        return cls(
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + limit < total,
            page=offset // limit + 1,
            total_pages=max(1, ceil(total / limit)),
        )


class SuccessResponse(BaseModel, Generic[T]):
    data: T
    elapsed_ms: float = Field(default=0.0, description="Server-side processing time")
    warnings: list[str] = Field(default_factory=list)


class PagedResponse(BaseModel, Generic[T]):
    data: list[T]
    page: PageMeta
    elapsed_ms: float = Field(default=0.0, description="Server-side processing time")
    warnings: list[str] = Field(default_factory=list)
