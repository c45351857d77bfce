"""
Operation result envelope.

Operations never raise to their callers.  They return an
:class:`OperationResult` (a :class:`PagedResult` for listings) that the API
turns into a response envelope or a Problem Details body, and the CLI into
terminal output.

Exceptions are folded into error codes by :func:`error_code_for`; the first
matching class wins, so ``ConflictError`` is checked before its parent
``StorageError``.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from labrules.core.errors import (
    ConflictError,
    ErrorCategory,
    LabRulesError,
    NotFoundError,
    StorageError,
    ValidationError,
)

T = TypeVar("T")

_ERROR_CODES: tuple[tuple[type[Exception], str], ...] = (
    (ValidationError, "VALIDATION_FAILED"),
    (NotFoundError, "NOT_FOUND"),
    (ConflictError, "CONFLICT"),
    (StorageError, "UNAVAILABLE"),
)


def error_code_for(exc: Exception) -> str:
    for exc_type, code in _ERROR_CODES:
        if isinstance(exc, exc_type):
            return code
    return "INTERNAL"


@dataclass(frozen=True, slots=True)
class OperationError:
    """Why an operation failed.

    ``details`` holds machine-readable context such as the offending
    ``field`` or the ``missing`` algorithm ids.
    """

    code: str
    message: str
    category: ErrorCategory | None = None
    details: dict[str, Any] = field(default_factory=dict)
    retryable: bool = False

    @classmethod
    def from_exception(cls, exc: Exception) -> OperationError:
        if not isinstance(exc, LabRulesError):
            return cls(
                code="INTERNAL",
                message=str(exc) or type(exc).__name__,
                category=ErrorCategory.INTERNAL,
            )
        details = dict(exc.context)
        if getattr(exc, "field", None):
            details["field"] = exc.field
        return cls(
            code=error_code_for(exc),
            message=exc.message,
            category=exc.category,
            details=details,
            retryable=exc.retryable,
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"code": self.code, "message": self.message, "retryable": self.retryable}
        if self.details:
            d["details"] = self.details
        return d


@dataclass
class OperationResult(Generic[T]):
    success: bool
    data: T | None = None
    error: OperationError | None = None
    warnings: list[str] = field(default_factory=list)
    elapsed_ms: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(
        cls,
        data: T,
        *,
        warnings: list[str] | None = None,
        elapsed_ms: float = 0.0,
        metadata: dict[str, Any] | None = None,
    ) -> OperationResult[T]:
        return cls(
            success=True,
            data=data,
            warnings=list(warnings or []),
            elapsed_ms=elapsed_ms,
            metadata=dict(metadata or {}),
        )

    @classmethod
    def fail(
        cls,
        code: str,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        elapsed_ms: float = 0.0,
    ) -> OperationResult[T]:
        """Failed result for a rejection detected by the operation itself."""
        return cls(
            success=False,
            error=OperationError(code=code, message=message, details=dict(details or {})),
            elapsed_ms=elapsed_ms,
        )

    @classmethod
    def from_error(cls, exc: Exception, *, elapsed_ms: float = 0.0) -> OperationResult[T]:
        """Failed result for a raised exception."""
        return cls(success=False, error=OperationError.from_exception(exc), elapsed_ms=elapsed_ms)

    def to_dict(self) -> dict[str, Any]:
        """Plain-dict form for JSON output; empty members are left out."""
        d: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            d["data"] = self.data
        optional = {
            "error": self.error.to_dict() if self.error else None,
            "warnings": self.warnings,
            "elapsed_ms": round(self.elapsed_ms, 2) if self.elapsed_ms else None,
            "metadata": self.metadata,
        }
        d.update({k: v for k, v in optional.items() if v not in (None, [], {})})
        return d


@dataclass
class PagedResult(OperationResult[list[T]]):
    """One page of a listing plus the size of the whole listing."""

    total: int = 0
    limit: int = 50
    offset: int = 0
    has_more: bool = False

    @classmethod
    def from_items(
        cls,
        items: list[T],
        total: int,
        *,
        limit: int = 50,
        offset: int = 0,
        warnings: list[str] | None = None,
        elapsed_ms: float = 0.0,
    ) -> PagedResult[T]:
        return cls(
            success=True,
            data=items,
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + limit < total,
            warnings=list(warnings or []),
            elapsed_ms=elapsed_ms,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "total": self.total,
            "limit": self.limit,
            "offset": self.offset,
            "has_more": self.has_more,
        }


@dataclass(slots=True)
class Stopwatch:
    started: float = field(default_factory=time.perf_counter)

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.started) * 1000


def start_timer() -> Stopwatch:
    return Stopwatch()
