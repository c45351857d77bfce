"""
Router dependencies.

The app factory puts the document store and the execution runner on
``app.state``; every request gets a fresh :class:`OperationContext` over them::

    @router.get("")
    def list_algorithms(ctx: OpContext, pagination: Pagination): ...
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Query, Request

from labrules.api.settings import LabRulesAPISettings
from labrules.ops.context import OperationContext

MAX_PAGE_SIZE = 1000


@lru_cache(maxsize=1)
def get_settings() -> LabRulesAPISettings:
    return LabRulesAPISettings()


def get_operation_context(
    request: Request,
    dry_run: bool = Query(False, description="Validate and report without writing"),
) -> OperationContext:
    state = request.app.state
    return OperationContext(
        store=state.store,
        runner=state.runner,
        request_id=getattr(request.state, "request_id", None) or uuid.uuid4().hex,
        caller="api",
        dry_run=dry_run,
    )


@dataclass(frozen=True, slots=True)
class PageWindow:
    """1-based ``page`` of ``page_size`` items, as the store's offset/limit."""

    page: int
    page_size: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size


def get_page_window(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=MAX_PAGE_SIZE),
) -> PageWindow:
    return PageWindow(page, page_size)


OpContext = Annotated[OperationContext, Depends(get_operation_context)]
Pagination = Annotated[PageWindow, Depends(get_page_window)]
