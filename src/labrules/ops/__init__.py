"""
Operations layer -- business logic for labrules.

The ops package provides typed request/response functions over the core
domain with consistent patterns:

- All functions accept ``OperationContext`` as first argument
- All functions return ``OperationResult[T]`` (never raise)
- All functions are transport-agnostic (no HTTP, no CLI knowledge)
- Writing functions support ``dry_run`` mode for safe previews

Usage::

    from labrules.core.store import open_store
    from labrules.ops import OperationContext
    from labrules.ops.algorithms import list_algorithms

    ctx = OperationContext(store=open_store("memory://"))
    result = list_algorithms(ctx)
    assert result.success
"""

from labrules.ops.context import OperationContext
from labrules.ops.result import OperationError, OperationResult, PagedResult

__all__ = [
    "OperationContext",
    "OperationError",
    "OperationResult",
    "PagedResult",
]
