"""Shared failure handling for operation modules."""

from __future__ import annotations

from typing import Any

from labrules.core.errors import LabRulesError
from labrules.core.logging import get_logger
from labrules.ops.result import OperationResult

logger = get_logger("labrules.ops")


def failed(exc: Exception, timer: Any, result_cls: type = OperationResult) -> Any:
    """Log *exc* and fold it into a failed result.

    Domain errors are expected rejections and log at warning level;
    anything else is a bug and logs with a traceback.
    """
    if isinstance(exc, LabRulesError):
        logger.warning("op_rejected", error=exc.message, category=exc.category.value)
    else:
        logger.exception("op_failed", error=str(exc))
    return result_cls.from_error(exc, elapsed_ms=timer.elapsed_ms)
