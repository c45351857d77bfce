"""
Error types raised by labrules.

Everything that fails inside ``labrules.core`` raises a :class:`LabRulesError`.
The ops layer maps each class onto an error code (``ops.result``), and the API
maps the code onto an HTTP status.

::

    LabRulesError
    ├── ValidationError        400  rejected algorithm, workflow or rule
    │   └── RuleConfigError         ParameterConfig cannot be interpreted
    ├── NotFoundError          404  id or key does not resolve
    │   └── TemplateNotFoundError
    ├── ConfigError                 bad settings or store URL
    ├── StorageError           503  document store unavailable (retryable)
    │   └── ConflictError      409  id already taken
    └── ExecutionError              run could not be carried out
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    CONFIG = "CONFIG"
    STORAGE = "STORAGE"
    EXECUTION = "EXECUTION"
    INTERNAL = "INTERNAL"


class LabRulesError(Exception):
    """Base class.

    ``category`` and ``retryable`` come from the class unless the raiser
    overrides them; ``context`` is merged into logs and error responses.
    """

    category: ErrorCategory = ErrorCategory.INTERNAL
    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        if category is not None:
            self.category = category
        if retryable is not None:
            self.retryable = retryable
        self.context: dict[str, Any] = dict(context or {})
        if cause is not None:
            self.__cause__ = cause

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        if self.context:
            data["context"] = dict(self.context)
        if self.__cause__ is not None:
            data["cause"] = str(self.__cause__)
        return data

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class ValidationError(LabRulesError):
    """A submitted document was rejected; ``field`` names the culprit."""

    category = ErrorCategory.VALIDATION

    def __init__(self, message: str, *, field: str | None = None, value: Any = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self.field:
            data["field"] = self.field
        if self.value is not None:
            data["value"] = repr(self.value)
        return data


class RuleConfigError(ValidationError):
    pass


class NotFoundError(LabRulesError):
    category = ErrorCategory.NOT_FOUND

    def __init__(self, kind: str, key: str, message: str | None = None):
        super().__init__(message or f"{kind} '{key}' not found", context={"kind": kind, "key": key})
        self.kind = kind
        self.key = key


class TemplateNotFoundError(NotFoundError):
    def __init__(self, key: str):
        super().__init__("Template", key)


class ConfigError(LabRulesError):
    category = ErrorCategory.CONFIG


class StorageError(LabRulesError):
    category = ErrorCategory.STORAGE
    retryable = True


class ConflictError(StorageError):
    retryable = False


class ExecutionError(LabRulesError):
    category = ErrorCategory.EXECUTION


__all__ = [
    "ConfigError",
    "ConflictError",
    "ErrorCategory",
    "ExecutionError",
    "LabRulesError",
    "NotFoundError",
    "RuleConfigError",
    "StorageError",
    "TemplateNotFoundError",
    "ValidationError",
]
