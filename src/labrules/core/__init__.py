"""labrules core -- domain primitives with no transport knowledge.

Architecture::

    Layer 1 -- Types & Errors
        errors.py          Structured error hierarchy (LabRulesError, ...)
        models.py          Algorithm / Workflow dataclasses
        timestamps.py      Document ids + UTC helpers (stdlib-only)

    Layer 2 -- Domain
        catalog.py         Parameter definitions and algorithm templates
        rules.py           ParameterConfig interpreter
        execution.py       Step-sequenced algorithm / workflow runner
        scraper.py         Playwright scraper code generation

    Layer 3 -- Storage
        store.py           DocumentStore backends (memory, sqlite)
        repositories.py    Algorithm / Workflow / Execution repositories

    Layer 4 -- Infrastructure
        logging.py         structlog configuration
        settings.py        pydantic-settings base settings
        health.py          /health router factory
"""

from labrules.core.errors import (
    ConfigError,
    ConflictError,
    ErrorCategory,
    ExecutionError,
    LabRulesError,
    NotFoundError,
    RuleConfigError,
    StorageError,
    TemplateNotFoundError,
    ValidationError,
)
from labrules.core.models import (
    Algorithm,
    AlgorithmAction,
    GlobalParameterValue,
    Parameter,
    ParameterConfig,
    SubParameter,
    ValidationType,
    Workflow,
)

__all__ = [
    "Algorithm",
    "AlgorithmAction",
    "ConfigError",
    "ConflictError",
    "ErrorCategory",
    "ExecutionError",
    "GlobalParameterValue",
    "LabRulesError",
    "NotFoundError",
    "Parameter",
    "ParameterConfig",
    "RuleConfigError",
    "StorageError",
    "SubParameter",
    "TemplateNotFoundError",
    "ValidationError",
    "ValidationType",
    "Workflow",
]
