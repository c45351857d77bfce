"""
Domain-specific Pydantic schemas for the API layer.

These mirror the core models and ops-layer dataclasses as Pydantic models so
they get JSON serialisation and OpenAPI schema generation.  The real types
live in ``labrules.core.models`` and ``labrules.ops.responses``.

Tags:
    labrules, api, schemas, domain-models
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

ValidationTypeName = Literal["range", "exact", "contains", "boolean", "list", "date"]
"""
Rule shapes:

- ``range``: numeric value within ``min``/``max``
- ``exact``: value equals ``value``
- ``contains``: text contains ``value``
- ``boolean``: value is true/false
- ``list``: value is one of ``options``
- ``date``: ISO date, optionally bounded in days
"""

ActionName = Literal["validate", "expert", "conditional"]
OutcomeName = Literal["VALIDATED", "EXPERT_REQUIRED"]


# ── Algorithms ───────────────────────────────────────────────────────────


class ParameterConfigSchema(BaseModel):
    type: ValidationTypeName
    min: float | None = None
    max: float | None = None
    value: bool | float | str | None = None
    options: list[str] | None = None
    required: bool = False
    unit: str | None = None


class SubParameterSchema(BaseModel):
    param: str
    config: ParameterConfigSchema | None = None


class ParameterSchema(BaseModel):
    name: str
    label: str = ""
    sub_parameters: list[SubParameterSchema] = Field(default_factory=list)


class GlobalParameterValueSchema(BaseModel):
    name: str
    value: Any = None


class AlgorithmSchema(BaseModel):
    """Full algorithm document.

    UI Hints:
        Render ``parameters`` as cards with one row per sub-parameter.
        ``action`` decides what happens once all checks have run.
    """

    id: str | None = None
    name: str
    description: str = ""
    parameters: list[ParameterSchema] = Field(default_factory=list)
    action: ActionName = "validate"
    global_parameters: list[GlobalParameterValueSchema] = Field(default_factory=list)
    created: str | None = None
    last_modified: str | None = None


class AlgorithmSummarySchema(BaseModel):
    id: str
    name: str
    description: str = ""
    action: ActionName = "validate"
    parameter_count: int = 0
    check_count: int = 0
    created: str | None = None
    last_modified: str | None = None


class DeleteResultSchema(BaseModel):
    id: str
    deleted: bool
    dry_run: bool = False
    referenced_by: list[str] = Field(default_factory=list)


# ── Workflows ────────────────────────────────────────────────────────────


class WorkflowSummarySchema(BaseModel):
    id: str
    name: str
    algorithm_count: int = 0
    created: str | None = None
    last_modified: str | None = None


class WorkflowStepSchema(BaseModel):
    position: int
    algorithm_id: str
    name: str | None = None
    found: bool = True


class WorkflowDetailSchema(BaseModel):
    id: str
    name: str
    algorithm_order: list[str] = Field(default_factory=list)
    steps: list[WorkflowStepSchema] = Field(default_factory=list)
    created: str | None = None
    last_modified: str | None = None


# ── Executions ───────────────────────────────────────────────────────────


class ExecutionSummarySchema(BaseModel):
    """Compact execution report for list views."""

    id: str
    kind: Literal["algorithm", "workflow"]
    target_id: str | None = None
    name: str = ""
    patient_id: str = ""
    mode: Literal["simulate", "evaluate"] = "simulate"
    outcome: OutcomeName | str = ""
    started_at: str | None = None
    completed_at: str | None = None


# ── Catalog ──────────────────────────────────────────────────────────────


class ParameterDefinitionSchema(BaseModel):
    name: str
    label: str
    type: ValidationTypeName
    default_config: ParameterConfigSchema
    is_global: bool = False
    category: str = ""


class GlobalParameterSchema(BaseModel):
    name: str
    label: str
    type: Literal["range", "list", "text"]
    default_value: Any = None
    options: list[str] | None = None
    min: float | None = None
    max: float | None = None
    unit: str | None = None


class TemplateSummarySchema(BaseModel):
    key: str
    name: str
    parameter_count: int = 0
    parameters: list[str] = Field(default_factory=list)


class TemplateSchema(BaseModel):
    key: str
    name: str
    parameters: list[ParameterSchema] = Field(default_factory=list)


# ── Scraper ──────────────────────────────────────────────────────────────


class ScraperCodeSchema(BaseModel):
    target_url: str
    code: str
    parameters: list[str] = Field(default_factory=list)
