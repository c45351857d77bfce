"""
Typed request objects for operations.

Each dataclass represents the *input* contract for a single operation
function.  Algorithm and workflow payloads travel as plain dicts (the
document shape, snake_case or camelCase) and are parsed by the operation
so that parse failures surface as ``VALIDATION_FAILED`` results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# ------------------------------------------------------------------ #
# Algorithms
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class ListAlgorithmsRequest:
    """Request for :func:`labrules.ops.algorithms.list_algorithms`."""

    search: str | None = None
    limit: int = 50
    offset: int = 0


@dataclass(frozen=True, slots=True)
class GetAlgorithmRequest:
    algorithm_id: str = ""


@dataclass(frozen=True, slots=True)
class CreateAlgorithmRequest:
    """Request for :func:`labrules.ops.algorithms.create_algorithm`.

    Attributes:
        data: Algorithm document.  Any ``id`` it carries is ignored unless
            ``keep_id`` is set (used when importing exported documents).
    """

    data: dict[str, Any] = field(default_factory=dict)
    keep_id: bool = False


@dataclass(frozen=True, slots=True)
class UpdateAlgorithmRequest:
    algorithm_id: str = ""
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class SaveAlgorithmRequest:
    """Request for :func:`labrules.ops.algorithms.save_algorithm`.

    Updates when ``data["id"]`` names a stored algorithm, creates otherwise.
    """

    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class DeleteAlgorithmRequest:
    algorithm_id: str = ""


@dataclass(frozen=True, slots=True)
class DuplicateAlgorithmRequest:
    """Request for :func:`labrules.ops.algorithms.duplicate_algorithm`.

    ``name`` defaults to ``"<original name> (Copy)"``.
    """

    algorithm_id: str = ""
    name: str | None = None
    description: str | None = None


@dataclass(frozen=True, slots=True)
class CreateFromTemplateRequest:
    template_key: str = ""
    name: str | None = None
    description: str = ""
    action: str = "validate"


# ------------------------------------------------------------------ #
# Workflows
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class ListWorkflowsRequest:
    search: str | None = None
    limit: int = 50
    offset: int = 0


@dataclass(frozen=True, slots=True)
class GetWorkflowRequest:
    workflow_id: str = ""


@dataclass(frozen=True, slots=True)
class CreateWorkflowRequest:
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class UpdateWorkflowRequest:
    workflow_id: str = ""
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class DeleteWorkflowRequest:
    workflow_id: str = ""


# ------------------------------------------------------------------ #
# Executions
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class ExecuteAlgorithmRequest:
    """Request for :func:`labrules.ops.executions.execute_algorithm`.

    Attributes:
        algorithm_id: Stored algorithm to run.
        execution: Execution parameters (patient_id, data_source,
            analysis_type, mode, results, patient, seed).
        persist: Store the report in the ``executions`` collection.
    """

    algorithm_id: str = ""
    execution: dict[str, Any] = field(default_factory=dict)
    persist: bool = True


@dataclass(frozen=True, slots=True)
class ExecuteWorkflowRequest:
    workflow_id: str = ""
    execution: dict[str, Any] = field(default_factory=dict)
    persist: bool = True


@dataclass(frozen=True, slots=True)
class GetExecutionRequest:
    execution_id: str = ""


@dataclass(frozen=True, slots=True)
class ListExecutionsRequest:
    kind: str | None = None  # "algorithm" | "workflow"
    target_id: str | None = None
    patient_id: str | None = None
    outcome: str | None = None
    limit: int = 50
    offset: int = 0


# ------------------------------------------------------------------ #
# Catalog & scraper
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class ListParameterDefinitionsRequest:
    scope: str | None = None  # "global" | "specific" | None for all
    category: str | None = None


@dataclass(frozen=True, slots=True)
class GetTemplateRequest:
    key: str = ""


@dataclass(frozen=True, slots=True)
class GenerateScraperRequest:
    target_url: str = ""
    mappings: list[dict[str, Any]] = field(default_factory=list)
