"""
Typed response objects for operations.

Detail views return the domain models themselves
(:class:`~labrules.core.models.Algorithm`,
:class:`~labrules.core.models.Workflow`); the dataclasses here cover list
views and the payloads that have no domain model of their own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from labrules.core.models import Algorithm, Workflow
from labrules.core.timestamps import to_iso8601

# ------------------------------------------------------------------ #
# Algorithms
# ------------------------------------------------------------------ #


@dataclass(slots=True)
class AlgorithmSummary:
    """Compact algorithm representation for list views."""

    id: str
    name: str
    description: str = ""
    action: str = "validate"
    parameter_count: int = 0
    check_count: int = 0
    created: str | None = None
    last_modified: str | None = None

    @classmethod
    def from_algorithm(cls, algorithm: Algorithm) -> AlgorithmSummary:
        return cls(
            id=algorithm.id or "",
            name=algorithm.name,
            description=algorithm.description,
            action=algorithm.action.value,
            parameter_count=len(algorithm.parameters),
            check_count=sum(len(p.sub_parameters) for p in algorithm.parameters),
            created=to_iso8601(algorithm.created),
            last_modified=to_iso8601(algorithm.last_modified),
        )


@dataclass(frozen=True, slots=True)
class DeleteResult:
    """Result payload for delete operations.

    ``referenced_by`` lists workflow ids that still point at a deleted
    algorithm.
    """

    id: str
    deleted: bool
    dry_run: bool = False
    referenced_by: list[str] = field(default_factory=list)


# ------------------------------------------------------------------ #
# Workflows
# ------------------------------------------------------------------ #


@dataclass(slots=True)
class WorkflowSummary:
    id: str
    name: str
    algorithm_count: int = 0
    created: str | None = None
    last_modified: str | None = None

    @classmethod
    def from_workflow(cls, workflow: Workflow) -> WorkflowSummary:
        return cls(
            id=workflow.id or "",
            name=workflow.name,
            algorithm_count=len(workflow.algorithm_order),
            created=to_iso8601(workflow.created),
            last_modified=to_iso8601(workflow.last_modified),
        )


@dataclass(slots=True)
class WorkflowStep:
    """One resolved entry of a workflow's algorithm order."""

    position: int
    algorithm_id: str
    name: str | None = None
    found: bool = True


@dataclass(slots=True)
class WorkflowDetail:
    id: str
    name: str
    algorithm_order: list[str] = field(default_factory=list)
    steps: list[WorkflowStep] = field(default_factory=list)
    created: str | None = None
    last_modified: str | None = None


# ------------------------------------------------------------------ #
# Executions
# ------------------------------------------------------------------ #


@dataclass(slots=True)
class ExecutionSummary:
    """Compact execution report for list views."""

    id: str
    kind: str
    target_id: str | None
    name: str
    patient_id: str = ""
    mode: str = "simulate"
    outcome: str = ""
    started_at: str | None = None
    completed_at: str | None = None

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> ExecutionSummary:
        return cls(
            id=doc.get("id", ""),
            kind=doc.get("kind", "algorithm"),
            target_id=doc.get("target_id"),
            name=doc.get("algorithm_name") or doc.get("workflow_name") or "",
            patient_id=doc.get("patient_id", ""),
            mode=doc.get("mode", "simulate"),
            outcome=doc.get("outcome", ""),
            started_at=doc.get("started_at"),
            completed_at=doc.get("completed_at"),
        )


# ------------------------------------------------------------------ #
# Catalog & scraper
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class TemplateSummary:
    key: str
    name: str
    parameter_count: int = 0
    parameters: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ScraperCode:
    target_url: str
    code: str
    parameters: list[str] = field(default_factory=list)
