"""Repositories for algorithms, workflows and execution reports.

Each repository wraps one document-store collection and converts between
stored documents and domain models.  Operations in ``labrules.ops`` use
these instead of touching the store directly.

Architecture::

    ops/algorithms.py  ops/workflows.py  ops/executions.py
                 │              │               │
                 ▼              ▼               ▼
    AlgorithmRepository  WorkflowRepository  ExecutionRepository
       "algorithms"        "workflows"         "executions"
                 └──────────────┼───────────────┘
                                ▼
                         DocumentStore

Guardrails:
    ❌ DON'T: call ``store.insert`` from ops modules
    ✅ DO: go through the repository, which owns timestamps and ids

Tags:
    repository, documents, crud, labrules-core
"""

from __future__ import annotations

from typing import Any

from labrules.core.models import Algorithm, Workflow
from labrules.core.store import DocumentStore
from labrules.core.timestamps import is_valid_id, utc_now


def _text_match(search: str | None, *fields: str) -> Any:
    if not search or not search.strip():
        return None
    needle = search.strip().lower()

    def where(doc: dict[str, Any]) -> bool:
        return any(needle in str(doc.get(f) or "").lower() for f in fields)

    return where


# =============================================================================
# Algorithms
# =============================================================================


class AlgorithmRepository:
    """CRUD for the ``algorithms`` collection."""

    COLLECTION = "algorithms"

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    def list(
        self,
        *,
        offset: int = 0,
        limit: int | None = None,
        search: str | None = None,
    ) -> tuple[list[Algorithm], int]:
        docs, total = self.store.find(
            self.COLLECTION,
            where=_text_match(search, "name", "description"),
            offset=offset,
            limit=limit,
        )
        return [Algorithm.from_dict(d) for d in docs], total

    def get(self, algorithm_id: str) -> Algorithm | None:
        if not is_valid_id(algorithm_id):
            return None
        doc = self.store.get(self.COLLECTION, algorithm_id)
        return Algorithm.from_dict(doc) if doc else None

    def get_many(self, algorithm_ids: list[str]) -> dict[str, Algorithm]:
        """Resolve ids to algorithms, silently skipping unknown ones."""
        found: dict[str, Algorithm] = {}
        for algorithm_id in dict.fromkeys(algorithm_ids):
            algorithm = self.get(algorithm_id)
            if algorithm is not None:
                found[algorithm_id] = algorithm
        return found

    def exists(self, algorithm_id: str) -> bool:
        return self.get(algorithm_id) is not None

    def create(self, algorithm: Algorithm) -> Algorithm:
        now = utc_now()
        doc = algorithm.to_dict()
        doc["id"] = algorithm.id if is_valid_id(algorithm.id) else None
        doc["created"] = (algorithm.created or now).isoformat()
        doc["last_modified"] = now.isoformat()
        return Algorithm.from_dict(self.store.insert(self.COLLECTION, doc))

    def update(self, algorithm_id: str, algorithm: Algorithm) -> Algorithm | None:
        current = self.get(algorithm_id)
        if current is None:
            return None
        doc = algorithm.to_dict()
        doc["created"] = (current.created or utc_now()).isoformat()
        doc["last_modified"] = utc_now().isoformat()
        saved = self.store.replace(self.COLLECTION, algorithm_id, doc)
        return Algorithm.from_dict(saved) if saved else None

    def delete(self, algorithm_id: str) -> bool:
        if not is_valid_id(algorithm_id):
            return False
        return self.store.delete(self.COLLECTION, algorithm_id)

    def count(self) -> int:
        return self.store.count(self.COLLECTION)


# =============================================================================
# Workflows
# =============================================================================


class WorkflowRepository:
    """CRUD for the ``workflows`` collection."""

    COLLECTION = "workflows"

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    def list(
        self,
        *,
        offset: int = 0,
        limit: int | None = None,
        search: str | None = None,
    ) -> tuple[list[Workflow], int]:
        docs, total = self.store.find(
            self.COLLECTION,
            where=_text_match(search, "name"),
            offset=offset,
            limit=limit,
        )
        return [Workflow.from_dict(d) for d in docs], total

    def get(self, workflow_id: str) -> Workflow | None:
        if not is_valid_id(workflow_id):
            return None
        doc = self.store.get(self.COLLECTION, workflow_id)
        return Workflow.from_dict(doc) if doc else None

    def referencing(self, algorithm_id: str) -> list[Workflow]:
        """Workflows whose order includes *algorithm_id*."""
        docs, _ = self.store.find(
            self.COLLECTION,
            where=lambda d: algorithm_id in (d.get("algorithm_order") or []),
        )
        return [Workflow.from_dict(d) for d in docs]

    def create(self, workflow: Workflow) -> Workflow:
        now = utc_now()
        doc = workflow.to_dict()
        doc["id"] = workflow.id if is_valid_id(workflow.id) else None
        doc["created"] = (workflow.created or now).isoformat()
        doc["last_modified"] = now.isoformat()
        return Workflow.from_dict(self.store.insert(self.COLLECTION, doc))

    def update(self, workflow_id: str, workflow: Workflow) -> Workflow | None:
        current = self.get(workflow_id)
        if current is None:
            return None
        doc = workflow.to_dict()
        doc["created"] = (current.created or utc_now()).isoformat()
        doc["last_modified"] = utc_now().isoformat()
        saved = self.store.replace(self.COLLECTION, workflow_id, doc)
        return Workflow.from_dict(saved) if saved else None

    def delete(self, workflow_id: str) -> bool:
        if not is_valid_id(workflow_id):
            return False
        return self.store.delete(self.COLLECTION, workflow_id)


# =============================================================================
# Execution reports
# =============================================================================


class ExecutionRepository:
    """Persisted execution reports (newest first)."""

    COLLECTION = "executions"

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    def save(self, report: dict[str, Any]) -> dict[str, Any]:
        return self.store.insert(self.COLLECTION, report)

    def get(self, execution_id: str) -> dict[str, Any] | None:
        if not is_valid_id(execution_id):
            return None
        return self.store.get(self.COLLECTION, execution_id)

    def list(
        self,
        *,
        offset: int = 0,
        limit: int | None = None,
        kind: str | None = None,
        target_id: str | None = None,
        patient_id: str | None = None,
        outcome: str | None = None,
    ) -> tuple[list[dict[str, Any]], int]:
        filters = {
            k: v
            for k, v in {
                "kind": kind,
                "target_id": target_id,
                "patient_id": patient_id,
                "outcome": outcome,
            }.items()
            if v is not None
        }
        return self.store.find(
            self.COLLECTION,
            filters=filters or None,
            offset=offset,
            limit=limit,
            sort="-started_at",
        )


__all__ = [
    "AlgorithmRepository",
    "ExecutionRepository",
    "WorkflowRepository",
]
