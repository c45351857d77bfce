"""
Shared pytest fixtures for labrules tests.

This module provides:
- In-memory document stores and operation contexts
- A deterministic execution runner (fixed clock, scripted random draws)
- Sample algorithm documents

Usage:
    Fixtures are auto-discovered by pytest::

        def test_something(ctx, saved_algorithm):
            ...
"""

from __future__ import annotations

import random
from datetime import UTC, datetime
from typing import Any

import pytest

from labrules.core.execution import ExecutionRunner
from labrules.core.models import Algorithm
from labrules.core.repositories import AlgorithmRepository
from labrules.core.store import MemoryDocumentStore
from labrules.ops.context import OperationContext

FIXED_NOW = datetime(2026, 3, 2, 9, 30, 0, tzinfo=UTC)


class ScriptedRandom(random.Random):
    """``random()`` always returns *value*; everything else is a normal RNG."""

    def __init__(self, value: float) -> None:
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


def fixed_clock() -> datetime:
    return FIXED_NOW


# =============================================================================
# Store / context
# =============================================================================


@pytest.fixture()
def store():
    s = MemoryDocumentStore()
    yield s
    s.close()


@pytest.fixture()
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture()
def make_runner():
    """Factory for runners whose every random draw returns *draw*.

    ``draw=0.99`` passes every simulated check and validates the run;
    ``draw=0.0`` fails every check and requires an expert.
    """

    def _make(draw: float = 0.99, **kwargs: Any) -> ExecutionRunner:
        return ExecutionRunner(rng=ScriptedRandom(draw), clock=fixed_clock, **kwargs)

    return _make


@pytest.fixture()
def runner(make_runner) -> ExecutionRunner:
    """Runner whose simulated checks and outcomes always pass."""
    return make_runner(0.99)


@pytest.fixture()
def ctx(store, runner) -> OperationContext:
    return OperationContext(store=store, caller="test", runner=runner)


@pytest.fixture()
def dry_ctx(store, runner) -> OperationContext:
    return OperationContext(store=store, caller="test", dry_run=True, runner=runner)


# =============================================================================
# Sample documents
# =============================================================================


@pytest.fixture()
def algorithm_data() -> dict[str, Any]:
    """Fasting glucose algorithm: a range on the result plus a QC check."""
    return {
        "name": "Glucose check",
        "description": "Fasting glucose",
        "action": "validate",
        "parameters": [
            {
                "name": "glucose",
                "label": "Glucose",
                "sub_parameters": [
                    {
                        "param": "result",
                        "config": {"type": "range", "min": 0.7, "max": 1.1, "unit": "g/L", "required": True},
                    },
                    {
                        "param": "qc",
                        "config": {"type": "contains", "value": "normal", "required": True},
                    },
                ],
            },
        ],
        "global_parameters": [
            {"name": "patient_age", "value": 30},
            {"name": "patient_gender", "value": "M"},
            {"name": "patient_gender_scope", "value": "M"},
        ],
    }


@pytest.fixture()
def saved_algorithm(store, algorithm_data) -> Algorithm:
    return AlgorithmRepository(store).create(Algorithm.from_dict(algorithm_data).cleaned())
