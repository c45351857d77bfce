"""Tests for execution operations."""

from __future__ import annotations

import pytest

from labrules.core.repositories import ExecutionRepository
from labrules.core.timestamps import generate_id
from labrules.ops.context import OperationContext
from labrules.ops.executions import execute_algorithm, execute_workflow, get_execution, list_executions
from labrules.ops.requests import (
    CreateWorkflowRequest,
    ExecuteAlgorithmRequest,
    ExecuteWorkflowRequest,
    GetExecutionRequest,
    ListExecutionsRequest,
)
from labrules.ops.workflows import create_workflow


@pytest.fixture()
def saved_workflow(ctx, saved_algorithm):
    return create_workflow(
        ctx, CreateWorkflowRequest(data={"name": "Daily", "algorithm_order": [saved_algorithm.id]})
    ).data


class TestExecuteAlgorithm:
    def test_simulated_run_is_persisted(self, ctx, store, saved_algorithm):
        result = execute_algorithm(
            ctx, ExecuteAlgorithmRequest(algorithm_id=saved_algorithm.id, execution={"patient_id": "P-1"})
        )
        assert result.success is True
        report = result.data
        assert report["id"]
        assert report["outcome"] == "VALIDATED"
        assert report["mode"] == "simulate"
        assert report["status"] == "Execution Complete: VALIDATED"
        assert ExecutionRepository(store).get(report["id"])["patient_id"] == "P-1"

    def test_no_persist(self, ctx, store, saved_algorithm):
        result = execute_algorithm(
            ctx, ExecuteAlgorithmRequest(algorithm_id=saved_algorithm.id, persist=False)
        )
        assert result.data["id"] is None
        assert ExecutionRepository(store).list()[1] == 0

    def test_evaluated_run(self, ctx, saved_algorithm):
        result = execute_algorithm(
            ctx,
            ExecuteAlgorithmRequest(
                algorithm_id=saved_algorithm.id,
                execution={"results": {"glucose": {"result": "1.6", "qc": "normal"}}},
            ),
        )
        assert result.data["mode"] == "evaluate"
        assert result.data["outcome"] == "EXPERT_REQUIRED"
        assert result.data["counts"] == {"PASS": 1, "FAIL": 1, "SKIP": 0}

    def test_scope_warnings_surface(self, ctx, saved_algorithm):
        result = execute_algorithm(
            ctx,
            ExecuteAlgorithmRequest(
                algorithm_id=saved_algorithm.id,
                execution={"results": {"glucose": 0.9}, "patient": {"gender": "F"}},
            ),
        )
        assert result.warnings == ["Patient gender F outside algorithm scope (M)"]

    def test_not_found(self, ctx):
        result = execute_algorithm(ctx, ExecuteAlgorithmRequest(algorithm_id=generate_id()))
        assert result.error.code == "NOT_FOUND"

    def test_invalid_execution_parameters(self, ctx, saved_algorithm):
        result = execute_algorithm(
            ctx, ExecuteAlgorithmRequest(algorithm_id=saved_algorithm.id, execution={"mode": "fast"})
        )
        assert result.error.code == "VALIDATION_FAILED"
        assert result.error.details["field"] == "mode"

    def test_dry_run_previews(self, dry_ctx, store, saved_algorithm):
        result = execute_algorithm(
            dry_ctx, ExecuteAlgorithmRequest(algorithm_id=saved_algorithm.id, execution={"patient_id": "P-1"})
        )
        assert result.data == {
            "kind": "algorithm",
            "target_id": saved_algorithm.id,
            "patient_id": "P-1",
            "mode": "simulate",
            "dry_run": True,
            "would_execute": True,
        }
        assert ExecutionRepository(store).list()[1] == 0

    def test_default_runner(self, store, saved_algorithm):
        ctx = OperationContext(store=store)
        result = execute_algorithm(ctx, ExecuteAlgorithmRequest(algorithm_id=saved_algorithm.id, persist=False))
        assert result.success is True
        assert isinstance(result.data["seed"], int)


class TestExecuteWorkflow:
    def test_runs_and_persists(self, ctx, store, saved_workflow):
        result = execute_workflow(ctx, ExecuteWorkflowRequest(workflow_id=saved_workflow.id))
        assert result.success is True
        report = result.data
        assert report["kind"] == "workflow"
        assert report["workflow_name"] == "Daily"
        assert len(report["runs"]) == 1
        assert report["outcome"] == "VALIDATED"
        assert ExecutionRepository(store).get(report["id"]) is not None

    def test_missing_algorithm_warns(self, ctx, store, saved_workflow, saved_algorithm):
        from labrules.core.repositories import AlgorithmRepository

        AlgorithmRepository(store).delete(saved_algorithm.id)
        result = execute_workflow(ctx, ExecuteWorkflowRequest(workflow_id=saved_workflow.id))
        assert result.success is True
        assert result.data["outcome"] == "EXPERT_REQUIRED"
        assert result.data["missing"] == [saved_algorithm.id]
        assert result.warnings == [f"Algorithm '{saved_algorithm.id}' not found; counted as EXPERT_REQUIRED"]

    def test_not_found(self, ctx):
        assert execute_workflow(ctx, ExecuteWorkflowRequest(workflow_id=generate_id())).error.code == "NOT_FOUND"

    def test_dry_run(self, dry_ctx, saved_workflow):
        result = execute_workflow(dry_ctx, ExecuteWorkflowRequest(workflow_id=saved_workflow.id))
        assert result.data["would_execute"] is True
        assert result.data["kind"] == "workflow"


class TestStoredExecutions:
    def test_get(self, ctx, saved_algorithm):
        report = execute_algorithm(ctx, ExecuteAlgorithmRequest(algorithm_id=saved_algorithm.id)).data
        result = get_execution(ctx, GetExecutionRequest(execution_id=report["id"]))
        assert result.data["algorithm_name"] == "Glucose check"

    def test_get_not_found(self, ctx):
        assert get_execution(ctx, GetExecutionRequest(execution_id=generate_id())).error.code == "NOT_FOUND"

    def test_get_requires_id(self, ctx):
        assert get_execution(ctx, GetExecutionRequest()).error.code == "VALIDATION_FAILED"

    def test_list_filters(self, ctx, saved_algorithm, saved_workflow):
        execute_algorithm(
            ctx, ExecuteAlgorithmRequest(algorithm_id=saved_algorithm.id, execution={"patient_id": "P-1"})
        )
        execute_algorithm(
            ctx, ExecuteAlgorithmRequest(algorithm_id=saved_algorithm.id, execution={"patient_id": "P-2"})
        )
        execute_workflow(ctx, ExecuteWorkflowRequest(workflow_id=saved_workflow.id, execution={"patient_id": "P-1"}))

        assert list_executions(ctx).total == 3
        by_patient = list_executions(ctx, ListExecutionsRequest(patient_id="P-1"))
        assert by_patient.total == 2
        workflows = list_executions(ctx, ListExecutionsRequest(kind="workflow"))
        assert [s.name for s in workflows.data] == ["Daily"]
        assert workflows.data[0].target_id == saved_workflow.id
        assert list_executions(ctx, ListExecutionsRequest(target_id=saved_algorithm.id)).total == 2

    def test_list_invalid_kind(self, ctx):
        result = list_executions(ctx, ListExecutionsRequest(kind="batch"))
        assert result.success is False
        assert result.error.code == "VALIDATION_FAILED"
