"""Tests for the execution runner (simulate and evaluate modes)."""

from __future__ import annotations

import pytest

from labrules.core.catalog import SCOPE_AGE_MAX, SCOPE_AGE_MIN, SCOPE_GENDER, build_algorithm_from_template
from labrules.core.errors import ValidationError
from labrules.core.execution import (
    EXECUTION_STEPS,
    AnalysisType,
    DataSource,
    ExecutionMode,
    ExecutionReport,
    ExecutionRequest,
    Outcome,
    patient_scope_warnings,
)
from labrules.core.models import Algorithm, AlgorithmAction, GlobalParameterValue, Workflow
from labrules.core.rules import CheckStatus
from labrules.core.timestamps import generate_id


@pytest.fixture()
def algorithm(algorithm_data) -> Algorithm:
    algorithm = Algorithm.from_dict(algorithm_data)
    algorithm.id = generate_id()
    return algorithm


def _messages(report) -> list[str]:
    return [entry.message for entry in report.logs]


class TestExecutionRequest:
    def test_defaults(self):
        request = ExecutionRequest.from_dict({})
        assert request.data_source is DataSource.MANUAL
        assert request.analysis_type is AnalysisType.BLOOD
        assert request.effective_mode is ExecutionMode.SIMULATE

    def test_results_switch_to_evaluate(self):
        request = ExecutionRequest.from_dict({"results": {"glucose": 1.0}})
        assert request.effective_mode is ExecutionMode.EVALUATE

    def test_explicit_mode_wins(self):
        request = ExecutionRequest.from_dict({"results": {"glucose": 1.0}, "mode": "simulate"})
        assert request.effective_mode is ExecutionMode.SIMULATE

    def test_camel_case_keys(self):
        request = ExecutionRequest.from_dict(
            {"patientId": "P-1", "dataSource": "scraper", "analysisType": "Urine", "seed": "7"}
        )
        assert request.patient_id == "P-1"
        assert request.data_source is DataSource.SCRAPER
        assert request.analysis_type is AnalysisType.URINE
        assert request.seed == 7

    def test_invalid_analysis_type(self):
        with pytest.raises(ValidationError) as exc_info:
            ExecutionRequest.from_dict({"analysis_type": "saliva"})
        assert exc_info.value.field == "analysis_type"


class TestSimulatedRun:
    def test_log_sequence(self, make_runner, algorithm):
        report = make_runner(0.99).run_algorithm(algorithm, ExecutionRequest(patient_id="P-42"))
        messages = _messages(report)

        assert messages[:5] == [
            "Starting execution for Patient: P-42",
            "Algorithm: Glucose check",
            "Analysis Type: blood",
            "Data Source: manual",
            "Global Parameters:",
        ]
        assert "  └─ patient_age: 30" in messages
        steps = [m for m in messages if m in EXECUTION_STEPS]
        assert steps == list(EXECUTION_STEPS)
        assert messages.index("Checking Glucose:") > messages.index("Validating parameter conditions...")
        assert "  └─ result: range → PASS" in messages
        assert messages[-3:] == [
            "Result: VALIDATED",
            "All parameters passed validation criteria",
            "Patient analysis approved for reporting",
        ]

    def test_all_pass_validates(self, make_runner, algorithm):
        report = make_runner(0.99).run_algorithm(algorithm, ExecutionRequest())
        assert report.outcome is Outcome.VALIDATED
        assert report.progress == 100.0
        assert report.counts() == {"PASS": 2, "FAIL": 0, "SKIP": 0}
        assert report.status == "Execution Complete: VALIDATED"

    def test_all_fail_requires_expert(self, make_runner, algorithm):
        report = make_runner(0.0).run_algorithm(algorithm, ExecutionRequest())
        assert report.outcome is Outcome.EXPERT_REQUIRED
        assert report.counts()["FAIL"] == 2
        assert _messages(report)[-3] == "Result: EXPERT_REQUIRED"

    def test_default_rates(self, make_runner, algorithm):
        # pass_rate 0.8 -> check passes above 0.2; validate_rate 0.3 -> validates above 0.7
        report = make_runner(0.5).run_algorithm(algorithm, ExecutionRequest())
        assert report.counts()["PASS"] == 2
        assert report.outcome is Outcome.EXPERT_REQUIRED

    def test_seed_reproduces_run(self, make_runner, algorithm):
        runner = make_runner()
        first = runner.run_algorithm(algorithm, ExecutionRequest(seed=1234))
        second = runner.run_algorithm(algorithm, ExecutionRequest(seed=1234))
        assert first.seed == 1234
        assert [c.status for c in first.checks] == [c.status for c in second.checks]
        assert first.outcome is second.outcome

    def test_unseeded_run_records_seed(self, algorithm, fixed_now):
        from labrules.core.execution import ExecutionRunner

        report = ExecutionRunner(clock=lambda: fixed_now).run_algorithm(algorithm, ExecutionRequest())
        assert isinstance(report.seed, int)

    def test_step_delay_sleeps_per_step(self, make_runner, algorithm):
        sleeps: list[float] = []
        runner = make_runner(step_delay=0.5, sleep=sleeps.append)
        runner.run_algorithm(algorithm, ExecutionRequest())
        assert sleeps == [0.5] * len(EXECUTION_STEPS)

    def test_timestamps_from_clock(self, make_runner, algorithm, fixed_now):
        report = make_runner().run_algorithm(algorithm, ExecutionRequest())
        assert report.started_at == fixed_now
        assert report.logs[0].timestamp == "09:30:00"


class TestEvaluatedRun:
    def test_passing_results_validate(self, make_runner, algorithm):
        request = ExecutionRequest(results={"glucose": {"result": "0.95", "qc": "normal"}})
        report = make_runner().run_algorithm(algorithm, request)
        assert report.mode is ExecutionMode.EVALUATE
        assert report.outcome is Outcome.VALIDATED

    def test_failing_check_requires_expert(self, make_runner, algorithm):
        request = ExecutionRequest(results={"glucose": {"result": "1.4", "qc": "normal"}})
        report = make_runner().run_algorithm(algorithm, request)
        assert report.outcome is Outcome.EXPERT_REQUIRED
        assert report.checks[0].status is CheckStatus.FAIL
        assert "  └─ result: range → FAIL" in _messages(report)

    def test_expert_action_always_requires_expert(self, make_runner, algorithm):
        algorithm.action = AlgorithmAction.EXPERT
        request = ExecutionRequest(results={"glucose": {"result": "0.9", "qc": "normal"}})
        assert make_runner().run_algorithm(algorithm, request).outcome is Outcome.EXPERT_REQUIRED

    def test_conditional_action_requires_expert_on_skip(self, make_runner, algorithm):
        algorithm.action = AlgorithmAction.CONDITIONAL
        algorithm.parameters[0].sub_parameters[1].config.required = False
        request = ExecutionRequest(results={"glucose": {"result": "0.9"}})
        report = make_runner().run_algorithm(algorithm, request)
        assert report.counts()["SKIP"] == 1
        assert report.outcome is Outcome.EXPERT_REQUIRED

        algorithm.action = AlgorithmAction.VALIDATE
        assert make_runner().run_algorithm(algorithm, request).outcome is Outcome.VALIDATED

    def test_patient_outside_scope_requires_expert(self, make_runner, algorithm):
        request = ExecutionRequest(
            results={"glucose": {"result": "0.9", "qc": "normal"}},
            patient={"gender": "female"},
        )
        report = make_runner().run_algorithm(algorithm, request)
        assert report.outcome is Outcome.EXPERT_REQUIRED
        assert report.warnings == ["Patient gender FEMALE outside algorithm scope (M)"]


class TestPatientScopeWarnings:
    def _algorithm(self, **values) -> Algorithm:
        return Algorithm(
            name="x",
            global_parameters=[GlobalParameterValue(name=k, value=v) for k, v in values.items()],
        )

    def test_age_bounds(self):
        algorithm = self._algorithm(**{SCOPE_AGE_MIN: 18, SCOPE_AGE_MAX: 65})
        assert patient_scope_warnings(algorithm, {"age": 40}) == []
        assert patient_scope_warnings(algorithm, {"age": 70}) == [
            "Patient age 70 outside algorithm scope (18-65)"
        ]

    def test_gender_first_letter(self):
        algorithm = self._algorithm(**{SCOPE_GENDER: "Male"})
        assert patient_scope_warnings(algorithm, {"gender": "m"}) == []
        assert len(patient_scope_warnings(algorithm, {"gender": "F"})) == 1

    def test_no_patient_data(self):
        assert patient_scope_warnings(self._algorithm(**{SCOPE_GENDER: "M"}), {}) == []

    def test_context_globals_do_not_restrict(self):
        algorithm = self._algorithm(patient_age=30, patient_gender="M")
        assert patient_scope_warnings(algorithm, {"age": 80, "gender": "F"}) == []
        assert patient_scope_warnings(algorithm, {"gender": "Other"}) == []

    @pytest.mark.parametrize("gender", ["F", "Female", "Other"])
    def test_template_algorithm_validates_any_gender(self, make_runner, gender):
        algorithm = build_algorithm_from_template("blood")
        algorithm.parameters = [p for p in algorithm.parameters if p.name == "hemoglobine"]
        request = ExecutionRequest(
            results={"hemoglobine": {"result": "14", "qc": "normal"}},
            patient={"gender": gender},
        )
        report = make_runner().run_algorithm(algorithm, request)
        assert report.warnings == []
        assert report.outcome is Outcome.VALIDATED


class TestReportSerialisation:
    def test_to_dict_shape(self, make_runner, algorithm):
        data = make_runner().run_algorithm(algorithm, ExecutionRequest(patient_id="P-1")).to_dict()
        assert data["kind"] == "algorithm"
        assert data["target_id"] == algorithm.id
        assert data["outcome"] == "VALIDATED"
        assert data["counts"] == {"PASS": 2, "FAIL": 0, "SKIP": 0}
        assert data["logs"][0] == {
            "timestamp": "09:30:00",
            "message": "Starting execution for Patient: P-1",
            "level": "info",
        }

    def test_from_dict(self, make_runner, algorithm):
        report = make_runner().run_algorithm(algorithm, ExecutionRequest(seed=5))
        again = ExecutionReport.from_dict(report.to_dict())
        assert again.outcome is report.outcome
        assert again.checks == report.checks
        assert again.started_at == report.started_at


class TestWorkflowRun:
    def test_runs_in_order(self, make_runner, algorithm):
        second = Algorithm(name="Second", id=generate_id())
        workflow = Workflow(name="Daily", algorithm_order=[second.id, algorithm.id], id=generate_id())
        report = make_runner().run_workflow(
            workflow, {algorithm.id: algorithm, second.id: second}, ExecutionRequest(patient_id="P-9")
        )
        assert [r.algorithm_name for r in report.runs] == ["Second", "Glucose check"]
        assert report.outcome is Outcome.VALIDATED
        messages = _messages(report)
        assert messages[0] == "Starting workflow: Daily"
        assert "Step 1/2: Second" in messages
        assert "Step 2/2: Glucose check" in messages
        assert report.to_dict()["kind"] == "workflow"

    def test_missing_algorithm_requires_expert(self, make_runner, algorithm):
        ghost = generate_id()
        workflow = Workflow(name="Daily", algorithm_order=[algorithm.id, ghost])
        report = make_runner().run_workflow(workflow, {algorithm.id: algorithm}, ExecutionRequest())
        assert report.missing == [ghost]
        assert report.outcome is Outcome.EXPERT_REQUIRED
        assert f"Step 2/2: algorithm {ghost} not found" in _messages(report)

    def test_any_expert_run_requires_expert(self, make_runner, algorithm):
        algorithm.action = AlgorithmAction.EXPERT
        workflow = Workflow(name="Daily", algorithm_order=[algorithm.id])
        request = ExecutionRequest(results={"glucose": {"result": "0.9", "qc": "normal"}})
        report = make_runner().run_workflow(workflow, {algorithm.id: algorithm}, request)
        assert report.outcome is Outcome.EXPERT_REQUIRED
