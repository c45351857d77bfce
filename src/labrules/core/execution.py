"""Algorithm and workflow execution.

An execution walks an algorithm through a fixed seven-step sequence,
producing a timestamped log and a final outcome of ``VALIDATED`` or
``EXPERT_REQUIRED``.

Two modes are supported:

``simulate``
    Every check's PASS/FAIL and the final outcome are drawn from a
    pseudo-random generator.  Runs are reproducible: the seed is recorded
    on the report and can be passed back in.
``evaluate``
    Each check is applied to measured values with
    :func:`labrules.core.rules.evaluate_algorithm` and the outcome follows
    from the algorithm's action.

Step sequence::

    1. Initializing algorithm...
    2. Loading parameter configurations...
    3. Fetching data from source...
    4. Validating parameter conditions...   ← checks run here
    5. Executing algorithm logic...
    6. Generating results...
    7. Finalizing execution...

Tags:
    execution, simulation, workflows, labrules-core
"""

from __future__ import annotations

import random
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from labrules.core.catalog import SCOPE_AGE_MAX, SCOPE_AGE_MIN, SCOPE_GENDER
from labrules.core.errors import ValidationError
from labrules.core.logging import get_logger, log_context
from labrules.core.models import Algorithm, AlgorithmAction, ExecutionLog, LogLevel, Workflow
from labrules.core.rules import CheckResult, CheckStatus, evaluate_algorithm
from labrules.core.timestamps import from_iso8601, to_iso8601, utc_now

logger = get_logger(__name__)

EXECUTION_STEPS: tuple[str, ...] = (
    "Initializing algorithm...",
    "Loading parameter configurations...",
    "Fetching data from source...",
    "Validating parameter conditions...",
    "Executing algorithm logic...",
    "Generating results...",
    "Finalizing execution...",
)
_VALIDATION_STEP = 3


class DataSource(str, Enum):
    MANUAL = "manual"
    SCRAPER = "scraper"
    FILE = "file"


class AnalysisType(str, Enum):
    BLOOD = "blood"
    URINE = "urine"
    BIOCHEMISTRY = "biochemistry"
    HEMATOLOGY = "hematology"


class ExecutionMode(str, Enum):
    SIMULATE = "simulate"
    EVALUATE = "evaluate"


class Outcome(str, Enum):
    VALIDATED = "VALIDATED"
    EXPERT_REQUIRED = "EXPERT_REQUIRED"


def _enum(enum_cls: type[Enum], raw: Any, field_name: str) -> Any:
    if isinstance(raw, enum_cls):
        return raw
    try:
        return enum_cls(str(raw).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(m.value for m in enum_cls)  # type: ignore[attr-defined]
        raise ValidationError(
            f"Invalid {field_name} '{raw}' (expected one of: {allowed})",
            field=field_name,
            value=raw,
        ) from exc


# ── Request / reports ────────────────────────────────────────────────────


@dataclass
class ExecutionRequest:
    """What to run an algorithm against.

    ``results`` maps parameter name to ``{sub-param: value}``; a bare value
    is taken as that parameter's ``result``.  ``patient`` carries context
    such as ``age`` and ``gender``.
    """

    patient_id: str = ""
    data_source: DataSource = DataSource.MANUAL
    analysis_type: AnalysisType = AnalysisType.BLOOD
    mode: ExecutionMode | None = None
    results: dict[str, Any] = field(default_factory=dict)
    patient: dict[str, Any] = field(default_factory=dict)
    seed: int | None = None

    @property
    def effective_mode(self) -> ExecutionMode:
        if self.mode is not None:
            return self.mode
        return ExecutionMode.EVALUATE if self.results else ExecutionMode.SIMULATE

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ExecutionRequest:
        mode = data.get("mode")
        seed = data.get("seed")
        return cls(
            patient_id=str(data.get("patient_id") or data.get("patientId") or ""),
            data_source=_enum(DataSource, data.get("data_source") or data.get("dataSource") or "manual", "data_source"),
            analysis_type=_enum(
                AnalysisType, data.get("analysis_type") or data.get("analysisType") or "blood", "analysis_type"
            ),
            mode=_enum(ExecutionMode, mode, "mode") if mode else None,
            results=dict(data.get("results") or {}),
            patient=dict(data.get("patient") or {}),
            seed=int(seed) if seed is not None else None,
        )


@dataclass
class ExecutionReport:
    """Result of running one algorithm."""

    algorithm_id: str | None
    algorithm_name: str
    patient_id: str
    mode: ExecutionMode
    outcome: Outcome
    analysis_type: AnalysisType = AnalysisType.BLOOD
    data_source: DataSource = DataSource.MANUAL
    progress: float = 0.0
    checks: list[CheckResult] = field(default_factory=list)
    logs: list[ExecutionLog] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    seed: int | None = None
    id: str | None = None

    kind = "algorithm"

    @property
    def status(self) -> str:
        return f"Execution Complete: {self.outcome.value}"

    @property
    def validated(self) -> bool:
        return self.outcome is Outcome.VALIDATED

    def counts(self) -> dict[str, int]:
        tally = {s.value: 0 for s in CheckStatus}
        for check in self.checks:
            tally[check.status.value] += 1
        return tally

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "target_id": self.algorithm_id,
            "algorithm_id": self.algorithm_id,
            "algorithm_name": self.algorithm_name,
            "patient_id": self.patient_id,
            "mode": self.mode.value,
            "analysis_type": self.analysis_type.value,
            "data_source": self.data_source.value,
            "outcome": self.outcome.value,
            "status": self.status,
            "progress": self.progress,
            "checks": [c.to_dict() for c in self.checks],
            "counts": self.counts(),
            "logs": [entry.to_dict() for entry in self.logs],
            "warnings": list(self.warnings),
            "started_at": to_iso8601(self.started_at),
            "completed_at": to_iso8601(self.completed_at),
            "seed": self.seed,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ExecutionReport:
        return cls(
            id=data.get("id"),
            algorithm_id=data.get("algorithm_id"),
            algorithm_name=data.get("algorithm_name", ""),
            patient_id=data.get("patient_id", ""),
            mode=ExecutionMode(data.get("mode", "simulate")),
            outcome=Outcome(data.get("outcome", "EXPERT_REQUIRED")),
            analysis_type=AnalysisType(data.get("analysis_type", "blood")),
            data_source=DataSource(data.get("data_source", "manual")),
            progress=float(data.get("progress", 0.0)),
            checks=[CheckResult.from_dict(c) for c in data.get("checks") or []],
            logs=[ExecutionLog.from_dict(entry) for entry in data.get("logs") or []],
            warnings=list(data.get("warnings") or []),
            started_at=from_iso8601(data.get("started_at")),
            completed_at=from_iso8601(data.get("completed_at")),
            seed=data.get("seed"),
        )


@dataclass
class WorkflowExecutionReport:
    """Result of running every algorithm of a workflow in order."""

    workflow_id: str | None
    workflow_name: str
    patient_id: str
    mode: ExecutionMode
    outcome: Outcome
    runs: list[ExecutionReport] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    logs: list[ExecutionLog] = field(default_factory=list)
    progress: float = 0.0
    started_at: datetime | None = None
    completed_at: datetime | None = None
    seed: int | None = None
    id: str | None = None

    kind = "workflow"

    @property
    def status(self) -> str:
        return f"Execution Complete: {self.outcome.value}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "target_id": self.workflow_id,
            "workflow_id": self.workflow_id,
            "workflow_name": self.workflow_name,
            "patient_id": self.patient_id,
            "mode": self.mode.value,
            "outcome": self.outcome.value,
            "status": self.status,
            "progress": self.progress,
            "runs": [r.to_dict() for r in self.runs],
            "missing": list(self.missing),
            "logs": [entry.to_dict() for entry in self.logs],
            "started_at": to_iso8601(self.started_at),
            "completed_at": to_iso8601(self.completed_at),
            "seed": self.seed,
        }


# ── Runner ───────────────────────────────────────────────────────────────


class _LogBuffer:
    def __init__(self, clock: Callable[[], datetime]) -> None:
        self._clock = clock
        self.entries: list[ExecutionLog] = []

    def add(self, message: str, level: LogLevel = LogLevel.INFO) -> None:
        self.entries.append(
            ExecutionLog(timestamp=self._clock().strftime("%H:%M:%S"), message=message, level=level)
        )


_CHECK_LEVEL = {
    CheckStatus.PASS: LogLevel.SUCCESS,
    CheckStatus.FAIL: LogLevel.ERROR,
    CheckStatus.SKIP: LogLevel.INFO,
}


def _as_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool) or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def patient_scope_warnings(algorithm: Algorithm, patient: Mapping[str, Any]) -> list[str]:
    """Reasons *patient* falls outside the algorithm's age/gender scope.

    Only the ``SCOPE_*`` globals restrict; an algorithm without them accepts
    every patient.
    """
    warnings: list[str] = []
    age = _as_float(patient.get("age"))
    if age is not None:
        low = _as_float(algorithm.global_value(SCOPE_AGE_MIN))
        high = _as_float(algorithm.global_value(SCOPE_AGE_MAX))
        if (low is not None and age < low) or (high is not None and age > high):
            bounds = "-".join(f"{b:g}" if b is not None else "" for b in (low, high))
            warnings.append(f"Patient age {age:g} outside algorithm scope ({bounds})")
    gender = str(patient.get("gender") or "").strip().upper()
    expected = str(algorithm.global_value(SCOPE_GENDER) or "").strip().upper()
    if gender and expected and gender[0] != expected[0]:
        warnings.append(f"Patient gender {gender} outside algorithm scope ({expected})")
    return warnings


class ExecutionRunner:
    """Runs algorithms and workflows.

    Parameters:
        rng: Random source for ``simulate`` mode.  When omitted a fresh
            ``random.Random`` is seeded per run (from the request seed, or
            a generated one recorded on the report).
        step_delay: Pause after each step, in seconds.
        sleep: Sleep function (injectable for tests).
        clock: Returns the current aware datetime.
        pass_rate: Probability that a simulated check passes.
        validate_rate: Probability that a simulated run validates.
    """

    def __init__(
        self,
        *,
        rng: random.Random | None = None,
        step_delay: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] | None = None,
        pass_rate: float = 0.8,
        validate_rate: float = 0.3,
    ) -> None:
        self._rng = rng
        self.step_delay = step_delay
        self._sleep = sleep
        self._clock = clock or utc_now
        self.pass_threshold = round(1.0 - pass_rate, 10)
        self.validate_threshold = round(1.0 - validate_rate, 10)

    def _rng_for(self, request: ExecutionRequest) -> tuple[random.Random, int | None]:
        if request.seed is not None:
            return random.Random(request.seed), request.seed
        if self._rng is not None:
            return self._rng, None
        seed = random.SystemRandom().randrange(2**32)
        return random.Random(seed), seed

    def _pause(self) -> None:
        if self.step_delay > 0:
            self._sleep(self.step_delay)

    # -- algorithm ---------------------------------------------------------

    def run_algorithm(
        self,
        algorithm: Algorithm,
        request: ExecutionRequest,
        *,
        rng: random.Random | None = None,
        seed: int | None = None,
    ) -> ExecutionReport:
        """Run *algorithm* through the step sequence."""
        if rng is None:
            rng, seed = self._rng_for(request)
        mode = request.effective_mode
        started = self._clock()
        log = _LogBuffer(self._clock)

        with log_context(algorithm_id=algorithm.id, patient_id=request.patient_id):
            logger.info("execution_started", algorithm=algorithm.name, mode=mode.value)

            log.add(f"Starting execution for Patient: {request.patient_id}")
            log.add(f"Algorithm: {algorithm.name}")
            log.add(f"Analysis Type: {request.analysis_type.value}")
            log.add(f"Data Source: {request.data_source.value}")
            if algorithm.global_parameters:
                log.add("Global Parameters:")
                for gp in algorithm.global_parameters:
                    log.add(f"  └─ {gp.name}: {gp.value}")
            log.add("---")

            checks: list[CheckResult] = []
            progress = 0.0
            for i, step in enumerate(EXECUTION_STEPS):
                log.add(step)
                if i == _VALIDATION_STEP:
                    checks = self._run_checks(algorithm, request, mode, rng, log)
                progress = (i + 1) / len(EXECUTION_STEPS) * 100
                self._pause()

            warnings: list[str] = []
            if mode is ExecutionMode.SIMULATE:
                outcome = Outcome.VALIDATED if rng.random() > self.validate_threshold else Outcome.EXPERT_REQUIRED
            else:
                outcome = self._decide(algorithm.action, checks)
                warnings = patient_scope_warnings(algorithm, request.patient)
                for warning in warnings:
                    log.add(warning, LogLevel.WARNING)
                if warnings:
                    outcome = Outcome.EXPERT_REQUIRED

            _log_outcome(log, outcome)
            logger.info("execution_completed", outcome=outcome.value, checks=len(checks))

        return ExecutionReport(
            algorithm_id=algorithm.id,
            algorithm_name=algorithm.name,
            patient_id=request.patient_id,
            mode=mode,
            outcome=outcome,
            analysis_type=request.analysis_type,
            data_source=request.data_source,
            progress=progress,
            checks=checks,
            logs=log.entries,
            warnings=warnings,
            started_at=started,
            completed_at=self._clock(),
            seed=seed,
        )

    def _run_checks(
        self,
        algorithm: Algorithm,
        request: ExecutionRequest,
        mode: ExecutionMode,
        rng: random.Random,
        log: _LogBuffer,
    ) -> list[CheckResult]:
        if mode is ExecutionMode.EVALUATE:
            evaluated = evaluate_algorithm(
                algorithm, request.results, reference_date=self._clock().date()
            )
        else:
            evaluated = []
            for parameter in algorithm.parameters:
                for sub in parameter.sub_parameters:
                    passed = rng.random() > self.pass_threshold
                    evaluated.append(
                        CheckResult(
                            parameter=parameter.name,
                            label=parameter.display_name,
                            param=sub.param,
                            type=sub.config.type.value if sub.config else "validation",
                            status=CheckStatus.PASS if passed else CheckStatus.FAIL,
                            reason="simulated",
                        )
                    )

        remaining = list(evaluated)
        for parameter in algorithm.parameters:
            log.add(f"Checking {parameter.display_name}:")
            for _ in parameter.sub_parameters:
                check = remaining.pop(0)
                log.add(
                    f"  └─ {check.param}: {check.type} → {check.status.value}",
                    _CHECK_LEVEL[check.status],
                )
        return evaluated

    @staticmethod
    def _decide(action: AlgorithmAction, checks: list[CheckResult]) -> Outcome:
        failed = any(c.status is CheckStatus.FAIL for c in checks)
        skipped = any(c.status is CheckStatus.SKIP for c in checks)
        if action is AlgorithmAction.EXPERT:
            return Outcome.EXPERT_REQUIRED
        if action is AlgorithmAction.CONDITIONAL:
            return Outcome.VALIDATED if not failed and not skipped else Outcome.EXPERT_REQUIRED
        return Outcome.VALIDATED if not failed else Outcome.EXPERT_REQUIRED

    # -- workflow ----------------------------------------------------------

    def run_workflow(
        self,
        workflow: Workflow,
        algorithms: Mapping[str, Algorithm],
        request: ExecutionRequest,
    ) -> WorkflowExecutionReport:
        """Run each algorithm of *workflow* in ``algorithm_order``.

        Ids missing from *algorithms* are logged and count as
        ``EXPERT_REQUIRED``.
        """
        rng, seed = self._rng_for(request)
        started = self._clock()
        log = _LogBuffer(self._clock)
        runs: list[ExecutionReport] = []
        missing: list[str] = []
        total = len(workflow.algorithm_order)

        with log_context(workflow_id=workflow.id, patient_id=request.patient_id):
            logger.info("workflow_execution_started", workflow=workflow.name, algorithms=total)
            log.add(f"Starting workflow: {workflow.name}")

            for position, algorithm_id in enumerate(workflow.algorithm_order, start=1):
                algorithm = algorithms.get(algorithm_id)
                if algorithm is None:
                    missing.append(algorithm_id)
                    log.add(f"Step {position}/{total}: algorithm {algorithm_id} not found", LogLevel.ERROR)
                    logger.error("workflow_algorithm_missing", algorithm_id=algorithm_id)
                    continue
                log.add(f"Step {position}/{total}: {algorithm.name}")
                report = self.run_algorithm(algorithm, request, rng=rng, seed=seed)
                runs.append(report)
                log.entries.extend(report.logs)

            validated = not missing and bool(runs) and all(r.validated for r in runs)
            outcome = Outcome.VALIDATED if validated else Outcome.EXPERT_REQUIRED
            log.add("===")
            _log_outcome(log, outcome)
            logger.info("workflow_execution_completed", outcome=outcome.value, missing=len(missing))

        return WorkflowExecutionReport(
            workflow_id=workflow.id,
            workflow_name=workflow.name,
            patient_id=request.patient_id,
            mode=request.effective_mode,
            outcome=outcome,
            runs=runs,
            missing=missing,
            logs=log.entries,
            progress=100.0,
            started_at=started,
            completed_at=self._clock(),
            seed=seed,
        )


def _log_outcome(log: _LogBuffer, outcome: Outcome) -> None:
    if outcome is Outcome.VALIDATED:
        log.add("Result: VALIDATED", LogLevel.SUCCESS)
        log.add("All parameters passed validation criteria", LogLevel.SUCCESS)
        log.add("Patient analysis approved for reporting", LogLevel.SUCCESS)
    else:
        log.add("Result: EXPERT_REQUIRED", LogLevel.WARNING)
        log.add("Some parameters require expert review", LogLevel.WARNING)
        log.add("Flagged for manual validation", LogLevel.WARNING)


__all__ = [
    "AnalysisType",
    "DataSource",
    "EXECUTION_STEPS",
    "ExecutionMode",
    "ExecutionReport",
    "ExecutionRequest",
    "ExecutionRunner",
    "Outcome",
    "WorkflowExecutionReport",
    "patient_scope_warnings",
]
