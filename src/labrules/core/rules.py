"""Rule interpreter for parameter configs.

Applies a :class:`~labrules.core.models.ParameterConfig` to a measured
value and reports PASS, FAIL or SKIP with a human-readable reason.

Coercion rules:
    range     float, ``","`` accepted as decimal separator, inclusive bounds
    exact     numeric equality when both sides are numeric, else stripped
              case-sensitive string equality
    contains  case-insensitive substring of the expected value
    boolean   true/yes/1/positive/pos/+ and false/no/0/negative/neg/-
    list      case-insensitive membership in options
    date      ISO date; optional exact date, min/max age in days

A missing value (``None`` or blank) FAILs a required check and SKIPs an
optional one.

Tags:
    rules, validation, interpreter, labrules-core
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any

from labrules.core.catalog import INTERPARAMETER
from labrules.core.models import Algorithm, ParameterConfig, ValidationType
from labrules.core.timestamps import parse_date, utc_now

_TRUE = frozenset({"true", "yes", "1", "positive", "pos", "+"})
_FALSE = frozenset({"false", "no", "0", "negative", "neg", "-"})


class CheckStatus(str, Enum):
    PASS = "PASS"
    FAIL = "FAIL"
    SKIP = "SKIP"


@dataclass(frozen=True, slots=True)
class CheckOutcome:
    status: CheckStatus
    reason: str = ""

    @property
    def passed(self) -> bool:
        return self.status is CheckStatus.PASS


@dataclass(frozen=True, slots=True)
class CheckResult:
    """Outcome of one sub-parameter check within an algorithm run."""

    parameter: str
    label: str
    param: str
    type: str
    status: CheckStatus
    reason: str = ""
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "parameter": self.parameter,
            "label": self.label,
            "param": self.param,
            "type": self.type,
            "status": self.status.value,
            "reason": self.reason,
            "value": self.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CheckResult:
        return cls(
            parameter=data.get("parameter", ""),
            label=data.get("label", ""),
            param=data.get("param", ""),
            type=data.get("type", ""),
            status=CheckStatus(data.get("status", "SKIP")),
            reason=data.get("reason", ""),
            value=data.get("value"),
        )


# ── Coercion ─────────────────────────────────────────────────────────────


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _to_float(value: Any) -> float | None:
    """Finite number for *value*; ``nan`` and ``inf`` are not measurements."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().replace(",", "."))
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _to_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    return None


def _fmt(number: float) -> str:
    return f"{number:g}"


# ── Per-type checks ──────────────────────────────────────────────────────


def _check_range(config: ParameterConfig, value: Any) -> CheckOutcome:
    number = _to_float(value)
    if number is None:
        return CheckOutcome(CheckStatus.FAIL, f"'{value}' is not numeric")
    unit = f" {config.unit}" if config.unit else ""
    if config.min is not None and number < config.min:
        return CheckOutcome(CheckStatus.FAIL, f"{_fmt(number)}{unit} below minimum {_fmt(config.min)}")
    if config.max is not None and number > config.max:
        return CheckOutcome(CheckStatus.FAIL, f"{_fmt(number)}{unit} above maximum {_fmt(config.max)}")
    return CheckOutcome(CheckStatus.PASS, f"{_fmt(number)}{unit} within range")


def _check_exact(config: ParameterConfig, value: Any) -> CheckOutcome:
    if _is_missing(config.value):
        return CheckOutcome(CheckStatus.PASS, "no expected value")
    actual, expected = _to_float(value), _to_float(config.value)
    if actual is not None and expected is not None:
        matched = actual == expected
    else:
        matched = str(value).strip() == str(config.value).strip()
    if matched:
        return CheckOutcome(CheckStatus.PASS, f"equals '{config.value}'")
    return CheckOutcome(CheckStatus.FAIL, f"'{value}' does not equal '{config.value}'")


def _check_contains(config: ParameterConfig, value: Any) -> CheckOutcome:
    if _is_missing(config.value):
        return CheckOutcome(CheckStatus.PASS, "no expected text")
    needle = str(config.value).strip().lower()
    if needle in str(value).lower():
        return CheckOutcome(CheckStatus.PASS, f"contains '{config.value}'")
    return CheckOutcome(CheckStatus.FAIL, f"'{value}' does not contain '{config.value}'")


def _check_boolean(config: ParameterConfig, value: Any) -> CheckOutcome:
    actual = _to_bool(value)
    if actual is None:
        return CheckOutcome(CheckStatus.FAIL, f"'{value}' is not a boolean")
    expected = True if config.value is None else _to_bool(config.value)
    if expected is None:
        expected = True
    if actual is expected:
        return CheckOutcome(CheckStatus.PASS, f"is {str(expected).lower()}")
    return CheckOutcome(CheckStatus.FAIL, f"expected {str(expected).lower()}")


def _check_list(config: ParameterConfig, value: Any) -> CheckOutcome:
    if not config.options:
        return CheckOutcome(CheckStatus.PASS, "no options configured")
    allowed = {o.strip().lower() for o in config.options}
    if str(value).strip().lower() in allowed:
        return CheckOutcome(CheckStatus.PASS, f"'{value}' is an allowed option")
    return CheckOutcome(
        CheckStatus.FAIL, f"'{value}' not in [{', '.join(config.options)}]"
    )


def _check_date(
    config: ParameterConfig, value: Any, reference_date: date | None
) -> CheckOutcome:
    actual = parse_date(value)
    if actual is None:
        return CheckOutcome(CheckStatus.FAIL, f"'{value}' is not a date")
    expected = parse_date(config.value)
    if expected is not None and actual != expected:
        return CheckOutcome(CheckStatus.FAIL, f"{actual.isoformat()} is not {expected.isoformat()}")
    reference = reference_date or utc_now().date()
    age_days = (reference - actual).days
    if config.min is not None and age_days < config.min:
        return CheckOutcome(CheckStatus.FAIL, f"{age_days} days old, minimum {_fmt(config.min)}")
    if config.max is not None and age_days > config.max:
        return CheckOutcome(CheckStatus.FAIL, f"{age_days} days old, maximum {_fmt(config.max)}")
    return CheckOutcome(CheckStatus.PASS, f"{actual.isoformat()} accepted")


def evaluate_check(
    config: ParameterConfig | None,
    value: Any,
    *,
    reference_date: date | None = None,
) -> CheckOutcome:
    """Apply *config* to *value*."""
    if _is_missing(value):
        if config is not None and config.required:
            return CheckOutcome(CheckStatus.FAIL, "required value missing")
        return CheckOutcome(CheckStatus.SKIP, "no value")
    if config is None:
        return CheckOutcome(CheckStatus.PASS, "no rule configured")

    match config.type:
        case ValidationType.RANGE:
            return _check_range(config, value)
        case ValidationType.EXACT:
            return _check_exact(config, value)
        case ValidationType.CONTAINS:
            return _check_contains(config, value)
        case ValidationType.BOOLEAN:
            return _check_boolean(config, value)
        case ValidationType.LIST:
            return _check_list(config, value)
        case ValidationType.DATE:
            return _check_date(config, value, reference_date)
    return CheckOutcome(CheckStatus.FAIL, f"unknown rule type '{config.type}'")


# ── Algorithm-level evaluation ───────────────────────────────────────────


def _values_for(results: Mapping[str, Any], parameter: str) -> Mapping[str, Any]:
    raw = results.get(parameter)
    if raw is None:
        return {}
    if isinstance(raw, Mapping):
        return raw
    return {"result": raw}


def evaluate_algorithm(
    algorithm: Algorithm,
    results: Mapping[str, Any],
    *,
    reference_date: date | None = None,
) -> list[CheckResult]:
    """Evaluate every check of *algorithm* against measured *results*.

    Linked-parameter checks are resolved after all direct checks, so the
    order of parameters in the algorithm does not matter.
    """
    direct: dict[tuple[int, int], CheckResult] = {}
    failing: set[str] = set()

    for pi, parameter in enumerate(algorithm.parameters):
        values = _values_for(results, parameter.name)
        for si, sub in enumerate(parameter.sub_parameters):
            if sub.param == INTERPARAMETER:
                continue
            value = values.get(sub.param)
            outcome = evaluate_check(sub.config, value, reference_date=reference_date)
            if outcome.status is CheckStatus.FAIL:
                failing.add(parameter.name)
            direct[(pi, si)] = CheckResult(
                parameter=parameter.name,
                label=parameter.display_name,
                param=sub.param,
                type=sub.config.type.value if sub.config else "validation",
                status=outcome.status,
                reason=outcome.reason,
                value=value,
            )

    known = {p.name for p in algorithm.parameters}
    checks: list[CheckResult] = []
    for pi, parameter in enumerate(algorithm.parameters):
        for si, sub in enumerate(parameter.sub_parameters):
            if (pi, si) in direct:
                checks.append(direct[(pi, si)])
                continue
            target = str(sub.config.value).strip() if sub.config and sub.config.value else ""
            if not target:
                outcome = CheckOutcome(CheckStatus.SKIP, "no linked parameter")
            elif target not in known:
                outcome = CheckOutcome(CheckStatus.FAIL, f"linked parameter '{target}' not defined")
            elif target in failing:
                outcome = CheckOutcome(CheckStatus.FAIL, f"linked parameter '{target}' failed")
            else:
                outcome = CheckOutcome(CheckStatus.PASS, f"linked parameter '{target}' passed")
            checks.append(
                CheckResult(
                    parameter=parameter.name,
                    label=parameter.display_name,
                    param=sub.param,
                    type=sub.config.type.value if sub.config else "validation",
                    status=outcome.status,
                    reason=outcome.reason,
                    value=target or None,
                )
            )
    return checks


__all__ = [
    "CheckOutcome",
    "CheckResult",
    "CheckStatus",
    "evaluate_algorithm",
    "evaluate_check",
]
