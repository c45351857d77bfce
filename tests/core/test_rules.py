"""Tests for the rule interpreter (``evaluate_check`` / ``evaluate_algorithm``)."""

from __future__ import annotations

from datetime import date

import pytest

from labrules.core.models import Algorithm, Parameter, ParameterConfig, SubParameter, ValidationType
from labrules.core.rules import CheckResult, CheckStatus, evaluate_algorithm, evaluate_check


def cfg(type_: str, **kwargs) -> ParameterConfig:
    return ParameterConfig(type=ValidationType(type_), **kwargs)


class TestMissingValues:
    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_required_missing_fails(self, value):
        outcome = evaluate_check(cfg("range", min=1, max=2, required=True), value)
        assert outcome.status is CheckStatus.FAIL
        assert outcome.reason == "required value missing"

    def test_optional_missing_skips(self):
        assert evaluate_check(cfg("range", min=1, max=2), None).status is CheckStatus.SKIP

    def test_required_false_string_skips(self):
        rule = ParameterConfig.from_dict({"type": "range", "min": 1, "max": 2, "required": "false"})
        assert evaluate_check(rule, None).status is CheckStatus.SKIP

    def test_no_config_passes(self):
        assert evaluate_check(None, "anything").passed

    def test_no_config_and_no_value_skips(self):
        assert evaluate_check(None, None).status is CheckStatus.SKIP


class TestRange:
    def test_bounds_inclusive(self):
        rule = cfg("range", min=5, max=15)
        assert evaluate_check(rule, 5).passed
        assert evaluate_check(rule, 15).passed

    def test_below_minimum(self):
        outcome = evaluate_check(cfg("range", min=5, max=15, unit="M/µL"), 4.2)
        assert outcome.status is CheckStatus.FAIL
        assert outcome.reason == "4.2 M/µL below minimum 5"

    def test_above_maximum(self):
        outcome = evaluate_check(cfg("range", max=1.1), "1.3")
        assert outcome.status is CheckStatus.FAIL
        assert "above maximum" in outcome.reason

    def test_comma_decimal_separator(self):
        assert evaluate_check(cfg("range", min=0.7, max=1.1), "0,95").passed

    def test_open_ended(self):
        assert evaluate_check(cfg("range", min=0), 10_000).passed

    def test_non_numeric_fails(self):
        outcome = evaluate_check(cfg("range", min=0, max=1), "high")
        assert outcome.status is CheckStatus.FAIL
        assert "not numeric" in outcome.reason

    def test_boolean_is_not_numeric(self):
        assert evaluate_check(cfg("range", min=0, max=1), True).status is CheckStatus.FAIL

    @pytest.mark.parametrize("value", ["nan", "inf", "-inf", float("nan"), float("inf")])
    def test_non_finite_fails(self, value):
        outcome = evaluate_check(cfg("range", min=0, max=10), value)
        assert outcome.status is CheckStatus.FAIL
        assert "not numeric" in outcome.reason

    def test_infinity_fails_open_ended_range(self):
        assert evaluate_check(cfg("range", min=0), "inf").status is CheckStatus.FAIL


class TestExact:
    def test_numeric_equality(self):
        assert evaluate_check(cfg("exact", value="0"), 0.0).passed
        assert evaluate_check(cfg("exact", value="1.50"), "1.5").passed

    def test_text_equality_is_trimmed(self):
        assert evaluate_check(cfg("exact", value="urine"), " urine ").passed

    def test_mismatch(self):
        assert evaluate_check(cfg("exact", value="0"), "trace").status is CheckStatus.FAIL

    def test_no_expected_value_passes(self):
        assert evaluate_check(cfg("exact"), "anything").passed


class TestContains:
    def test_case_insensitive(self):
        assert evaluate_check(cfg("contains", value="Normal"), "QC NORMAL range").passed

    def test_missing_substring(self):
        outcome = evaluate_check(cfg("contains", value="abnormal"), "normal")
        assert outcome.status is CheckStatus.FAIL


class TestBoolean:
    @pytest.mark.parametrize("value", [True, "yes", "1", "Positive", "+"])
    def test_truthy_values(self, value):
        assert evaluate_check(cfg("boolean"), value).passed

    def test_expected_false(self):
        rule = cfg("boolean", value="negative")
        assert evaluate_check(rule, "neg").passed
        assert evaluate_check(rule, "pos").status is CheckStatus.FAIL

    def test_unrecognised_value(self):
        outcome = evaluate_check(cfg("boolean"), "maybe")
        assert outcome.status is CheckStatus.FAIL
        assert "not a boolean" in outcome.reason


class TestList:
    def test_membership_case_insensitive(self):
        rule = cfg("list", options=["normal", "supra", "infra"])
        assert evaluate_check(rule, "SUPRA").passed
        assert evaluate_check(rule, "elevated").status is CheckStatus.FAIL

    def test_no_options_passes(self):
        assert evaluate_check(cfg("list", options=[]), "x").passed


class TestDate:
    REF = date(2026, 3, 2)

    def test_age_in_days_within_bounds(self):
        rule = cfg("date", min=0, max=30)
        assert evaluate_check(rule, "2026-02-20", reference_date=self.REF).passed

    def test_too_old(self):
        outcome = evaluate_check(cfg("date", max=30), "2025-12-01", reference_date=self.REF)
        assert outcome.status is CheckStatus.FAIL
        assert "maximum 30" in outcome.reason

    def test_in_the_future(self):
        outcome = evaluate_check(cfg("date", min=0), "2026-03-05", reference_date=self.REF)
        assert outcome.status is CheckStatus.FAIL

    def test_datetime_strings_accepted(self):
        assert evaluate_check(cfg("date"), "2026-03-01T08:00:00Z", reference_date=self.REF).passed

    def test_exact_date(self):
        rule = cfg("date", value="2026-03-01")
        assert evaluate_check(rule, "2026-03-01", reference_date=self.REF).passed
        assert evaluate_check(rule, "2026-02-28", reference_date=self.REF).status is CheckStatus.FAIL

    def test_unparseable(self):
        assert evaluate_check(cfg("date"), "yesterday").status is CheckStatus.FAIL


def _algorithm(*parameters: Parameter) -> Algorithm:
    return Algorithm(name="test", parameters=list(parameters))


class TestEvaluateAlgorithm:
    def test_checks_in_document_order(self, algorithm_data):
        algorithm = Algorithm.from_dict(algorithm_data)
        checks = evaluate_algorithm(algorithm, {"glucose": {"result": "0.9", "qc": "normal"}})
        assert [(c.parameter, c.param, c.status) for c in checks] == [
            ("glucose", "result", CheckStatus.PASS),
            ("glucose", "qc", CheckStatus.PASS),
        ]
        assert checks[0].label == "Glucose"
        assert checks[0].type == "range"
        assert checks[0].value == "0.9"

    def test_bare_value_is_the_result(self, algorithm_data):
        algorithm = Algorithm.from_dict(algorithm_data)
        checks = evaluate_algorithm(algorithm, {"glucose": 1.4})
        assert checks[0].status is CheckStatus.FAIL
        # qc is required and absent
        assert checks[1].status is CheckStatus.FAIL

    def test_unconfigured_sub_parameter(self):
        algorithm = _algorithm(Parameter(name="p", sub_parameters=[SubParameter(param="comments")]))
        checks = evaluate_algorithm(algorithm, {"p": {"comments": "ok"}})
        assert checks[0].type == "validation"
        assert checks[0].status is CheckStatus.PASS


class TestInterparameter:
    def _linked(self, target: str) -> Parameter:
        return Parameter(
            name="hemoglobine",
            sub_parameters=[
                SubParameter("result", cfg("range", min=12, max=16)),
                SubParameter("interparameter", cfg("exact", value=target)),
            ],
        )

    def _rouge(self) -> Parameter:
        return Parameter(name="globule_rouge", sub_parameters=[SubParameter("result", cfg("range", min=5, max=15))])

    def test_passes_when_linked_parameter_passes(self):
        algorithm = _algorithm(self._linked("globule_rouge"), self._rouge())
        checks = evaluate_algorithm(algorithm, {"hemoglobine": 14, "globule_rouge": 10})
        link = checks[1]
        assert link.param == "interparameter"
        assert link.status is CheckStatus.PASS
        assert link.value == "globule_rouge"

    def test_fails_when_linked_parameter_fails(self):
        algorithm = _algorithm(self._linked("globule_rouge"), self._rouge())
        checks = evaluate_algorithm(algorithm, {"hemoglobine": 14, "globule_rouge": 20})
        assert checks[1].status is CheckStatus.FAIL
        assert "failed" in checks[1].reason

    def test_unknown_linked_parameter(self):
        checks = evaluate_algorithm(_algorithm(self._linked("plaquettes")), {"hemoglobine": 14})
        assert checks[1].status is CheckStatus.FAIL
        assert "not defined" in checks[1].reason

    def test_no_link_skips(self):
        checks = evaluate_algorithm(_algorithm(self._linked("")), {"hemoglobine": 14})
        assert checks[1].status is CheckStatus.SKIP


class TestCheckResult:
    def test_to_dict_from_dict(self):
        check = CheckResult(
            parameter="glucose", label="Glucose", param="result", type="range",
            status=CheckStatus.FAIL, reason="1.4 above maximum 1.1", value=1.4,
        )
        assert CheckResult.from_dict(check.to_dict()) == check
        assert check.to_dict()["status"] == "FAIL"
