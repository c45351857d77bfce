"""Tests for the labrules error hierarchy."""

from __future__ import annotations

from labrules.core.errors import (
    ConfigError,
    ConflictError,
    ErrorCategory,
    ExecutionError,
    LabRulesError,
    NotFoundError,
    RuleConfigError,
    StorageError,
    TemplateNotFoundError,
    ValidationError,
)


class TestLabRulesError:
    def test_defaults(self):
        err = LabRulesError("boom")
        assert err.message == "boom"
        assert err.category is ErrorCategory.INTERNAL
        assert err.retryable is False
        assert err.context == {}

    def test_cause_is_chained(self):
        cause = OSError("disk full")
        err = StorageError("write failed", cause=cause)
        assert err.__cause__ is cause
        assert err.to_dict()["cause"] == "disk full"

    def test_overrides_do_not_leak_to_class(self):
        err = StorageError("x", retryable=False, category=ErrorCategory.CONFIG)
        assert err.retryable is False
        assert err.category is ErrorCategory.CONFIG
        assert StorageError("y").retryable is True
        assert StorageError("y").category is ErrorCategory.STORAGE

    def test_context_in_dict(self):
        err = LabRulesError("x", context={"algorithm_id": "a1"})
        assert err.to_dict()["context"] == {"algorithm_id": "a1"}

    def test_storage_errors_are_retryable(self):
        assert StorageError("down").retryable is True
        assert ConflictError("dup").retryable is False
        assert ConflictError("dup").category is ErrorCategory.STORAGE


class TestSubclasses:
    def test_validation_error_to_dict(self):
        data = ValidationError("bad min", field="min", value="low").to_dict()
        assert data["category"] == "VALIDATION"
        assert data["field"] == "min"
        assert data["value"] == "'low'"

    def test_rule_config_error_is_validation(self):
        err = RuleConfigError("'min' must be a number", field="min")
        assert isinstance(err, ValidationError)
        assert err.category is ErrorCategory.VALIDATION

    def test_not_found_message(self):
        err = NotFoundError("Algorithm", "abc")
        assert str(err) == "Algorithm 'abc' not found"
        assert err.context == {"kind": "Algorithm", "key": "abc"}

    def test_template_not_found(self):
        err = TemplateNotFoundError("saliva")
        assert err.category is ErrorCategory.NOT_FOUND
        assert err.message == "Template 'saliva' not found"

    def test_categories(self):
        assert ConfigError("x").category is ErrorCategory.CONFIG
        assert ExecutionError("x").category is ErrorCategory.EXECUTION
