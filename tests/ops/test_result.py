"""Tests for OperationResult / PagedResult envelopes."""

from __future__ import annotations

from labrules.core.errors import ConflictError, NotFoundError, StorageError, ValidationError
from labrules.ops.result import OperationResult, PagedResult, error_code_for, start_timer


class TestErrorCodes:
    def test_mapping(self):
        assert error_code_for(ValidationError("x")) == "VALIDATION_FAILED"
        assert error_code_for(NotFoundError("Algorithm", "a")) == "NOT_FOUND"
        assert error_code_for(ConflictError("x")) == "CONFLICT"
        assert error_code_for(StorageError("x")) == "UNAVAILABLE"
        assert error_code_for(RuntimeError("x")) == "INTERNAL"


class TestOperationResult:
    def test_ok(self):
        result = OperationResult.ok({"id": "a"}, warnings=["w"])
        assert result.success is True
        assert result.to_dict() == {"success": True, "data": {"id": "a"}, "warnings": ["w"]}

    def test_from_domain_error(self):
        result = OperationResult.from_error(ValidationError("bad min", field="min"))
        assert result.success is False
        assert result.error.code == "VALIDATION_FAILED"
        assert result.error.details == {"field": "min"}
        assert result.to_dict()["error"]["details"] == {"field": "min"}

    def test_from_unexpected_error(self):
        result = OperationResult.from_error(KeyError())
        assert result.error.code == "INTERNAL"
        assert result.error.message == "KeyError"


class TestPagedResult:
    def test_has_more(self):
        assert PagedResult.from_items([1, 2], total=5, limit=2, offset=0).has_more is True
        assert PagedResult.from_items([5], total=5, limit=2, offset=4).has_more is False

    def test_to_dict(self):
        d = PagedResult.from_items([1], total=1, limit=10).to_dict()
        assert d["total"] == 1
        assert d["limit"] == 10
        assert d["has_more"] is False


class TestTimer:
    def test_elapsed_non_negative(self):
        assert start_timer().elapsed_ms >= 0
