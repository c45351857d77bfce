"""Tests for the httpx-based API client."""

from __future__ import annotations

import json

import httpx
import pytest

from labrules.client import ApiError, LabRulesClient

STORED_ID = "65f0c1d2e3a4b5c6d7e8f901"


def make_client(handler) -> LabRulesClient:
    return LabRulesClient("http://lab.test/", transport=httpx.MockTransport(handler))


def envelope(data, status: int = 200) -> httpx.Response:
    return httpx.Response(status, json={"data": data, "elapsed_ms": 1.0, "warnings": []})


def problem(status: int, title: str, code: str) -> httpx.Response:
    return httpx.Response(status, json={"title": title, "status": status, "code": code})


class TestAlgorithms:
    def test_get_algorithms_unwraps_envelope(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = request.url
            return httpx.Response(200, json={"data": [{"id": STORED_ID, "name": "Glucose"}], "page": {"total": 1}})

        with make_client(handler) as client:
            algorithms = client.get_algorithms(search="glu")
        assert algorithms == [{"id": STORED_ID, "name": "Glucose"}]
        assert seen["url"].path == "/api/algorithms"
        assert seen["url"].params["search"] == "glu"
        assert seen["url"].params["page_size"] == "1000"

    def test_get_algorithms_returns_empty_on_error(self):
        with make_client(lambda request: problem(503, "Store unavailable", "UNAVAILABLE")) as client:
            assert client.get_algorithms() == []

    def test_get_algorithms_returns_empty_when_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with make_client(handler) as client:
            assert client.get_algorithms() == []

    def test_get_algorithm_not_found_raises(self):
        with make_client(lambda request: problem(404, f"Algorithm '{STORED_ID}' not found", "NOT_FOUND")) as client:
            with pytest.raises(ApiError) as excinfo:
                client.get_algorithm(STORED_ID)
        assert excinfo.value.status == 404
        assert excinfo.value.code == "NOT_FOUND"
        assert excinfo.value.retryable is False
        assert str(excinfo.value) == f"API error 404: Algorithm '{STORED_ID}' not found"

    def test_save_new_algorithm_posts_without_id(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return envelope({"id": STORED_ID, "name": "Glucose"}, status=201)

        with make_client(handler) as client:
            saved = client.save_algorithm({"id": "draft-1", "name": "Glucose"})
        assert saved["id"] == STORED_ID
        assert seen["method"] == "POST"
        assert seen["path"] == "/api/algorithms"
        assert seen["body"] == {"name": "Glucose"}

    def test_save_stored_algorithm_puts(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            return envelope({"id": STORED_ID, "name": "Glucose"})

        with make_client(handler) as client:
            client.save_algorithm({"_id": STORED_ID, "name": "Glucose"})
        assert seen == {"method": "PUT", "path": f"/api/algorithms/{STORED_ID}"}

    def test_duplicate(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return envelope({"id": "65f0c1d2e3a4b5c6d7e8f902", "name": "Copy"}, status=201)

        with make_client(handler) as client:
            client.duplicate_algorithm(STORED_ID, name="Copy")
        assert seen["path"] == f"/api/algorithms/{STORED_ID}/duplicate"
        assert seen["body"] == {"name": "Copy"}


class TestWorkflowsAndExecutions:
    def test_get_workflows_lenient(self):
        with make_client(lambda request: problem(500, "Internal Server Error", "INTERNAL")) as client:
            assert client.get_workflows() == []

    def test_save_workflow_validation_error(self):
        with make_client(lambda request: problem(400, "Select at least one algorithm", "VALIDATION_FAILED")) as client:
            with pytest.raises(ApiError) as excinfo:
                client.save_workflow({"name": "Daily", "algorithm_order": []})
        assert excinfo.value.status == 400
        assert excinfo.value.message == "Select at least one algorithm"

    def test_run_algorithm_sends_execution_body(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return envelope({"outcome": "VALIDATED", "status": "Execution Complete: VALIDATED"})

        with make_client(handler) as client:
            report = client.run_algorithm(STORED_ID, patient_id="P-1", seed=7)
        assert report["outcome"] == "VALIDATED"
        assert seen["path"] == f"/api/executions/algorithms/{STORED_ID}"
        assert seen["body"] == {"patient_id": "P-1", "seed": 7}

    def test_server_error_is_retryable(self):
        with make_client(lambda request: httpx.Response(502, text="Bad Gateway")) as client:
            with pytest.raises(ApiError) as excinfo:
                client.run_workflow(STORED_ID)
        assert excinfo.value.status == 502
        assert excinfo.value.retryable is True
        assert excinfo.value.message == "Bad Gateway"

    @pytest.mark.parametrize("body", [["not", "an", "object"], "oops", 42])
    def test_non_object_error_body(self, body):
        with make_client(lambda request: httpx.Response(400, json=body)) as client:
            with pytest.raises(ApiError) as excinfo:
                client.get_algorithm(STORED_ID)
        assert excinfo.value.status == 400
        assert excinfo.value.message == "Bad Request"
        assert excinfo.value.code is None


class TestHealth:
    def test_ready(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            return httpx.Response(200, json={"status": "healthy"})

        with make_client(handler) as client:
            assert client.check_health() is True
        assert seen["path"] == "/health/ready"

    def test_not_ready(self):
        with make_client(lambda request: httpx.Response(503, json={"status": "unhealthy"})) as client:
            assert client.check_health() is False

    def test_custom_prefix(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            return envelope({"id": STORED_ID})

        client = LabRulesClient("http://lab.test", api_prefix="/lab/api/", transport=httpx.MockTransport(handler))
        client.get_execution(STORED_ID)
        client.close()
        assert seen["path"] == f"/lab/api/executions/{STORED_ID}"
