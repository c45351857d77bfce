"""
HTTP client for the labrules REST API.

A thin synchronous wrapper over :class:`httpx.Client` for scripts and
front-ends.  Responses are unwrapped from their ``SuccessResponse`` /
``PagedResponse`` envelope; failures raise :class:`ApiError` carrying the
HTTP status and the ProblemDetail title.

The two list calls are lenient: an unreachable or failing API yields an
empty list and a warning log, so a dashboard can still render.

Example:
    >>> from labrules.client import LabRulesClient
    >>> with LabRulesClient("http://localhost:3001") as client:
    ...     for algorithm in client.get_algorithms():
    ...         print(algorithm["name"])

Tags:
    labrules, client, httpx, REST
"""

from __future__ import annotations

from typing import Any

import httpx

from labrules.core.errors import ErrorCategory, LabRulesError
from labrules.core.logging import get_logger
from labrules.core.timestamps import is_valid_id

logger = get_logger(__name__)


class ApiError(LabRulesError):
    """An API call failed.

    ``status`` is the HTTP status code, or ``0`` when no response arrived.
    """

    def __init__(self, status: int, message: str, *, code: str | None = None, cause: Exception | None = None):
        super().__init__(
            message,
            category=ErrorCategory.STORAGE if status in (0, 503) else ErrorCategory.INTERNAL,
            retryable=status == 0 or status >= 500,
            context={"status": status, "code": code},
            cause=cause,
        )
        self.status = status
        self.code = code

    def __str__(self) -> str:
        return f"API error {self.status}: {self.message}"


class LabRulesClient:
    """Synchronous client for the labrules API.

    Args:
        base_url: Server root, e.g. ``http://localhost:3001``.
        timeout: Per-request timeout in seconds.
        api_prefix: Path prefix of the API routes.
        transport: Optional httpx transport (``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3001",
        *,
        timeout: float = 10.0,
        api_prefix: str = "/api",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_prefix = api_prefix.rstrip("/")
        self._http = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> LabRulesClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # ── Transport ────────────────────────────────────────────────────

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = path if path.startswith("/health") else f"{self.api_prefix}{path}"
        try:
            response = self._http.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise ApiError(0, f"{method} {url} failed: {exc}", cause=exc) from exc

        if response.is_error:
            try:
                problem = response.json()
            except ValueError:
                problem = None
            if not isinstance(problem, dict):
                problem = {}
            message = problem.get("title") or problem.get("detail") or response.reason_phrase
            raise ApiError(response.status_code, message, code=problem.get("code"))

        if not response.content:
            return None
        return response.json()

    def _data(self, method: str, path: str, **kwargs: Any) -> Any:
        body = self._request(method, path, **kwargs)
        return body.get("data") if isinstance(body, dict) else body

    # ── Algorithms ───────────────────────────────────────────────────

    def get_algorithms(self, *, search: str | None = None) -> list[dict[str, Any]]:
        """All algorithm summaries; ``[]`` when the API call fails."""
        params: dict[str, Any] = {"page_size": 1000}
        if search:
            params["search"] = search
        try:
            return self._data("GET", "/algorithms", params=params) or []
        except ApiError as exc:
            logger.warning("algorithms_fetch_failed", status=exc.status, error=exc.message)
            return []

    def get_algorithm(self, algorithm_id: str) -> dict[str, Any]:
        return self._data("GET", f"/algorithms/{algorithm_id}")

    def save_algorithm(self, algorithm: dict[str, Any]) -> dict[str, Any]:
        """Update when the algorithm carries a stored id, create otherwise."""
        algorithm_id = algorithm.get("id") or algorithm.get("_id")
        if isinstance(algorithm_id, str) and is_valid_id(algorithm_id):
            return self._data("PUT", f"/algorithms/{algorithm_id}", json=algorithm)
        payload = {k: v for k, v in algorithm.items() if k not in ("id", "_id")}
        return self._data("POST", "/algorithms", json=payload)

    def delete_algorithm(self, algorithm_id: str) -> dict[str, Any]:
        return self._data("DELETE", f"/algorithms/{algorithm_id}")

    def duplicate_algorithm(self, algorithm_id: str, name: str | None = None) -> dict[str, Any]:
        return self._data("POST", f"/algorithms/{algorithm_id}/duplicate", json={"name": name})

    # ── Workflows ────────────────────────────────────────────────────

    def get_workflows(self) -> list[dict[str, Any]]:
        """All workflow summaries; ``[]`` when the API call fails."""
        try:
            return self._data("GET", "/workflows", params={"page_size": 1000}) or []
        except ApiError as exc:
            logger.warning("workflows_fetch_failed", status=exc.status, error=exc.message)
            return []

    def get_workflow(self, workflow_id: str) -> dict[str, Any]:
        return self._data("GET", f"/workflows/{workflow_id}")

    def save_workflow(self, workflow: dict[str, Any]) -> dict[str, Any]:
        workflow_id = workflow.get("id") or workflow.get("_id")
        if isinstance(workflow_id, str) and is_valid_id(workflow_id):
            return self._data("PUT", f"/workflows/{workflow_id}", json=workflow)
        payload = {k: v for k, v in workflow.items() if k not in ("id", "_id")}
        return self._data("POST", "/workflows", json=payload)

    def delete_workflow(self, workflow_id: str) -> dict[str, Any]:
        return self._data("DELETE", f"/workflows/{workflow_id}")

    # ── Executions ───────────────────────────────────────────────────

    def run_algorithm(self, algorithm_id: str, **execution: Any) -> dict[str, Any]:
        """Run an algorithm; keyword arguments become the execution body."""
        return self._data("POST", f"/executions/algorithms/{algorithm_id}", json=execution)

    def run_workflow(self, workflow_id: str, **execution: Any) -> dict[str, Any]:
        return self._data("POST", f"/executions/workflows/{workflow_id}", json=execution)

    def get_execution(self, execution_id: str) -> dict[str, Any]:
        return self._data("GET", f"/executions/{execution_id}")

    # ── Health ───────────────────────────────────────────────────────

    def check_health(self) -> bool:
        """True when ``/health/ready`` answers 200."""
        try:
            self._request("GET", "/health/ready")
        except ApiError as exc:
            logger.warning("health_check_failed", status=exc.status, error=exc.message)
            return False
        return True
