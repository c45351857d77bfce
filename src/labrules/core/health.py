"""Health endpoints for the labrules service.

``/health`` reports every dependency probe, ``/health/ready`` answers 503
until all of them pass and ``/health/live`` only proves the process is up.
The document store is the one dependency labrules has; :func:`store_check`
wraps it as a probe.

Usage::

    app.include_router(
        create_health_router("labrules", version="1.0.0", probes=[store_check(store)])
    )
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from labrules.core.timestamps import utc_now

if TYPE_CHECKING:
    from labrules.core.store import DocumentStore

HealthState = Literal["healthy", "degraded", "unhealthy"]

_STARTED = time.monotonic()


class ProbeResult(BaseModel):
    status: HealthState
    latency_ms: float | None = None
    error: str | None = None


class HealthReport(BaseModel):
    """Body of ``GET /health`` and ``GET /health/ready``."""

    status: HealthState = "healthy"
    service: str = ""
    version: str = ""
    uptime_s: float = 0.0
    timestamp: str = ""
    checks: dict[str, ProbeResult] = Field(default_factory=dict)


class LivenessResponse(BaseModel):
    status: str = "alive"


@dataclass(frozen=True)
class Probe:
    """A named dependency check.

    ``check`` returns a truthy value when the dependency answers; a falsy
    return or any exception marks it down.  A non-critical probe that is
    down only degrades the service.
    """

    name: str
    check: Callable[[], object]
    critical: bool = True


def store_check(store: DocumentStore, *, name: str = "store") -> Probe:
    """Probe that pings the document store."""
    return Probe(name=name, check=store.ping)


def run_probe(probe: Probe) -> ProbeResult:
    start = time.perf_counter()
    error: str | None = None
    try:
        if not probe.check():
            error = f"{probe.name} did not answer"
    except Exception as exc:  # noqa: BLE001 - reported in the health body
        error = f"{type(exc).__name__}: {exc}"[:200]
    latency_ms = round((time.perf_counter() - start) * 1000, 2)
    return ProbeResult(
        status="unhealthy" if error else "healthy",
        latency_ms=latency_ms,
        error=error,
    )


def overall_status(results: dict[str, ProbeResult], probes: list[Probe]) -> HealthState:
    down = [p for p in probes if results[p.name].status != "healthy"]
    if any(p.critical for p in down):
        return "unhealthy"
    return "degraded" if down else "healthy"


def create_health_router(
    service_name: str,
    *,
    version: str,
    probes: list[Probe] | None = None,
    prefix: str = "/health",
) -> APIRouter:
    """Build the health router.

    ``/health`` fails (503) only when a critical probe is down;
    ``/health/ready`` fails as soon as any probe is down.
    """
    router = APIRouter(tags=["health"])
    registered = list(probes or [])

    def _report() -> HealthReport:
        results = {p.name: run_probe(p) for p in registered}
        return HealthReport(
            status=overall_status(results, registered),
            service=service_name,
            version=version,
            uptime_s=round(time.monotonic() - _STARTED, 1),
            timestamp=utc_now().isoformat(),
            checks=results,
        )

    @router.get(prefix, response_model=HealthReport)
    def health() -> JSONResponse:
        report = _report()
        code = 503 if report.status == "unhealthy" else 200
        return JSONResponse(report.model_dump(), status_code=code)

    @router.get(f"{prefix}/ready", response_model=HealthReport)
    def readiness() -> JSONResponse:
        report = _report()
        code = 200 if report.status == "healthy" else 503
        return JSONResponse(report.model_dump(), status_code=code)

    @router.get(f"{prefix}/live", response_model=LivenessResponse)
    def liveness() -> LivenessResponse:
        return LivenessResponse()

    return router
