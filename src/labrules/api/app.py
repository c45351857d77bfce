"""
The labrules FastAPI application.

:func:`create_app` is the only place where the document store, the execution
runner and the routers meet.  ``labrules serve`` calls it with settings from
the environment; tests pass an in-memory store and a seeded runner.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from labrules.api.deps import get_settings
from labrules.api.middleware.errors import unhandled_exception_handler
from labrules.api.middleware.request_id import RequestIDMiddleware
from labrules.api.middleware.timing import TimingMiddleware
from labrules.api.settings import LabRulesAPISettings
from labrules.core.execution import ExecutionRunner
from labrules.core.logging import get_logger
from labrules.core.store import DocumentStore, open_store

log = get_logger("labrules.api")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    store: DocumentStore = app.state.store
    log.info("api_started", version=app.version, store=type(store).__name__)
    try:
        yield
    finally:
        store.close()
        log.info("api_stopped")


def create_app(
    *,
    settings: LabRulesAPISettings | None = None,
    store: DocumentStore | None = None,
    runner: ExecutionRunner | None = None,
) -> FastAPI:
    """Assemble the API.

    ``store`` and ``runner`` default to ones built from ``settings``, which in
    turn default to the environment.  Resource routers mount under
    ``settings.api_prefix``; the health router stays at the root.
    """
    from labrules.api.routers import algorithms, catalog, executions, scraper, workflows
    from labrules.core.health import create_health_router, store_check

    settings = settings or get_settings()
    prefix = settings.api_prefix
    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
        docs_url=f"{prefix}/docs",
        redoc_url=f"{prefix}/redoc",
        openapi_url=f"{prefix}/openapi.json",
    )
    app.dependency_overrides[get_settings] = lambda: settings

    app.state.settings = settings
    app.state.store = store or open_store(settings.store_url)
    app.state.runner = runner or ExecutionRunner(
        step_delay=settings.execution_step_delay,
        pass_rate=settings.execution_pass_rate,
        validate_rate=settings.execution_validate_rate,
    )

    # last added runs first: CORS, request id, timing
    app.add_middleware(TimingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(Exception, unhandled_exception_handler)

    health = create_health_router(
        "labrules",
        version=settings.api_version,
        probes=[store_check(app.state.store)],
    )
    app.include_router(health)
    for module in (algorithms, workflows, executions, catalog, scraper):
        app.include_router(module.router, prefix=prefix)

    return app
