"""
CLI: ``labrules serve``: start the API server.
"""

from __future__ import annotations

import typer

from labrules.cli.utils import console


def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Bind address (default from settings)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port (default from settings)"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on changes"),
    workers: int = typer.Option(1, "--workers", "-w", help="Number of workers"),
    log_level: str | None = typer.Option(None, "--log-level"),
) -> None:
    """Start the labrules REST API server."""
    import uvicorn

    from labrules.api.deps import get_settings
    from labrules.core.logging import configure_logging

    settings = get_settings()
    level = (log_level or settings.log_level).upper()
    configure_logging(level=level, json_format=settings.log_json)

    host = host or settings.host
    port = port or settings.port
    console.print(f"[bold green]Starting labrules API[/bold green] on {host}:{port}")
    uvicorn.run(
        "labrules.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=workers,
        log_level=level.lower(),
    )
