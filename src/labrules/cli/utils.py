"""Shared plumbing for CLI commands: opening the store and printing results."""

from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.table import Table

from labrules.core.execution import ExecutionRunner
from labrules.core.settings import LabRulesSettings
from labrules.core.store import DocumentStore, open_store
from labrules.ops.context import OperationContext
from labrules.ops.result import OperationResult, PagedResult

console = Console()
err_console = Console(stderr=True)


def make_context(
    store_url: str | None = None,
    *,
    dry_run: bool = False,
) -> tuple[OperationContext, DocumentStore]:
    """Open the store named by ``--store`` (or ``LABRULES_STORE_URL``)."""
    settings = LabRulesSettings()
    store = open_store(store_url or settings.store_url)
    runner = ExecutionRunner(
        step_delay=settings.execution_step_delay,
        pass_rate=settings.execution_pass_rate,
        validate_rate=settings.execution_validate_rate,
    )
    return OperationContext(store=store, runner=runner, caller="cli", dry_run=dry_run), store


def as_plain(obj: Any) -> Any:
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if is_dataclass(obj):
        return asdict(obj)
    return obj


def fail_result(result: OperationResult) -> NoReturn:
    """Report a failed result on stderr and exit 1."""
    if result.error is None:
        err_console.print("[bold red]Error[/bold red]: unknown failure")
    else:
        err_console.print(f"[bold red]Error[/bold red] ({result.error.code}): {result.error.message}")
    raise typer.Exit(code=1)


def print_warnings(result: OperationResult) -> None:
    for warning in result.warnings:
        err_console.print(f"[yellow]Warning:[/yellow] {warning}")


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))


def output_result(result: OperationResult, *, as_json: bool = False, title: str = "") -> None:
    if not result.success:
        fail_result(result)
    if as_json:
        print_json(as_plain(result.data))
        return
    print_warnings(result)
    record = as_plain(result.data)
    if title:
        console.print(f"[bold]{title}[/bold]")
    for key, value in record.items():
        console.print(f"  [cyan]{key}[/cyan]: {_cell(value)}")


def output_paged(
    result: PagedResult,
    *,
    as_json: bool = False,
    title: str = "",
    columns: list[str] | None = None,
) -> None:
    """Print one page as a table, or as ``{"items": [...], "total": ...}`` JSON."""
    if not result.success:
        fail_result(result)
    rows = [as_plain(item) for item in result.data or []]

    if as_json:
        print_json(
            {
                "items": rows,
                "total": result.total,
                "limit": result.limit,
                "offset": result.offset,
                "has_more": result.has_more,
            }
        )
        return
    if not rows:
        console.print("[dim]No items.[/dim]")
        return

    table = Table(title=title or None, pad_edge=False)
    names = columns or list(rows[0])
    for name in names:
        table.add_column(name, overflow="fold")
    for row in rows:
        table.add_row(*(_cell(row.get(name)) for name in names))
    console.print(table)
    console.print(f"\n[dim]Showing {len(rows)} of {result.total} (offset {result.offset})[/dim]")


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list | dict):
        return json.dumps(value, default=str)
    return str(value)
