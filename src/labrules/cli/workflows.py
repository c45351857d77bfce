"""
CLI: ``labrules workflows``: workflow CRUD commands.
"""

from __future__ import annotations

import typer
from rich.table import Table

from labrules.cli.utils import (
    console,
    fail_result,
    make_context,
    output_paged,
    output_result,
    print_json,
    print_warnings,
)

app = typer.Typer(no_args_is_help=True)


@app.command("list")
def list_workflows(
    search: str | None = typer.Option(None, "--search", "-q"),
    limit: int = typer.Option(50, "--limit", "-n"),
    offset: int = typer.Option(0, "--offset"),
    store: str | None = typer.Option(None, "--store", "-s", help="Document store URL"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List stored workflows."""
    from labrules.ops.requests import ListWorkflowsRequest
    from labrules.ops.workflows import list_workflows as _list

    ctx, _ = make_context(store)
    result = _list(ctx, ListWorkflowsRequest(search=search, limit=limit, offset=offset))
    output_paged(result, as_json=json_out, title="Workflows")


@app.command("get")
def get_workflow(
    workflow_id: str = typer.Argument(..., help="Workflow ID"),
    store: str | None = typer.Option(None, "--store", "-s", help="Document store URL"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show a workflow and the algorithms it runs, in order."""
    from dataclasses import asdict

    from labrules.ops.requests import GetWorkflowRequest
    from labrules.ops.workflows import get_workflow as _get

    ctx, _ = make_context(store)
    result = _get(ctx, GetWorkflowRequest(workflow_id=workflow_id))
    if not result.success:
        fail_result(result)

    detail = result.data
    if json_out:
        print_json(asdict(detail))
        return

    print_warnings(result)
    console.print(f"[bold]{detail.name}[/bold]  [dim]{detail.id}[/dim]")
    table = Table(show_lines=False, pad_edge=False)
    table.add_column("#", justify="right")
    table.add_column("algorithm")
    table.add_column("id", style="dim")
    for step in detail.steps:
        name = step.name if step.found else "[red]missing[/red]"
        table.add_row(str(step.position), name, step.algorithm_id)
    console.print(table)


@app.command("create")
def create_workflow(
    name: str = typer.Argument(..., help="Workflow name"),
    algorithms: list[str] = typer.Option(
        ..., "--algorithm", "-a", help="Algorithm ID; repeat in execution order"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Validate without saving"),
    store: str | None = typer.Option(None, "--store", "-s", help="Document store URL"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Create a workflow from an ordered list of algorithms."""
    from labrules.ops.requests import CreateWorkflowRequest
    from labrules.ops.workflows import create_workflow as _create

    ctx, _ = make_context(store, dry_run=dry_run)
    result = _create(
        ctx,
        CreateWorkflowRequest(data={"name": name, "algorithm_order": list(algorithms)}),
    )
    output_result(result, as_json=json_out, title="Workflow Created")


@app.command("delete")
def delete_workflow(
    workflow_id: str = typer.Argument(..., help="Workflow ID"),
    dry_run: bool = typer.Option(False, "--dry-run"),
    store: str | None = typer.Option(None, "--store", "-s", help="Document store URL"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Delete a workflow."""
    from labrules.ops.requests import DeleteWorkflowRequest
    from labrules.ops.workflows import delete_workflow as _delete

    ctx, _ = make_context(store, dry_run=dry_run)
    result = _delete(ctx, DeleteWorkflowRequest(workflow_id=workflow_id))
    output_result(result, as_json=json_out, title="Workflow Deleted")
