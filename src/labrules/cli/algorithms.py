"""
CLI: ``labrules algorithms``: algorithm CRUD commands.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from rich.table import Table

from labrules.cli.utils import (
    console,
    err_console,
    fail_result,
    make_context,
    output_paged,
    output_result,
    print_json,
    print_warnings,
)

app = typer.Typer(no_args_is_help=True)

_SUMMARY_COLUMNS = ["id", "name", "action", "parameter_count", "check_count", "last_modified"]


def _describe_config(config: dict[str, Any] | None) -> str:
    if not config:
        return "[dim]not configured[/dim]"
    kind = config.get("type", "")
    if kind == "range":
        text = f"range {config.get('min', '')}..{config.get('max', '')}"
    elif kind == "list":
        text = "one of " + ", ".join(config.get("options") or [])
    elif kind == "date":
        text = "date"
        if config.get("min") is not None or config.get("max") is not None:
            text += f" {config.get('min', '')}..{config.get('max', '')} days"
    else:
        text = f"{kind} {config.get('value', '')}".strip()
    if config.get("unit"):
        text += f" {config['unit']}"
    if config.get("required"):
        text += " (required)"
    return text


def _print_algorithm(algorithm: dict[str, Any]) -> None:
    console.print(f"[bold]{algorithm['name']}[/bold]  [dim]{algorithm.get('id') or ''}[/dim]")
    if algorithm.get("description"):
        console.print(f"  {algorithm['description']}")
    console.print(f"  [cyan]action[/cyan]: {algorithm.get('action')}")
    for value in algorithm.get("global_parameters") or []:
        console.print(f"  [cyan]{value['name']}[/cyan]: {value.get('value')}")

    table = Table(show_lines=False, pad_edge=False)
    table.add_column("parameter")
    table.add_column("check")
    table.add_column("rule", overflow="fold")
    for parameter in algorithm.get("parameters") or []:
        label = parameter.get("label") or parameter["name"]
        subs = parameter.get("sub_parameters") or []
        if not subs:
            table.add_row(label, "", "[dim]no checks[/dim]")
        for sub in subs:
            table.add_row(label, sub["param"], _describe_config(sub.get("config")))
            label = ""
    console.print(table)


@app.command("list")
def list_algorithms(
    search: str | None = typer.Option(None, "--search", "-q", help="Match name or description"),
    limit: int = typer.Option(50, "--limit", "-n"),
    offset: int = typer.Option(0, "--offset"),
    store: str | None = typer.Option(None, "--store", "-s", help="Document store URL"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List stored algorithms."""
    from labrules.ops.algorithms import list_algorithms as _list
    from labrules.ops.requests import ListAlgorithmsRequest

    ctx, _ = make_context(store)
    result = _list(ctx, ListAlgorithmsRequest(search=search, limit=limit, offset=offset))
    output_paged(result, as_json=json_out, title="Algorithms", columns=_SUMMARY_COLUMNS)


@app.command("get")
def get_algorithm(
    algorithm_id: str = typer.Argument(..., help="Algorithm ID"),
    store: str | None = typer.Option(None, "--store", "-s", help="Document store URL"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show an algorithm with its parameters and checks."""
    from labrules.ops.algorithms import get_algorithm as _get
    from labrules.ops.requests import GetAlgorithmRequest

    ctx, _ = make_context(store)
    result = _get(ctx, GetAlgorithmRequest(algorithm_id=algorithm_id))
    if not result.success:
        fail_result(result)
    if json_out:
        print_json(result.data.to_dict())
        return
    _print_algorithm(result.data.to_dict())


@app.command("delete")
def delete_algorithm(
    algorithm_id: str = typer.Argument(..., help="Algorithm ID"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without deleting"),
    store: str | None = typer.Option(None, "--store", "-s", help="Document store URL"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Delete an algorithm.  Workflows that still use it are reported."""
    from labrules.ops.algorithms import delete_algorithm as _delete
    from labrules.ops.requests import DeleteAlgorithmRequest

    ctx, _ = make_context(store, dry_run=dry_run)
    result = _delete(ctx, DeleteAlgorithmRequest(algorithm_id=algorithm_id))
    output_result(result, as_json=json_out, title="Algorithm Deleted")


@app.command("duplicate")
def duplicate_algorithm(
    algorithm_id: str = typer.Argument(..., help="Algorithm ID"),
    name: str | None = typer.Option(None, "--name", help="Name of the copy"),
    store: str | None = typer.Option(None, "--store", "-s", help="Document store URL"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Copy an algorithm under a new id."""
    from labrules.ops.algorithms import duplicate_algorithm as _duplicate
    from labrules.ops.requests import DuplicateAlgorithmRequest

    ctx, _ = make_context(store)
    result = _duplicate(ctx, DuplicateAlgorithmRequest(algorithm_id=algorithm_id, name=name))
    if not result.success:
        fail_result(result)
    if json_out:
        print_json(result.data.to_dict())
        return
    console.print(f"[green]Created[/green] {result.data.name} ({result.data.id})")


@app.command("from-template")
def from_template(
    template_key: str = typer.Argument(..., help="blood, urine, biochemistry or hematology"),
    name: str | None = typer.Option(None, "--name", help="Algorithm name (default: template name)"),
    description: str = typer.Option("", "--description"),
    action: str = typer.Option("validate", "--action", help="validate, expert or conditional"),
    store: str | None = typer.Option(None, "--store", "-s", help="Document store URL"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Create an algorithm from a catalog template."""
    from labrules.ops.algorithms import create_from_template as _create
    from labrules.ops.requests import CreateFromTemplateRequest

    ctx, _ = make_context(store)
    result = _create(
        ctx,
        CreateFromTemplateRequest(
            template_key=template_key,
            name=name,
            description=description,
            action=action,
        ),
    )
    if not result.success:
        fail_result(result)
    if json_out:
        print_json(result.data.to_dict())
        return
    console.print(f"[green]Created[/green] {result.data.name} ({result.data.id})")


@app.command("import")
def import_algorithms(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file"),
    keep_ids: bool = typer.Option(False, "--keep-ids", help="Reuse the ids stored in the file"),
    store: str | None = typer.Option(None, "--store", "-s", help="Document store URL"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Import algorithms from a JSON file.

    The file holds one algorithm document, a list of them, or an object
    with an ``algorithms`` list.
    """
    from labrules.ops.algorithms import create_algorithm as _create
    from labrules.ops.requests import CreateAlgorithmRequest

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        err_console.print(f"[bold red]Error[/bold red]: cannot read {path}: {exc}")
        raise typer.Exit(code=1) from exc

    if isinstance(payload, dict):
        documents = payload.get("algorithms", [payload])
    else:
        documents = payload

    ctx, _ = make_context(store)
    imported: list[dict[str, Any]] = []
    failures = 0
    for document in documents:
        if not isinstance(document, dict):
            failures += 1
            err_console.print("[red]Skipped[/red] entry that is not a JSON object")
            continue
        result = _create(ctx, CreateAlgorithmRequest(data=document, keep_id=keep_ids))
        if not result.success:
            failures += 1
            err_console.print(
                f"[red]Skipped[/red] {document.get('name') or '<unnamed>'}: {result.error.message}"
            )
            continue
        print_warnings(result)
        imported.append({"id": result.data.id, "name": result.data.name})

    if json_out:
        print_json({"imported": imported, "failed": failures})
    else:
        console.print(f"Imported {len(imported)} algorithm(s), {failures} failed")
    if failures:
        raise typer.Exit(code=1)
