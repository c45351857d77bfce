"""
CLI: ``labrules run``: execute an algorithm or a workflow.

Results come from ``--results`` (a JSON file mapping parameter name to
``{check: value}`` or to a bare value) and switch the run to ``evaluate``
mode; without them the run is simulated.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from rich.markup import escape

from labrules.cli.utils import console, err_console, fail_result, make_context, print_json, print_warnings

app = typer.Typer(no_args_is_help=True)

_LEVEL_STYLE = {
    "info": "white",
    "success": "green",
    "error": "red",
    "warning": "yellow",
}


def _execution(
    patient_id: str,
    data_source: str,
    analysis_type: str,
    mode: str | None,
    results: Path | None,
    age: float | None,
    gender: str | None,
    seed: int | None,
) -> dict[str, Any]:
    execution: dict[str, Any] = {
        "patient_id": patient_id,
        "data_source": data_source,
        "analysis_type": analysis_type,
        "mode": mode,
        "seed": seed,
    }
    if results is not None:
        try:
            execution["results"] = json.loads(results.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            err_console.print(f"[bold red]Error[/bold red]: cannot read {results}: {exc}")
            raise typer.Exit(code=1) from exc
    patient = {}
    if age is not None:
        patient["age"] = age
    if gender:
        patient["gender"] = gender
    execution["patient"] = patient
    return execution


def _print_logs(logs: list[dict[str, Any]]) -> None:
    for entry in logs:
        style = _LEVEL_STYLE.get(entry.get("level", "info"), "white")
        stamp = escape(f"[{entry['timestamp']}]")
        console.print(f"[dim]{stamp}[/dim] [{style}]{escape(entry['message'])}[/{style}]")


def _print_outcome(report: dict[str, Any]) -> None:
    style = "bold green" if report["outcome"] == "VALIDATED" else "bold yellow"
    console.print(f"\n[{style}]{report['status']}[/{style}]")
    if report.get("id"):
        console.print(f"[dim]Report {report['id']}[/dim]")


@app.command("algorithm")
def run_algorithm(
    algorithm_id: str = typer.Argument(..., help="Algorithm ID"),
    patient_id: str = typer.Option("", "--patient-id", "-p"),
    data_source: str = typer.Option("manual", "--data-source", help="manual, scraper or file"),
    analysis_type: str = typer.Option("blood", "--analysis-type", help="blood, urine, biochemistry or hematology"),
    mode: str | None = typer.Option(None, "--mode", help="simulate or evaluate"),
    results: Path | None = typer.Option(None, "--results", "-r", exists=True, dir_okay=False),
    age: float | None = typer.Option(None, "--age", help="Patient age"),
    gender: str | None = typer.Option(None, "--gender", help="Patient gender (M/F)"),
    seed: int | None = typer.Option(None, "--seed", help="Seed for a reproducible simulation"),
    persist: bool = typer.Option(True, "--persist/--no-persist", help="Store the report"),
    dry_run: bool = typer.Option(False, "--dry-run"),
    store: str | None = typer.Option(None, "--store", "-s", help="Document store URL"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Run one algorithm and print its execution log."""
    from labrules.ops.executions import execute_algorithm as _execute
    from labrules.ops.requests import ExecuteAlgorithmRequest

    execution = _execution(patient_id, data_source, analysis_type, mode, results, age, gender, seed)
    ctx, _ = make_context(store, dry_run=dry_run)
    result = _execute(
        ctx,
        ExecuteAlgorithmRequest(algorithm_id=algorithm_id, execution=execution, persist=persist),
    )
    if not result.success:
        fail_result(result)
    if json_out or dry_run:
        print_json(result.data)
        return

    report = result.data
    print_warnings(result)
    _print_logs(report["logs"])
    counts = report["counts"]
    console.print(f"\n{counts['PASS']} passed, {counts['FAIL']} failed, {counts['SKIP']} skipped")
    _print_outcome(report)


@app.command("workflow")
def run_workflow(
    workflow_id: str = typer.Argument(..., help="Workflow ID"),
    patient_id: str = typer.Option("", "--patient-id", "-p"),
    data_source: str = typer.Option("manual", "--data-source"),
    analysis_type: str = typer.Option("blood", "--analysis-type"),
    mode: str | None = typer.Option(None, "--mode", help="simulate or evaluate"),
    results: Path | None = typer.Option(None, "--results", "-r", exists=True, dir_okay=False),
    age: float | None = typer.Option(None, "--age"),
    gender: str | None = typer.Option(None, "--gender"),
    seed: int | None = typer.Option(None, "--seed"),
    persist: bool = typer.Option(True, "--persist/--no-persist"),
    dry_run: bool = typer.Option(False, "--dry-run"),
    store: str | None = typer.Option(None, "--store", "-s", help="Document store URL"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Run every algorithm of a workflow in order."""
    from labrules.ops.executions import execute_workflow as _execute
    from labrules.ops.requests import ExecuteWorkflowRequest

    execution = _execution(patient_id, data_source, analysis_type, mode, results, age, gender, seed)
    ctx, _ = make_context(store, dry_run=dry_run)
    result = _execute(
        ctx,
        ExecuteWorkflowRequest(workflow_id=workflow_id, execution=execution, persist=persist),
    )
    if not result.success:
        fail_result(result)
    if json_out or dry_run:
        print_json(result.data)
        return

    report = result.data
    print_warnings(result)
    _print_logs(report["logs"])
    for run in report["runs"]:
        console.print(f"  {run['algorithm_name']}: {run['outcome']}")
    _print_outcome(report)
