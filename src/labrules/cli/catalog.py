"""
CLI: ``labrules catalog``: browse parameter definitions and templates.
"""

from __future__ import annotations

import typer

from labrules.cli.utils import make_context, output_paged, output_result

app = typer.Typer(no_args_is_help=True)


@app.command("parameters")
def list_parameters(
    scope: str | None = typer.Option(None, "--scope", help="global or specific"),
    category: str | None = typer.Option(None, "--category", "-c"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List the checks that can be attached to a parameter."""
    from labrules.ops.catalog import list_parameter_definitions as _list
    from labrules.ops.requests import ListParameterDefinitionsRequest

    ctx, _ = make_context("memory://")
    result = _list(ctx, ListParameterDefinitionsRequest(scope=scope, category=category))
    output_paged(
        result,
        as_json=json_out,
        title="Parameter definitions",
        columns=["name", "label", "type", "is_global", "category", "default_config"],
    )


@app.command("globals")
def list_globals(json_out: bool = typer.Option(False, "--json")) -> None:
    """List the patient-level values every algorithm carries."""
    from labrules.ops.catalog import list_global_parameters as _list

    ctx, _ = make_context("memory://")
    output_paged(_list(ctx), as_json=json_out, title="Global parameters")


@app.command("templates")
def list_templates(
    key: str | None = typer.Argument(None, help="Show one template in full"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List algorithm templates, or show one."""
    from labrules.ops.catalog import get_template as _get
    from labrules.ops.catalog import list_templates as _list
    from labrules.ops.requests import GetTemplateRequest

    ctx, _ = make_context("memory://")
    if key:
        output_result(_get(ctx, GetTemplateRequest(key=key)), as_json=json_out, title=f"Template: {key}")
        return
    output_paged(_list(ctx), as_json=json_out, title="Templates")
