"""
CLI: ``labrules scraper``: generate Playwright extraction scripts.
"""

from __future__ import annotations

from pathlib import Path

import typer

from labrules.cli.utils import console, err_console, fail_result, make_context, print_json, print_warnings

app = typer.Typer(no_args_is_help=True)


def _parse_mapping(raw: str) -> dict[str, str]:
    param, sep, selector = raw.partition("=")
    if not sep:
        raise typer.BadParameter(f"expected PARAM=SELECTOR, got {raw!r}")
    return {"param": param.strip(), "selector": selector.strip()}


@app.command("generate")
def generate(
    target_url: str = typer.Argument(..., help="Page holding the lab results"),
    mappings: list[str] = typer.Option(
        [], "--map", "-m", help="PARAM=CSS_SELECTOR; repeat for each parameter"
    ),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the script to a file"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Generate a Playwright script that reads each mapped selector."""
    from labrules.ops.requests import GenerateScraperRequest
    from labrules.ops.scraper import generate_scraper as _generate

    ctx, _ = make_context("memory://")
    result = _generate(
        ctx,
        GenerateScraperRequest(
            target_url=target_url,
            mappings=[_parse_mapping(m) for m in mappings],
        ),
    )
    if not result.success:
        fail_result(result)

    if json_out:
        print_json(
            {
                "target_url": result.data.target_url,
                "parameters": result.data.parameters,
                "code": result.data.code,
            }
        )
        return

    print_warnings(result)
    if output is not None:
        output.write_text(result.data.code, encoding="utf-8")
        err_console.print(f"[green]Wrote[/green] {output}")
        return
    console.print(result.data.code, markup=False, highlight=False)
