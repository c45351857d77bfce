"""Scraper code generation operation."""

from __future__ import annotations

from labrules.core.logging import get_logger
from labrules.core.scraper import generate_scraper_code, normalize_mappings
from labrules.ops._helpers import failed
from labrules.ops.context import OperationContext
from labrules.ops.requests import GenerateScraperRequest
from labrules.ops.responses import ScraperCode
from labrules.ops.result import OperationResult, start_timer

logger = get_logger(__name__)


def generate_scraper(
    ctx: OperationContext,
    request: GenerateScraperRequest,
) -> OperationResult[ScraperCode]:
    """Render a Playwright script extracting the mapped parameters."""
    timer = start_timer()

    try:
        mappings = normalize_mappings(request.mappings)
        code = generate_scraper_code(request.target_url, mappings)
    except Exception as exc:
        return failed(exc, timer)

    warnings = []
    skipped = len(request.mappings) - len(mappings)
    if skipped:
        warnings.append(f"{skipped} incomplete mapping(s) ignored")
    if not mappings:
        warnings.append("No mappings given; the script extracts nothing")

    logger.info("scraper_generated", parameters=len(mappings), request_id=ctx.request_id)
    return OperationResult.ok(
        ScraperCode(
            target_url=request.target_url.strip(),
            code=code,
            parameters=[m.param for m in mappings],
        ),
        warnings=warnings,
        elapsed_ms=timer.elapsed_ms,
    )
