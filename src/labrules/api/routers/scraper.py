"""
Scraper router: generate a Playwright extraction script.

POST /scraper/generate
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from labrules.api.deps import OpContext
from labrules.api.schemas.common import SuccessResponse
from labrules.api.schemas.domains import ScraperCodeSchema
from labrules.api.utils import _dc, _handle_error

router = APIRouter(prefix="/scraper", tags=["scraper"])


class GenerateScraperBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    target_url: str = Field(default="", validation_alias=AliasChoices("target_url", "targetUrl"))
    mappings: list[dict[str, Any]] = Field(default_factory=list)


@router.post("/generate", response_model=SuccessResponse[ScraperCodeSchema])
def generate_scraper(ctx: OpContext, body: GenerateScraperBody):
    """Render a Playwright script that reads each mapped selector.

    Example:
        POST /api/scraper/generate
        {"targetUrl": "https://lab.example/results",
         "mappings": [{"param": "glucose", "selector": "#glucose"}]}

    Raises:
        400 VALIDATION_FAILED: Blank URL or a parameter name that is not a
            valid identifier.
    """
    from labrules.ops.requests import GenerateScraperRequest
    from labrules.ops.scraper import generate_scraper as _generate

    result = _generate(
        ctx,
        GenerateScraperRequest(target_url=body.target_url, mappings=body.mappings),
    )
    if not result.success:
        return _handle_error(result, instance="/scraper/generate")
    return SuccessResponse(
        data=ScraperCodeSchema(**_dc(result.data)),
        elapsed_ms=result.elapsed_ms,
        warnings=result.warnings,
    )
