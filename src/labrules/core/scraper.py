"""Playwright scraper code generation.

Turns a target URL and a list of parameter → CSS selector mappings into a
standalone Python script that collects each parameter's text from a lab
portal page.  The script is only generated, never run here.

Tags:
    scraper, codegen, playwright, labrules-core
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping as MappingABC
from typing import Any

from labrules.core.errors import ValidationError
from labrules.core.models import Mapping

_HEADER = '''from playwright.sync_api import sync_playwright


def scrape_parameters(url={url}):
    with sync_playwright() as p:
        browser = p.chromium.launch()
        page = browser.new_page()
        page.goto(url)

        parameters = {{}}
'''

_EXTRACT = '''
        # Extract {param}
        try:
            {param}_element = page.locator({selector})
            parameters[{key}] = {param}_element.inner_text()
        except Exception:
            parameters[{key}] = None
'''

_FOOTER = '''
        browser.close()
        return parameters


# Usage
# data = scrape_parameters()
# print(data)
'''


def _quote(text: str) -> str:
    """Double-quoted Python string literal.

    A JSON string is also a valid Python literal for the same text.
    """
    return json.dumps(text, ensure_ascii=False)


def normalize_mappings(mappings: Iterable[Mapping | MappingABC[str, Any]]) -> list[Mapping]:
    """Drop incomplete mappings and check parameter names are identifiers."""
    result: list[Mapping] = []
    for raw in mappings:
        if isinstance(raw, Mapping):
            param, selector = raw.param, raw.selector
        else:
            param, selector = raw.get("param"), raw.get("selector")
        param = str(param or "").strip()
        selector = str(selector or "").strip()
        if not param or not selector:
            continue
        if not param.isidentifier():
            raise ValidationError(
                f"Parameter name '{param}' is not a valid identifier",
                field="param",
                value=param,
            )
        result.append(Mapping(param=param, selector=selector))
    return result


def generate_scraper_code(target_url: str, mappings: Iterable[Mapping | MappingABC[str, Any]]) -> str:
    """Render the Playwright script for *target_url*."""
    url = (target_url or "").strip()
    if not url:
        raise ValidationError("Target URL is required", field="target_url")

    parts = [_HEADER.format(url=_quote(url))]
    for mapping in normalize_mappings(mappings):
        parts.append(
            _EXTRACT.format(
                param=mapping.param,
                key=_quote(mapping.param),
                selector=_quote(mapping.selector),
            )
        )
    parts.append(_FOOTER)
    return "".join(parts)


__all__ = ["generate_scraper_code", "normalize_mappings"]
