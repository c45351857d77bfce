"""REST transport settings, layered on :class:`LabRulesSettings`.

``LABRULES_PORT=8080 LABRULES_API_PREFIX=/lab labrules serve`` moves the
whole API under ``/lab`` on port 8080.
"""

from __future__ import annotations

from pydantic import Field

from labrules import __version__
from labrules.core.settings import LabRulesSettings


class LabRulesAPISettings(LabRulesSettings):
    host: str = "0.0.0.0"
    port: int = Field(default=3001, ge=1, le=65535)

    api_prefix: str = Field(default="/api", description="Mount point of every resource router")
    api_title: str = "labrules API"
    api_version: str = __version__

    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
