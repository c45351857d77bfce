"""Settings every labrules entry point reads.

Values come from ``LABRULES_``-prefixed environment variables or a ``.env``
file, e.g. ``LABRULES_STORE_URL=sqlite:///var/lib/labrules/labrules.db``.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LabRulesSettings(BaseSettings):
    """Store location, logging and execution pacing.

    ``log_json=None`` renders JSON unless the log stream is a terminal.  The
    two rates drive simulated runs only.
    """

    model_config = SettingsConfigDict(
        env_prefix="LABRULES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Storage ──────────────────────────────────────────────────
    store_url: str = Field(
        default="sqlite:///labrules.db",
        description="Document store URL",
    )

    # ── Observability ────────────────────────────────────────────
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool | None = None

    # ── Execution ────────────────────────────────────────────────
    execution_step_delay: float = Field(default=0.0, ge=0.0, le=10.0)
    execution_pass_rate: float = Field(default=0.8, ge=0.0, le=1.0)
    execution_validate_rate: float = Field(default=0.3, ge=0.0, le=1.0)
