"""Engine configuration.

Configuration is loaded from:
- environment variables (prefixed with `TICKFLOW_`)
- and a local `.env` file (if present)

Notes:
    Pydantic-settings supports overriding the env file in tests via:
    `EngineSettings(_env_file=path_to_env)`.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tickflow.logging import configure_logging

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class EngineSettings(BaseSettings):
    """Settings for hosts embedding the engine and for the CLI."""

    log_level: str = Field(
        default="INFO",
        description="Root logging level",
    )
    json_logs: bool = Field(
        default=True,
        description="Emit structured JSON log lines instead of plain text",
    )
    workflows_path: Path = Field(
        default=Path("workflows"),
        description="Directory holding workflow definition documents",
    )
    workflow_glob: str = Field(
        default="*.json",
        description="Filename pattern of definition documents inside workflows_path",
    )
    tick_interval_seconds: float = Field(
        default=1.0,
        gt=0,
        description="How often a host loop should call WorkflowManager.tick()",
    )

    model_config = SettingsConfigDict(
        env_prefix="TICKFLOW_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level: {value!r}")
        return level

    def setup_logging(self) -> None:
        """Configure logging based on settings."""

        configure_logging(self.log_level, json_output=self.json_logs)
