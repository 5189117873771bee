"""Runner configuration."""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RunnerSettings(BaseSettings):
    """Settings of a suite run.

    Loads from environment variables automatically, e.g. ``SUITECRAFT_CONCURRENCY=4``.
    Command line options override them.
    """

    concurrency: int = Field(default=1, ge=0, description="Units run at once within a suite; 0 means the default cap")
    maxfail: int | None = Field(default=None, ge=1, description="Stop after this many failed or errored units")
    timeout: float | None = Field(default=None, gt=0, description="Default per-unit timeout in seconds")
    tracing: bool = Field(default=False, description="Export OpenTelemetry spans")
    trace_output: Path = Field(default=Path("traces.jsonl"), description="JSONL file receiving spans")
    verbosity: int = Field(default=0, description="-1 quiet, 0 compact, 1+ verbose")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"

    model_config = SettingsConfigDict(
        env_prefix="SUITECRAFT_",
        extra="forbid",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v
