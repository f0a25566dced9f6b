"""Configuration settings for Skipper.

Settings resolve CLI > env (``SKIPPER_*``) > ``.env`` file > defaults. The
defaults match the layout of the build containers skipper was written for:
the baseline trace at ``/base-graph.gz`` and the changed-file list at
``/changes``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_IGNORE_FILES = ("/dev/null",)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SKIPPER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Baseline trace (plain or .gz) and changed-file list
    base_graph: Path = Field(default=Path("/base-graph.gz"))
    changes_file: Path = Field(default=Path("/changes"))

    # Where the wrapper persists the id of the current build
    build_id_file: Path = Field(default=Path("~/yourbase.txt"))

    # "jsonl" (current) or "csv" (legacy tracer output)
    trace_format: Literal["jsonl", "csv"] = "jsonl"

    # Paths never treated as dependency edges
    ignore_files: list[str] = Field(default_factory=lambda: list(DEFAULT_IGNORE_FILES))

    # Decision log directory; no JSONL log is written when unset
    log_dir: Path | None = None

    # Per-lookup debug tracing in the reachability engine
    trace_lookups: bool = False

    @property
    def resolved_build_id_file(self) -> Path:
        """Build id file with ``~`` expanded."""
        return self.build_id_file.expanduser()


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings cache (useful for testing)."""
    global _settings
    _settings = None
