"""Application configuration: settings schema and liquidscrub.yaml loader"""

import os
import shlex
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator


CONFIG_FILE = "liquidscrub.yaml"
ENV_PREFIX = "LIQUIDSCRUB_"


class Settings(BaseModel):
    extensions:     list[str] = Field(default=[".md", ".markdown"], description="Markdown file suffixes to scan")
    exclude_dirs:   list[str] = Field(
        default=["_site", ".git", ".jekyll-cache", ".sass-cache", "node_modules", "vendor"],
        description="Directory names never descended into",
    )
    max_workers:    int   = Field(default=4, ge=1, description="Files processed concurrently")
    backup:         bool  = Field(default=False, description="Keep <file>.backup before overwriting")
    verify_command: str   = Field(default="bundle exec jekyll build", min_length=1, description="Site build run by --verify")
    verify_timeout: float = Field(default=300.0, gt=0, description="Seconds before the verify build is abandoned")
    log_level:      str   = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR)$")

    @field_validator("extensions", "exclude_dirs", mode="before")
    @classmethod
    def _split_csv(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @property
    def verify_argv(self) -> list[str]:
        return shlex.split(self.verify_command)


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from liquidscrub.yaml, then LIQUIDSCRUB_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping, got {type(data).__name__}")

    for name in Settings.model_fields:
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return Settings(**data)
    except ValueError as e:
        raise ValueError(f"Invalid configuration: {e}") from e
