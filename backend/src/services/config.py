"""Application configuration helpers."""

from __future__ import annotations

from functools import lru_cache
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.search import DEFAULT_CONTEXT_LINES

DEFAULT_FILE_FILTER = "*.h;*.cpp"


class AppConfig(BaseModel):
    """Runtime configuration loaded from environment variables."""

    model_config = ConfigDict(frozen=True)

    workspace_root: Optional[Path] = Field(
        default=None,
        description="Workspace attached at startup (searchPath is relative to it)",
    )
    context_lines_before: int = Field(
        default=DEFAULT_CONTEXT_LINES, ge=0, description="Lines of context above a hit"
    )
    context_lines_after: int = Field(
        default=DEFAULT_CONTEXT_LINES, ge=0, description="Lines of context below a hit"
    )
    default_file_filter: str = Field(
        default=DEFAULT_FILE_FILTER,
        description="';'-separated glob list used when a text search names no filter",
    )
    find_limit_time: bool = Field(
        default=False,
        description="Stop materializing text hits once find_time_limit_ms has elapsed",
    )
    find_time_limit_ms: int = Field(default=2000, gt=0)
    find_timeout_seconds: float = Field(
        default=30.0, gt=0, description="How long to wait for an async find to signal completion"
    )
    ctags_binary: str = Field(default="ctags", description="Universal Ctags executable")
    ctags_timeout_seconds: float = Field(default=120.0, gt=0)
    server_host: str = Field(default="localhost")
    server_port: int = Field(default=50051, ge=1, le=65535)

    @field_validator("workspace_root", mode="before")
    @classmethod
    def _normalize_workspace_root(cls, value: str | Path | None) -> Optional[Path]:
        if value is None or value == "":
            return None
        path = value if isinstance(value, Path) else Path(value)
        return path.expanduser().resolve()

    @field_validator("default_file_filter", mode="before")
    @classmethod
    def _ensure_filter(cls, value: Optional[str]) -> str:
        if value is None:
            return DEFAULT_FILE_FILTER
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("DEFAULT_FILE_FILTER cannot be empty")
        return cleaned


def _read_env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(key, default)


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Load and cache application configuration."""
    find_limit_time = _read_env("FIND_LIMIT_TIME", "false").lower() in {"1", "true", "yes"}

    return AppConfig(
        workspace_root=_read_env("WORKSPACE_ROOT"),
        context_lines_before=_read_env("CONTEXT_LINES_BEFORE", str(DEFAULT_CONTEXT_LINES)),
        context_lines_after=_read_env("CONTEXT_LINES_AFTER", str(DEFAULT_CONTEXT_LINES)),
        default_file_filter=_read_env("DEFAULT_FILE_FILTER", DEFAULT_FILE_FILTER),
        find_limit_time=find_limit_time,
        find_time_limit_ms=_read_env("FIND_TIME_LIMIT_MS", "2000"),
        find_timeout_seconds=_read_env("FIND_TIMEOUT_SECONDS", "30"),
        ctags_binary=_read_env("CTAGS_BINARY", "ctags"),
        ctags_timeout_seconds=_read_env("CTAGS_TIMEOUT_SECONDS", "120"),
        server_host=_read_env("SERVER_HOST", "localhost"),
        server_port=_read_env("SERVER_PORT", "50051"),
    )


def reload_config() -> AppConfig:
    """Clear cached config (useful for tests) and reload."""
    get_config.cache_clear()
    return get_config()


__all__ = [
    "AppConfig",
    "get_config",
    "reload_config",
    "DEFAULT_CONTEXT_LINES",
    "DEFAULT_FILE_FILTER",
]
