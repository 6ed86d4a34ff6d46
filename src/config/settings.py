# src/config/settings.py - v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for graph location, thumbnail rendering, artifact
storage, cache backend and logging settings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Content graph ===
    graph_path: Path = Path("./graph.json")
    source_node_type: str = "Asset"
    source_media_type: str = "application/pdf"
    artifact_node_type: str = "File"

    # === Thumbnails ===
    thumbnail_namespace: str = "thumb"
    thumbnail_scale: float = 0.33
    thumbnail_embed_fonts_only: bool = True

    # === Artifacts ===
    artifact_root: Path = Path("~/.docthumb/artifacts")
    artifact_gc_enabled: bool = True

    # === Pipeline ===
    max_concurrency: int = 1

    # === Cache ===
    cache_backend: Literal["json", "sqlite", "redis"] = "json"
    cache_root: Path = Path("~/.docthumb/cache")
    cache_redis_url: str = ""

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("thumbnail_scale")
    @classmethod
    def validate_thumbnail_scale(cls, v: float) -> float:  # noqa: N805
        if not 0 < v <= 1:
            raise ValueError("thumbnail_scale must be in (0, 1]")
        return v

    @field_validator("max_concurrency")
    @classmethod
    def validate_max_concurrency(cls, v: int) -> int:  # noqa: N805
        if v < 1:
            raise ValueError("max_concurrency must be >= 1")
        return v

    @field_validator("thumbnail_namespace")
    @classmethod
    def validate_namespace(cls, v: str) -> str:  # noqa: N805
        """Namespace must be non-empty so keys never start with a separator."""
        if not v.strip():
            raise ValueError("thumbnail_namespace must not be empty")
        return v.strip()

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.cache_backend == "redis" and not self.cache_redis_url:
            errors.append("CACHE_REDIS_URL must be set when CACHE_BACKEND=redis")

        if self.source_node_type == self.artifact_node_type:
            errors.append(
                "SOURCE_NODE_TYPE and ARTIFACT_NODE_TYPE must differ"
            )

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (CLI flags or tests).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
