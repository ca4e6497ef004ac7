# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for cache sizing, fuzzy search bounds, telemetry and
logging.
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

    # === Diagnostic cache ===
    cache_capacity: int = 100

    # === Fuzzy search ===
    fuzzy_threshold: float = 0.7
    fuzzy_length_tolerance: float = 0.25
    fuzzy_max_recursion_depth: int = 16
    fuzzy_leaf_size: int = 64

    # === Telemetry ===
    telemetry_enabled: bool = True
    telemetry_log_dir: Path = Path("~/.charfidelity/logs")
    telemetry_log_name: str = "fuzzy-search.jsonl"
    telemetry_flush_interval_s: float = 5.0
    telemetry_batch_size: int = 100
    telemetry_retry_failed_batch: bool = True

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("fuzzy_threshold")
    @classmethod
    def validate_threshold(cls, v: float) -> float:  # noqa: N805
        if not 0.0 <= v <= 1.0:
            raise ValueError("fuzzy_threshold must be within [0, 1]")
        return v

    @field_validator("cache_capacity", "telemetry_batch_size", "fuzzy_leaf_size")
    @classmethod
    def validate_positive(cls, v: int, info) -> int:  # noqa: N805
        if v < 1:
            raise ValueError(f"{info.field_name} must be >= 1")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.fuzzy_length_tolerance < 0:
            errors.append("FUZZY_LENGTH_TOLERANCE must be >= 0")

        if self.fuzzy_max_recursion_depth < 0:
            errors.append("FUZZY_MAX_RECURSION_DEPTH must be >= 0")

        if self.telemetry_flush_interval_s <= 0:
            errors.append("TELEMETRY_FLUSH_INTERVAL_S must be > 0")

        if self.telemetry_enabled and not self.telemetry_log_name.strip():
            errors.append("TELEMETRY_ENABLED requires TELEMETRY_LOG_NAME")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def telemetry_log_path(self) -> Path:
        """Full path of the telemetry JSONL file."""
        return self.telemetry_log_dir.expanduser() / self.telemetry_log_name


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
