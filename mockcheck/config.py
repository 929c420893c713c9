"""
mockcheck — Configuration System

All configuration is Pydantic-validated and loaded from:
1. a YAML file (optional defaults)
2. Environment variables (overrides, ``MOCKCHECK_`` prefix)

Every tunable parameter of the verifier lives here.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_TRUE = ("true", "1", "yes", "on")

# ─── Sub-configs ──────────────────────────────────────────────────


class VerifierConfig(BaseModel):
    # Also walk single-underscore methods when extracting constraints.
    include_private: bool = False
    # When False, type mismatches are logged and left out of the report.
    report_type_mismatches: bool = True


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "console"  # "console" | "json"

    @field_validator("format")
    @classmethod
    def _known_format(cls, v: str) -> str:
        if v not in ("console", "json"):
            raise ValueError(f"logging format must be 'console' or 'json', got {v!r}")
        return v


# ─── Root Configuration ──────────────────────────────────────────


class MockcheckConfig(BaseSettings):
    """
    Root configuration. Loads from YAML, overridable by env vars.
    """

    model_config = SettingsConfigDict(
        env_prefix="MOCKCHECK_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    verifier: VerifierConfig = Field(default_factory=VerifierConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if include_private := os.environ.get("MOCKCHECK_VERIFIER__INCLUDE_PRIVATE"):
        overrides.setdefault("verifier", {})["include_private"] = (
            include_private.lower() in _TRUE
        )
    if report_mismatches := os.environ.get("MOCKCHECK_VERIFIER__REPORT_TYPE_MISMATCHES"):
        overrides.setdefault("verifier", {})["report_type_mismatches"] = (
            report_mismatches.lower() in _TRUE
        )
    if level := os.environ.get("MOCKCHECK_LOGGING__LEVEL"):
        overrides.setdefault("logging", {})["level"] = level
    if fmt := os.environ.get("MOCKCHECK_LOGGING__FORMAT"):
        overrides.setdefault("logging", {})["format"] = fmt
    return overrides


def load_config(config_path: str | Path | None = None) -> MockcheckConfig:
    """
    Load configuration from a YAML file, then apply environment variable overrides.

    A missing file is not an error; defaults apply.
    """
    raw: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                raw = yaml.safe_load(f) or {}

    raw = _deep_merge(raw, _env_overrides())
    return MockcheckConfig(**raw)
