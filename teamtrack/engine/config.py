"""
TeamTrack Configuration — Load and validate teamtrack.yaml at process start.

The loaded ``TeamTrackConfig`` is injected into the runtime; nothing else in
the package reads the environment. The one exception is the assistant API key,
resolved here from ``assistant.api_key_env`` when the YAML leaves it blank.

Usage:
    from teamtrack.engine.config import load_config, get_config
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from teamtrack.engine.errors import TeamTrackConfigError

CONFIG_FILENAME = "teamtrack.yaml"


# ---------------------------------------------------------------------------
# Pydantic models for teamtrack.yaml
# ---------------------------------------------------------------------------

class DatabaseConfig(BaseModel):
    url: str = "sqlite:///teamtrack.db"
    echo: bool = False


class SecurityConfig(BaseModel):
    token_secret: Optional[str] = None
    token_ttl: int = 7 * 24 * 3600
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)


class BootstrapAccount(BaseModel):
    name: str
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class BootstrapConfig(BaseModel):
    """Accounts that receive an elevated role when they register."""
    admin: Optional[BootstrapAccount] = None
    manager: Optional[BootstrapAccount] = None


class AssistantConfig(BaseModel):
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    model: str = "gemini-3-flash-preview"
    api_key: Optional[str] = None
    api_key_env: str = "GEMINI_API_KEY"
    timeout: float = Field(default=30.0, gt=0)


class ReportsConfig(BaseModel):
    window_days: int = Field(default=7, ge=1)
    top_contributors: int = Field(default=3, ge=1)


class LoggingConfig(BaseModel):
    enabled: bool = True
    level: str = "INFO"
    directory: str = ".teamtrack/logs"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level '{v}'")
        return level


class TeamTrackConfig(BaseModel):
    """Root model for teamtrack.yaml."""
    name: str = "TeamTrack"
    environment: str = "dev"

    database: DatabaseConfig = DatabaseConfig()
    security: SecurityConfig = SecurityConfig()
    bootstrap: BootstrapConfig = BootstrapConfig()
    assistant: AssistantConfig = AssistantConfig()
    reports: ReportsConfig = ReportsConfig()
    logging: LoggingConfig = LoggingConfig()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if v not in ("dev", "staging", "prod"):
            raise ValueError(f"environment must be dev/staging/prod, got '{v}'")
        return v


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

_config: Optional[TeamTrackConfig] = None


def find_config_file(start: Optional[Path] = None) -> Optional[Path]:
    """Walk up from *start* (default CWD) looking for teamtrack.yaml."""
    current = start or Path.cwd()
    for parent in [current, *current.parents]:
        candidate = parent / CONFIG_FILENAME
        if candidate.exists():
            return candidate
    return None


def load_config(config_path: Optional[str] = None) -> TeamTrackConfig:
    """
    Load and validate teamtrack.yaml.

    Args:
        config_path: Explicit path. If None, auto-discovers; defaults apply
            when no file is found.

    Raises:
        TeamTrackConfigError if the file is unreadable or fails validation.
    """
    global _config

    path = Path(config_path) if config_path else find_config_file()
    raw = {}
    if path is not None:
        if not path.exists():
            raise TeamTrackConfigError(f"Config file not found: {path}", path=str(path))
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise TeamTrackConfigError(f"Invalid YAML in {path}: {e}", path=str(path)) from e

    if not isinstance(raw, dict):
        raise TeamTrackConfigError("teamtrack.yaml must contain a mapping", path=str(path))

    # Allow the settings to live under a top-level "teamtrack:" key
    data = raw.get("teamtrack", raw)

    try:
        config = TeamTrackConfig(**data)
    except ValidationError as e:
        raise TeamTrackConfigError(
            f"Invalid configuration: {e.error_count()} error(s)",
            path=str(path),
            errors=e.errors(),
        ) from e

    if not config.assistant.api_key:
        config.assistant.api_key = os.environ.get(config.assistant.api_key_env) or None

    _config = config
    return config


def get_config() -> TeamTrackConfig:
    """Get the currently loaded config, loading if necessary."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Forget the cached config (tests, reloads)."""
    global _config
    _config = None
