"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local secrets and env overrides (gitignored)
  4. Environment variables        — ``BUNGIE_API_KEY`` and ``DESTINY_CLIENT_*``

Entry point: ``load_config(config_path=None) -> AppConfig``

The API key is an immutable value threaded into ``BungieClient`` at
construction (``BungieClient.from_config``); library code never reads the
environment directly.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class ApiConfig(BaseModel):
    """Bungie Platform API connection settings."""

    model_config = ConfigDict(frozen=True)

    base_url: str = "https://www.bungie.net/Platform"
    website_url: str = "https://www.bungie.net/en"
    api_key: str = ""
    timeout_seconds: float = 30.0

    @field_validator("base_url", "website_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"URL must start with http:// or https://, got '{v}'.")
        return v.rstrip("/")

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {v}.")
        return v


class RosterConfig(BaseModel):
    """Clan roster pagination limits."""

    model_config = ConfigDict(frozen=True)

    max_pages: int = 50

    @field_validator("max_pages")
    @classmethod
    def validate_max_pages(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_pages must be >= 1, got {v}.")
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env + environment.
    """

    model_config = ConfigDict(frozen=True)

    api: ApiConfig = ApiConfig()
    roster: RosterConfig = RosterConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

# destiny_client/config.py -> repository checkout
_REPO_ROOT = Path(__file__).resolve().parent.parent
_DEFAULT_CONFIG = _REPO_ROOT / "config" / "default.toml"


def _read_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as fh:
        return tomllib.load(fh)


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Build an ``AppConfig`` from TOML layers and the environment.

    Precedence, lowest first: ``config_path`` (``config/default.toml`` when
    omitted), a sibling ``local.toml``, then ``BUNGIE_API_KEY`` and
    ``DESTINY_CLIENT_*`` variables. ``.env`` at the repository root is
    loaded first but never overrides variables already set.

    Raises:
        FileNotFoundError: ``config_path`` does not exist.
        pydantic.ValidationError: A merged value is out of range.
    """
    load_dotenv(dotenv_path=_REPO_ROOT / ".env", override=False)

    path = Path(config_path) if config_path is not None else _DEFAULT_CONFIG
    if not path.is_file():
        raise FileNotFoundError(
            f"Config file not found: {path}\n"
            "Create config/default.toml or pass --config."
        )

    raw = _read_toml(path)
    local = path.with_name("local.toml")
    if local.is_file():
        raw = _deep_merge(raw, _read_toml(local))

    return _build_app_config(_apply_env_overrides(raw))


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``base`` with ``override`` applied table by table."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = _deep_merge(current, value)
        merged[key] = value
    return merged


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variables to the raw config dict.

    Supported overrides:
      BUNGIE_API_KEY             → raw["api"]["api_key"]
      DESTINY_CLIENT_BASE_URL    → raw["api"]["base_url"]
      DESTINY_CLIENT_LOG_LEVEL   → raw["logging"]["level"]
      DESTINY_CLIENT_DEBUG       → raw["debug"]
    """
    if api_key := os.environ.get("BUNGIE_API_KEY"):
        raw.setdefault("api", {})["api_key"] = api_key

    if base_url := os.environ.get("DESTINY_CLIENT_BASE_URL"):
        raw.setdefault("api", {})["base_url"] = base_url

    if log_level := os.environ.get("DESTINY_CLIENT_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get("DESTINY_CLIENT_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        api=ApiConfig(**raw.get("api", {})),
        roster=RosterConfig(**raw.get("roster", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
