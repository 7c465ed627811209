"""Configuration loading from YAML + environment overrides."""

from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from consult_review.directory import CaseOrdering


def _load_yaml(path: str | Path) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    out = dict(base)
    for k, v in override.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


class AppSettings(BaseSettings):
    """App-level settings with env override."""

    model_config = SettingsConfigDict(
        env_prefix="CONSULT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    config_path: str = Field(default="config/default.yaml", alias="CONSULT_CONFIG_PATH")
    log_level: str = Field(default="INFO", alias="CONSULT_LOG_LEVEL")
    database_url: str | None = Field(default=None, alias="CONSULT_DATABASE_URL")
    api_host: str = Field(default="0.0.0.0", alias="CONSULT_API_HOST")
    api_port: int = Field(default=8000, alias="CONSULT_API_PORT")


def validate_cases_config(config: dict[str, Any]) -> None:
    """Raise ValueError for an unknown ordering policy or non-positive sizes."""
    cases = config.get("cases") or {}
    ordering = cases.get("ordering", CaseOrdering.TRIAGE.value)
    valid = sorted(o.value for o in CaseOrdering)
    if ordering not in valid:
        raise ValueError(f"cases.ordering must be one of {valid}, got {ordering!r}")
    for key in ("hash_id_length", "max_hash_attempts", "preview_length"):
        value = cases.get(key)
        if value is not None and (not isinstance(value, int) or value < 1):
            raise ValueError(f"cases.{key} must be a positive integer, got {value!r}")


def get_config(config_path: str | None = None) -> dict[str, Any]:
    """Load merged config from YAML and apply env overrides via AppSettings."""
    settings = AppSettings()
    path = config_path or settings.config_path
    if not Path(path).exists():
        cfg = _default_config()
        validate_cases_config(cfg)
        return cfg
    base = _deep_merge(_default_config(), _load_yaml(path))
    config_dir = Path(path).parent
    if "default" in path or path == "config/default.yaml":
        dev_path = config_dir / "dev.yaml"
        if dev_path.exists() and os.environ.get("CONSULT_ENV") == "dev":
            base = _deep_merge(base, _load_yaml(str(dev_path)))
    # Env overrides (DATABASE_URL standard for Docker/Postgres; CONSULT_DATABASE_URL for app)
    db_url = os.environ.get("DATABASE_URL") or settings.database_url
    if db_url:
        base.setdefault("database", {})["url"] = db_url
    if os.environ.get("CONSULT_LOG_LEVEL"):
        base.setdefault("app", {})["log_level"] = settings.log_level
    validate_cases_config(base)
    return base


def _default_config() -> dict[str, Any]:
    return {
        "app": {"name": "consult-review", "env": "default", "log_level": "INFO"},
        "database": {"url": "sqlite:///./data/consult_review.db", "echo": False},
        "api": {"host": "0.0.0.0", "port": 8000},
        "cases": {
            "ordering": CaseOrdering.TRIAGE.value,
            "hash_id_length": 4,
            "max_hash_attempts": 20,
            "preview_length": 50,
        },
    }


def get_config_hash(config: dict[str, Any]) -> str:
    """SHA256 of resolved config for audit reproducibility (canonical key order)."""
    canonical = yaml.dump(config, default_flow_style=False, sort_keys=True, allow_unicode=True)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
