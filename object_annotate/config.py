"""YAML configuration loading with Pydantic validation."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from object_annotate.errors import AnnotationConfigError

ENV_DSN = "OBJECT_ANNOTATE_DSN"
ENV_TABLE = "OBJECT_ANNOTATE_TABLE"


def _default_data_dir() -> Path:
    """Return the default data directory: ~/.object_annotate"""
    return Path.home() / ".object_annotate"


class DestinationSettings(BaseModel):
    """Where annotations for a consumer are stored and which columns they carry."""
    dsn: Optional[str] = None
    table: str = "annotations"
    db_user: Optional[str] = None
    db_pass: Optional[str] = None
    sequence: Optional[str] = None  # only for backends that name their id sequence
    columns: Optional[List[str]] = None  # replaces the default free-form columns
    set_time: bool = False


class LogConfig(BaseModel):
    dir: str = str(_default_data_dir() / "logs")
    level: str = "INFO"


class AppConfig(BaseModel):
    database: DestinationSettings = Field(default_factory=DestinationSettings)
    log: LogConfig = Field(default_factory=LogConfig)


_config: AppConfig | None = None


def _apply_env(data: dict) -> dict:
    """Fill dsn/table from the environment where the file left them out."""
    database = dict(data.get("database") or {})
    if not database.get("dsn") and os.environ.get(ENV_DSN):
        database["dsn"] = os.environ[ENV_DSN]
    if not database.get("table") and os.environ.get(ENV_TABLE):
        database["table"] = os.environ[ENV_TABLE]
    data = dict(data)
    data["database"] = database
    return data


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load config from YAML file. Falls back to defaults if file not found."""
    global _config
    if _config is not None:
        return _config

    paths_to_try = []
    if config_path:
        paths_to_try.append(Path(config_path))
    paths_to_try.extend([
        Path("object_annotate.yaml"),
        Path("object_annotate.yml"),
        _default_data_dir() / "config.yaml",
        _default_data_dir() / "config.yml",
    ])

    data: dict = {}
    for p in paths_to_try:
        if p.exists():
            with open(p) as f:
                data = yaml.safe_load(f) or {}
            break

    _config = AppConfig(**_apply_env(data))
    return _config


def get_config() -> AppConfig:
    """Get the current config, loading defaults if needed."""
    if _config is None:
        return load_config()
    return _config


def reset_config() -> None:
    """Reset config (for testing)."""
    global _config
    _config = None


def resolve_settings(**overrides: Any) -> DestinationSettings:
    """Merge explicit destination options over the loaded configuration.

    Options passed as None are treated as not given. Raises
    AnnotationConfigError when no connection string can be determined.
    """
    base = get_config().database
    given = {k: v for k, v in overrides.items() if v is not None}
    unknown = set(given) - set(DestinationSettings.model_fields)
    if unknown:
        raise AnnotationConfigError(
            f"Unknown destination options: {sorted(unknown)}"
        )
    try:
        settings = DestinationSettings.model_validate({**base.model_dump(), **given})
    except ValidationError as exc:
        raise AnnotationConfigError(f"Invalid destination options: {exc}") from exc
    if not settings.dsn:
        raise AnnotationConfigError(
            f"No dsn configured; pass dsn= or set {ENV_DSN}"
        )
    if not settings.table:
        raise AnnotationConfigError(
            f"No table configured; pass table= or set {ENV_TABLE}"
        )
    return settings
