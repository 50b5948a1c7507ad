"""Application configuration — env vars, YAML files, defaults."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings


def _repo_root() -> Path:
    """Find the repository root (directory containing pyproject.toml)."""
    current = Path(__file__).resolve().parent.parent.parent
    if (current / "pyproject.toml").exists():
        return current
    return Path.cwd()


REPO_ROOT = _repo_root()


class ServerConfig(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 8787
    api_key: str = ""
    log_level: str = "info"

    model_config = {"env_prefix": "SOR_SERVER_"}


class StorageConfig(BaseSettings):
    """Where per-database SQLite files live and how connections are opened."""

    data_dir: Path = REPO_ROOT / "data" / "dbs"
    busy_timeout_seconds: float = 5.0
    journal_mode: str = "WAL"

    model_config = {"env_prefix": "SOR_STORAGE_"}


class StudioConfig(BaseSettings):
    enabled: bool = True
    url: str = ""

    model_config = {"env_prefix": "SOR_STUDIO_"}


class AppConfig(BaseSettings):
    """Top-level application configuration."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    studio: StudioConfig = Field(default_factory=StudioConfig)

    # Environment & Sentry
    environment: str = "development"
    sentry_dsn: str = ""

    model_config = {"env_prefix": "SOR_"}

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> AppConfig:
        """Load config from YAML file, with env var overrides."""
        if path is None:
            path = REPO_ROOT / "config" / "app.yml"

        values: dict[str, Any] = {}
        if path.exists():
            with open(path) as f:
                values = yaml.safe_load(f) or {}

        return cls(**values)
