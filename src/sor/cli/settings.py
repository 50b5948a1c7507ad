"""Client configuration stored in ~/.sor/config.json."""

from __future__ import annotations

import json
import os
from pathlib import Path

from pydantic import BaseModel, ValidationError

CONFIG_KEYS = ("url", "key")


class ConfigFileError(Exception):
    """The config file exists but cannot be read."""


class ClientConfig(BaseModel):
    url: str | None = None
    key: str | None = None


def config_dir() -> Path:
    override = os.environ.get("SOR_CONFIG_DIR")
    if override:
        return Path(override)
    return Path.home() / ".sor"


def config_path() -> Path:
    return config_dir() / "config.json"


def load_config() -> ClientConfig:
    path = config_path()
    if not path.exists():
        return ClientConfig()
    try:
        return ClientConfig.model_validate(json.loads(path.read_text()))
    except (json.JSONDecodeError, ValidationError) as e:
        raise ConfigFileError(f"Cannot read config file {path}: {e}") from e


def save_config(config: ClientConfig) -> None:
    path = config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(config.model_dump_json(indent=2))
