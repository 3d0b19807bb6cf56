"""Configuration management for MTFS."""

import json
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from . import CONFIG_FILE, DEFAULT_CHUNK_SIZE, MAX_CHUNK_SIZE, MIN_CHUNK_SIZE, MTFS_DIR
from .exceptions import InvalidConfigurationError


class MTFSConfig(BaseModel):
    """Configuration for MTFS."""

    version: int = 1
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, ge=MIN_CHUNK_SIZE, le=MAX_CHUNK_SIZE)


def get_mtfs_dir(project_root: Path) -> Path:
    """Get the .mtfs directory path."""
    return project_root / MTFS_DIR


def get_config_path(project_root: Path) -> Path:
    """Get the config file path."""
    return get_mtfs_dir(project_root) / CONFIG_FILE


def load_config(project_root: Path) -> MTFSConfig:
    """Load configuration from the project's config file.

    Falls back to defaults if file doesn't exist.
    """
    config_path = get_config_path(project_root)

    if not config_path.exists():
        return MTFSConfig()

    with open(config_path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidConfigurationError(f"Malformed config file {config_path}: {e}") from e

    try:
        return MTFSConfig.model_validate(data)
    except ValidationError as e:
        raise InvalidConfigurationError(f"Invalid config file {config_path}: {e}") from e


def save_config(config: MTFSConfig, project_root: Path) -> None:
    """Save configuration to the project's config file."""
    config_path = get_config_path(project_root)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        json.dump(config.model_dump(), f, indent=2)
