"""Configuration file loading (shopplan_config.yaml)."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from .scheduler.config import SchedulingConfig

CONFIG_FILENAME = "shopplan_config.yaml"

# Set by the CLI callback from --config; outlives a single command
_config_path: Path | None = None


def get_config_path() -> Path | None:
    """Config path given with --config, if any."""
    return _config_path


def set_config_path(path: Path | None) -> None:
    global _config_path  # noqa: PLW0603 - command-line override shared by all commands
    _config_path = path


class ShopPlanConfig(BaseModel):
    """Top-level configuration file contents."""

    scheduler: SchedulingConfig = Field(default_factory=SchedulingConfig)


def load_config(config_path: Path | str) -> ShopPlanConfig:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to shopplan_config.yaml

    Returns:
        Validated configuration; missing sections take their defaults

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with config_path.open() as f:
        data: Any = yaml.safe_load(f)

    if data is None:
        return ShopPlanConfig()
    if not isinstance(data, dict):
        raise ValueError(f"Invalid config file format: expected dict, got {type(data)}")

    return ShopPlanConfig.model_validate(data)


def discover_config(
    snapshot_path: Path | None = None,
    config_path: Path | None = None,
) -> ShopPlanConfig:
    """Find and load the configuration for a run.

    Search order:
    1. Explicit config_path argument
    2. Path given with --config (see set_config_path)
    3. Snapshot directory / shopplan_config.yaml
    4. Current directory / shopplan_config.yaml

    Returns defaults if no file is found.
    """
    # 1. Explicit argument
    if config_path is not None:
        return load_config(config_path)

    # 2. Command-line override
    ctx_config = get_config_path()
    if ctx_config is not None:
        return load_config(ctx_config)

    # 3. Snapshot directory
    if snapshot_path is not None:
        dir_config = Path(snapshot_path).parent / CONFIG_FILENAME
        if dir_config.exists():
            return load_config(dir_config)

    # 4. Current directory
    cwd_config = Path(CONFIG_FILENAME)
    if cwd_config.exists():
        return load_config(cwd_config)

    return ShopPlanConfig()
