"""Stage configuration loaded from YAML files.

Configuration is hierarchical, later files overriding earlier ones:
1. Global defaults (~/.config/testspawn/config.yaml)
2. Workspace config (.testspawn/config.yaml)
3. A file named on the command line

Top-level keys replace each other, except ``env`` whose entries are merged.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from testspawn.config.paths import get_paths
from testspawn.errors import ConfigError

logger = logging.getLogger(__name__)

MERGED_KEYS = frozenset({"env"})


def read_config_file(path: Path) -> dict[str, Any]:
    """Read one YAML config file.

    An empty file yields an empty mapping.

    Raises:
        ConfigError: If the file is missing, unparsable, or not a mapping.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    logger.debug("Loaded stage config from %s", path)
    return data


def merge_config(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Overlay ``override`` on ``base`` without mutating either."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if key in MERGED_KEYS and isinstance(current, dict) and isinstance(value, dict):
            merged[key] = {**current, **value}
        else:
            merged[key] = value
    return merged


def load_stage_config(explicit: Path | None = None) -> dict[str, Any]:
    """Load and merge global, workspace and explicit config files."""
    config: dict[str, Any] = {}
    for path in get_paths().config_files(explicit):
        config = merge_config(config, read_config_file(path))
    return config
