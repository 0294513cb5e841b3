"""Configuration management for testspawn."""
from __future__ import annotations

from testspawn.config.loader import load_stage_config, merge_config, read_config_file
from testspawn.config.paths import SpawnPaths, get_paths, reset_paths

__all__ = [
    "SpawnPaths",
    "get_paths",
    "load_stage_config",
    "merge_config",
    "read_config_file",
    "reset_paths",
]
