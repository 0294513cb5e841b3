"""Centralized path management for testspawn.

Follows the XDG Base Directory Specification for global files:
- Config: $XDG_CONFIG_HOME/testspawn (default: ~/.config/testspawn)
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_FILENAME = "config.yaml"


def _xdg_config_home() -> Path:
    """Get XDG_CONFIG_HOME, defaulting to ~/.config."""
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


@dataclass
class SpawnPaths:
    """Workspace and global locations of configuration files."""

    workspace: Path  # Current working directory

    _config_home: Path = field(default_factory=_xdg_config_home)

    # === WORKSPACE PATHS ===

    @property
    def workspace_config(self) -> Path:
        """Workspace .testspawn/ directory."""
        return self.workspace / ".testspawn"

    @property
    def workspace_config_file(self) -> Path:
        """Workspace config: .testspawn/config.yaml"""
        return self.workspace_config / CONFIG_FILENAME

    # === GLOBAL PATHS (XDG compliant) ===

    @property
    def global_config_dir(self) -> Path:
        """Global config: ~/.config/testspawn/"""
        return self._config_home / "testspawn"

    @property
    def global_config_file(self) -> Path:
        """Global config file: ~/.config/testspawn/config.yaml"""
        return self.global_config_dir / CONFIG_FILENAME

    # === CONFIG RESOLUTION ===

    def config_files(self, explicit: Path | None = None) -> list[Path]:
        """Existing config files, lowest precedence first.

        Order: global, workspace, then ``explicit``. An explicit file is
        always included so a missing one is reported by the loader.
        """
        found = [
            path
            for path in (self.global_config_file, self.workspace_config_file)
            if path.exists()
        ]
        if explicit is not None:
            found.append(explicit)
        return found


# Singleton instance
_paths: SpawnPaths | None = None


def get_paths(workspace: Path | None = None) -> SpawnPaths:
    """Get the paths singleton.

    On first call, optionally set the workspace directory.
    Subsequent calls return the same instance.

    Args:
        workspace: The workspace directory. If not provided on first call,
                   defaults to current working directory.

    Returns:
        The SpawnPaths singleton instance.
    """
    global _paths
    if _paths is None:
        _paths = SpawnPaths(workspace=workspace or Path.cwd())
    return _paths


def reset_paths() -> None:
    """Reset paths singleton (for testing)."""
    global _paths
    _paths = None
