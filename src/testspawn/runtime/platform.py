"""Platform lookups kept behind functions so tests can patch them."""

from __future__ import annotations

import sys


def get_platform() -> str:
    """Return the platform identifier of the running interpreter."""
    return sys.platform


def executable_suffix(platform: str | None = None) -> str:
    """File suffix of installed console scripts on ``platform``."""
    platform = platform or get_platform()
    if platform == "win32":
        return ".exe"
    return ""
