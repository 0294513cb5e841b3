"""Process resolution and launching for spawn stages."""

from testspawn.runtime.launcher import (
    LaunchedProcess,
    LaunchResult,
    ProcessLauncher,
    get_process_launcher,
)
from testspawn.runtime.resolver import (
    Invocation,
    build_invocation,
    default_script_path,
    resolve_coverage_bin,
    resolve_runner_bin,
)

__all__ = [
    "Invocation",
    "LaunchResult",
    "LaunchedProcess",
    "ProcessLauncher",
    "build_invocation",
    "default_script_path",
    "get_process_launcher",
    "resolve_coverage_bin",
    "resolve_runner_bin",
]
