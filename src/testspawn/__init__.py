"""Run a stream of test files through a single test-runner process."""

from testspawn.args import serialize_flags
from testspawn.errors import (
    ConfigError,
    ExitCodeError,
    InvalidOptionError,
    OutputSinkError,
    SpawnError,
    StageClosedError,
    StageError,
)
from testspawn.options import CoverageOptions, StageOptions
from testspawn.stage import SpawnStage, StageEvent, StageOutcome, StageState

__all__ = [
    "ConfigError",
    "CoverageOptions",
    "ExitCodeError",
    "InvalidOptionError",
    "OutputSinkError",
    "SpawnError",
    "SpawnStage",
    "StageClosedError",
    "StageError",
    "StageEvent",
    "StageOptions",
    "StageOutcome",
    "StageState",
    "serialize_flags",
]
