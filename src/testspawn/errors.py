"""Exception types raised or emitted by the spawn stage."""

from __future__ import annotations

STAGE_NAME = "testspawn"


class StageError(Exception):
    """Base class for failures reported by a spawn stage."""

    def __init__(self, message: str, *, stage_name: str = STAGE_NAME) -> None:
        super().__init__(message)
        self.stage_name = stage_name

    def __str__(self) -> str:
        return f"[{self.stage_name}] {self.args[0]}"


class SpawnError(StageError):
    """The child process could not be created."""


class ExitCodeError(StageError):
    """The child process exited with a non-zero status code."""

    def __init__(
        self,
        message: str,
        *,
        exit_code: int,
        stage_name: str = STAGE_NAME,
    ) -> None:
        super().__init__(message, stage_name=stage_name)
        self.exit_code = exit_code


class OutputSinkError(StageError):
    """The output sink could not be opened or written."""


class StageClosedError(StageError):
    """Input arrived after the stage was finalized."""


class InvalidOptionError(ValueError):
    """A configuration value cannot be turned into command-line flags."""


class ConfigError(ValueError):
    """A configuration file could not be read."""
