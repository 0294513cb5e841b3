"""Stage options: reserved keys split from pass-through runner flags."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import IO, Any

from testspawn.args import serialize_flags
from testspawn.errors import InvalidOptionError

OutputSink = str | os.PathLike[str] | IO[Any]

RESERVED_KEYS = ("bin", "env", "cwd", "exec_path", "output", "coverage")
COVERAGE_RESERVED_KEYS = ("bin",)


def _optional_path(key: str, value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (str, os.PathLike)):
        return os.fspath(value)
    raise InvalidOptionError(f"Option {key!r} must be a path, got {value!r}")


def _env_overrides(value: Any) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise InvalidOptionError(f"Option 'env' must be a mapping, got {value!r}")
    return {str(key): str(item) for key, item in value.items()}


def _output_sink(value: Any) -> OutputSink | None:
    if value is None or value is False or value == "":
        return None
    if isinstance(value, (str, os.PathLike)):
        return value
    if callable(getattr(value, "write", None)):
        return value
    raise InvalidOptionError(
        f"Option 'output' must be a path or a writable object, got {value!r}"
    )


def _pass_through(
    config: Mapping[str, Any], reserved: tuple[str, ...]
) -> dict[str, Any]:
    flags: dict[str, Any] = {}
    for key, value in config.items():
        if not isinstance(key, str) or not key:
            raise InvalidOptionError(
                f"Option names must be non-empty strings: {key!r}"
            )
        if key in reserved:
            continue
        flags[key] = value
    return flags


@dataclass(frozen=True, slots=True)
class CoverageOptions:
    """Coverage wrapper settings."""

    bin: str | None = None
    flags: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_value(cls, value: Any) -> CoverageOptions | None:
        """Build coverage options from ``True``, a mapping, or a falsy value."""
        if value is None or value is False:
            return None
        if value is True:
            return cls()
        if not isinstance(value, Mapping):
            raise InvalidOptionError(
                f"Option 'coverage' must be true or a mapping, got {value!r}"
            )
        return cls(
            bin=_optional_path("coverage.bin", value.get("bin")),
            flags=_pass_through(value, COVERAGE_RESERVED_KEYS),
        )


@dataclass(frozen=True, slots=True)
class StageOptions:
    """Options for one spawn stage.

    ``flags`` keeps the caller's key order; it is forwarded to the test
    runner through :func:`testspawn.args.serialize_flags`.
    ``runner_args`` are raw tokens placed after the serialized flags.
    """

    bin: str | None = None
    env: dict[str, str] = field(default_factory=dict)
    cwd: str | None = None
    exec_path: str | None = None
    output: OutputSink | None = None
    coverage: CoverageOptions | None = None
    flags: dict[str, Any] = field(default_factory=dict)
    runner_args: tuple[str, ...] = ()

    @classmethod
    def from_mapping(
        cls, config: Mapping[str, Any] | StageOptions | None
    ) -> StageOptions:
        """Extract reserved keys from ``config``.

        Raises:
            InvalidOptionError: If a reserved key holds an unusable value.
        """
        if config is None:
            return cls()
        if isinstance(config, StageOptions):
            return config
        return cls(
            bin=_optional_path("bin", config.get("bin")),
            env=_env_overrides(config.get("env")),
            cwd=_optional_path("cwd", config.get("cwd")),
            exec_path=_optional_path("exec_path", config.get("exec_path")),
            output=_output_sink(config.get("output")),
            coverage=CoverageOptions.from_value(config.get("coverage")),
            flags=_pass_through(config, RESERVED_KEYS),
        )

    def validate(self) -> None:
        """Check that every pass-through flag can be serialized.

        Raises:
            InvalidOptionError: On the first unsupported flag value.
        """
        serialize_flags(self.flags)
        if self.coverage is not None:
            serialize_flags(self.coverage.flags)

    @property
    def captures_output(self) -> bool:
        """Whether child output goes to a sink instead of the parent stdio."""
        return self.output is not None
