"""Resolve the program and argument list for a stage launch."""

from __future__ import annotations

import logging
import shlex
import shutil
import sysconfig
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from testspawn.args import serialize_flags
from testspawn.options import CoverageOptions, StageOptions
from testspawn.runtime.platform import executable_suffix

logger = logging.getLogger(__name__)

RUNNER_SCRIPT = "pytest"
COVERAGE_SCRIPT = "coverage"
COVERAGE_SUBCOMMAND = "run"


@dataclass(frozen=True, slots=True)
class Invocation:
    """Program path plus the arguments passed after it."""

    program: str
    args: tuple[str, ...]

    def argv(self, exec_path: str) -> list[str]:
        """Full argument vector when run by the ``exec_path`` interpreter."""
        return [exec_path, self.program, *self.args]

    def format(self, exec_path: str) -> str:
        """Shell-quoted command line, for logs and dry runs."""
        return shlex.join(self.argv(exec_path))


def default_script_path(name: str) -> str:
    """Locate the console script ``name`` of the current environment.

    Looks in the interpreter's scripts directory first, then on ``PATH``.
    When neither has it, the scripts-directory path is returned unchanged
    so the launch fails with a visible error.
    """
    candidate = Path(sysconfig.get_path("scripts")) / f"{name}{executable_suffix()}"
    if candidate.exists():
        return str(candidate)
    found = shutil.which(name)
    if found:
        return found
    logger.debug("Console script %s not found, using %s", name, candidate)
    return str(candidate)


def resolve_runner_bin(options: StageOptions) -> str:
    """Test runner path: the ``bin`` override or the default script."""
    return options.bin or default_script_path(RUNNER_SCRIPT)


def resolve_coverage_bin(coverage: CoverageOptions) -> str:
    """Coverage tool path: the coverage ``bin`` override or the default."""
    return coverage.bin or default_script_path(COVERAGE_SCRIPT)


def build_invocation(options: StageOptions, files: Sequence[str]) -> Invocation:
    """Build the program and arguments for one stage run.

    Without coverage the runner is the program and receives its flags,
    then the raw ``runner_args``, then ``files``. With coverage the
    coverage tool is the program: its subcommand and flags come first,
    then the runner path, the runner arguments, and finally ``files``.
    """
    runner_bin = resolve_runner_bin(options)
    args = [*serialize_flags(options.flags), *options.runner_args]

    if options.coverage is None:
        return Invocation(program=runner_bin, args=(*args, *files))

    coverage = options.coverage
    coverage_args = [COVERAGE_SUBCOMMAND, *serialize_flags(coverage.flags)]
    return Invocation(
        program=resolve_coverage_bin(coverage),
        args=(*coverage_args, runner_bin, *args, *files),
    )
