"""Argument parser construction for the testspawn CLI."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path


def _add_stage_arguments(parser: argparse.ArgumentParser) -> None:
    """Options shared by commands that build a stage."""
    parser.add_argument(
        "paths",
        nargs="*",
        help="Test files passed to the runner, in order",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        help="YAML config file layered over workspace and global config",
    )
    parser.add_argument(
        "--bin",
        help="Test runner script (default: pytest of this environment)",
    )
    parser.add_argument(
        "--exec-path",
        help="Interpreter used to run the script (default: this Python)",
    )
    parser.add_argument(
        "--cwd",
        help="Working directory of the test runner",
    )
    parser.add_argument(
        "--output",
        "-o",
        help="Write runner stdout and stderr to this file",
    )
    parser.add_argument(
        "--coverage",
        action="store_true",
        help="Run the test runner under coverage",
    )
    parser.add_argument(
        "--coverage-bin",
        help="Coverage script (implies --coverage)",
    )
    parser.add_argument(
        "--env",
        "-e",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Extra environment variable for the runner (repeatable)",
    )
    parser.add_argument(
        "--flag",
        "-f",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Runner flag, e.g. -f maxfail=2 -f x=true (repeatable)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level CLI parser."""
    parser = argparse.ArgumentParser(
        description="testspawn - run test files through one test-runner process"
    )
    parser.add_argument(
        "--workdir",
        "-w",
        type=Path,
        help="Working directory for config lookup (default: current directory)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Write debug logs to this file instead of stderr",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Run command
    run_parser = subparsers.add_parser(
        "run",
        help="Run the test runner on the given files",
    )
    _add_stage_arguments(run_parser)

    # Show command (dry run)
    show_parser = subparsers.add_parser(
        "show",
        help="Print the command line without running it",
    )
    _add_stage_arguments(show_parser)

    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments from argv (or sys.argv when omitted).

    Everything after the first ``--`` is kept verbatim in ``runner_args``
    and handed to the test runner after its serialized flags.
    """
    tokens = list(sys.argv[1:] if argv is None else argv)
    runner_args: list[str] = []
    if "--" in tokens:
        split = tokens.index("--")
        tokens, runner_args = tokens[:split], tokens[split + 1 :]

    args = build_parser().parse_args(tokens)
    args.runner_args = runner_args
    return args
