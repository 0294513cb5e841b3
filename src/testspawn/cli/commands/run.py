"""Run command: execute one stage and map its outcome to an exit code."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from testspawn.cli.context import build_stage_options, load_stage_config_or_error
from testspawn.errors import ExitCodeError, InvalidOptionError
from testspawn.stage import SpawnStage, StageOutcome

logger = logging.getLogger(__name__)


def exit_code_for(outcome: StageOutcome) -> int:
    """Process exit code reported for a stage outcome."""
    if outcome.error is None:
        return 0
    if isinstance(outcome.error, ExitCodeError) and outcome.error.exit_code > 0:
        return outcome.error.exit_code
    return 1


def cmd_run(args: argparse.Namespace) -> int:
    """Run the configured test runner on the given paths."""
    config = load_stage_config_or_error(args)
    if config is None:
        return 1

    try:
        stage = SpawnStage(build_stage_options(config, args))
    except InvalidOptionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not args.paths:
        print("No test files given, nothing to run")

    outcome = asyncio.run(stage.run(args.paths))
    if outcome.error is not None:
        print(f"Error: {outcome.error}", file=sys.stderr)
    logger.info("Stage finished: %s", "ok" if outcome.succeeded else outcome.error)
    return exit_code_for(outcome)
