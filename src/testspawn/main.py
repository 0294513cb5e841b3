"""Main module for testspawn."""

import argparse
import logging
import os
import sys

from testspawn.cli import run
from testspawn.config.paths import get_paths


def setup_logging(args: argparse.Namespace) -> None:
    """Configure logging to stderr, or to ``--log-file`` when given."""
    # Set level from env var, default to WARNING
    level = os.environ.get("TESTSPAWN_LOG_LEVEL", "WARNING").upper()

    handler: logging.Handler
    if args.log_file is not None:
        args.log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(args.log_file, mode="w")
    else:
        handler = logging.StreamHandler(sys.stderr)

    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=[handler],
    )
    logging.info("testspawn starting, workspace %s", get_paths().workspace)


def main() -> None:
    """Entry point for the testspawn command."""
    sys.exit(run(configure_logging=setup_logging))


if __name__ == "__main__":
    main()
