"""Show command: print the command line a run would execute."""

from __future__ import annotations

import argparse
import sys

from testspawn.cli.context import build_stage_options, load_stage_config_or_error
from testspawn.errors import InvalidOptionError
from testspawn.runtime.resolver import build_invocation


def cmd_show(args: argparse.Namespace) -> int:
    """Print the resolved command without spawning it."""
    config = load_stage_config_or_error(args)
    if config is None:
        return 1

    try:
        options = build_stage_options(config, args)
    except InvalidOptionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not args.paths:
        print("No test files given, nothing would run")
        return 0

    invocation = build_invocation(options, args.paths)
    print(invocation.format(options.exec_path or sys.executable))
    return 0
