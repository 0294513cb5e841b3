"""Shared helpers turning CLI arguments into stage configuration."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Iterable
from dataclasses import replace
from typing import Any

import yaml

from testspawn.config.loader import load_stage_config, merge_config
from testspawn.errors import ConfigError
from testspawn.options import StageOptions


def _split_pair(raw: str, option: str) -> tuple[str, str]:
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise ConfigError(f"{option} expects KEY=VALUE, got {raw!r}")
    return key, value


def parse_flag_value(value: str) -> Any:
    """Interpret a ``--flag`` value as a YAML scalar (``true``, ``2``, ...)."""
    if value == "":
        return True
    try:
        parsed = yaml.safe_load(value)
    except yaml.YAMLError:
        return value
    if isinstance(parsed, (dict, list)):
        return value
    return parsed


def parse_flags(raw_flags: Iterable[str]) -> dict[str, Any]:
    """Collect ``NAME=VALUE`` flags; a repeated name becomes a list."""
    flags: dict[str, Any] = {}
    for raw in raw_flags:
        key, value = _split_pair(raw, "--flag")
        parsed = parse_flag_value(value)
        if key not in flags:
            flags[key] = parsed
        elif isinstance(flags[key], list):
            flags[key].append(parsed)
        else:
            flags[key] = [flags[key], parsed]
    return flags


def parse_env(raw_env: Iterable[str]) -> dict[str, str]:
    """Collect ``KEY=VALUE`` environment overrides."""
    return dict(_split_pair(raw, "--env") for raw in raw_env)


def build_stage_config(args: argparse.Namespace) -> dict[str, Any]:
    """Merge config files with command-line overrides.

    Raises:
        ConfigError: If a config file or an override is malformed.
    """
    config = load_stage_config(args.config)

    overrides: dict[str, Any] = {}
    for key in ("bin", "exec_path", "cwd", "output"):
        value = getattr(args, key)
        if value is not None:
            overrides[key] = value
    if args.env:
        overrides["env"] = parse_env(args.env)
    if args.coverage_bin:
        coverage = config.get("coverage")
        base = coverage if isinstance(coverage, dict) else {}
        overrides["coverage"] = {**base, "bin": args.coverage_bin}
    elif args.coverage and not config.get("coverage"):
        overrides["coverage"] = True

    config = merge_config(config, overrides)
    return merge_config(config, parse_flags(args.flag))


def load_stage_config_or_error(args: argparse.Namespace) -> dict[str, Any] | None:
    """Build stage config or print a user-facing error and return None."""
    try:
        return build_stage_config(args)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None


def build_stage_options(
    config: dict[str, Any], args: argparse.Namespace
) -> StageOptions:
    """Stage options from merged config plus raw runner args after ``--``.

    Raises:
        InvalidOptionError: If a config value cannot be used.
    """
    options = StageOptions.from_mapping(config)
    options.validate()
    return replace(options, runner_args=tuple(getattr(args, "runner_args", ())))
