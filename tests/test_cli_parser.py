from __future__ import annotations

from pathlib import Path

import pytest

from testspawn.cli.context import parse_env, parse_flag_value, parse_flags
from testspawn.cli.parser import parse_args
from testspawn.errors import ConfigError


def test_parse_args_without_command() -> None:
    args = parse_args([])
    assert args.command is None
    assert args.workdir is None


def test_parse_args_run_with_options() -> None:
    args = parse_args(
        [
            "run",
            "tests/test_a.py",
            "tests/test_b.py",
            "--config",
            "ci.yaml",
            "--coverage",
            "-e",
            "FOO=bar",
            "-f",
            "x=true",
            "-o",
            "out.log",
        ]
    )
    assert args.command == "run"
    assert args.paths == ["tests/test_a.py", "tests/test_b.py"]
    assert args.config == Path("ci.yaml")
    assert args.coverage is True
    assert args.env == ["FOO=bar"]
    assert args.flag == ["x=true"]
    assert args.output == "out.log"


def test_parse_args_show_allows_no_paths() -> None:
    args = parse_args(["show"])
    assert args.command == "show"
    assert args.paths == []


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("true", True),
        ("false", False),
        ("2", 2),
        ("0", 0),
        ("slow and not db", "slow and not db"),
        ("", True),
        ("[a, b]", "[a, b]"),
    ],
)
def test_parse_flag_value(raw: str, expected: object) -> None:
    assert parse_flag_value(raw) == expected


def test_parse_flags_repeats_become_lists() -> None:
    flags = parse_flags(["p=no:cacheprovider", "x=", "p=no:randomly", "p=xdist"])
    assert flags == {"p": ["no:cacheprovider", "no:randomly", "xdist"], "x": True}


def test_parse_env_requires_key_value_pairs() -> None:
    assert parse_env(["A=1", "B=x=y"]) == {"A": "1", "B": "x=y"}
    with pytest.raises(ConfigError, match="KEY=VALUE"):
        parse_env(["novalue"])


def test_parse_args_keeps_runner_args_after_double_dash() -> None:
    args = parse_args(["run", "a.py", "-f", "x=true", "--", "-p", "no:randomly"])
    assert args.paths == ["a.py"]
    assert args.flag == ["x=true"]
    assert args.runner_args == ["-p", "no:randomly"]


def test_parse_args_without_double_dash_has_no_runner_args() -> None:
    assert parse_args(["show", "a.py"]).runner_args == []
