"""Serialize a configuration mapping into command-line flags.

Keys become flags in insertion order:

- one-character keys become short flags (``-x``), longer keys become
  kebab-cased long flags (``debugBrk`` -> ``--debug-brk``);
- ``True`` emits the flag alone, strings and numbers emit flag and value;
- ``False``, ``None``, ``""`` and NaN drop the flag, but ``0`` is kept;
- lists and tuples repeat the flag once per element;
- ``--max-old-space-size`` always takes its value after ``=``, so ``True``
  is spelled ``--max-old-space-size=true``.
"""

from __future__ import annotations

import math
import os
import re
from collections.abc import Mapping
from typing import Any

from testspawn.errors import InvalidOptionError

# Flags whose value must be attached with "=" rather than passed as a
# separate token.
EQUALS_JOINED_FLAGS = frozenset({"--max-old-space-size"})

_WORD_PATTERN = re.compile(
    r"[A-Z]{2,}(?=[A-Z][a-z]+[0-9]*|\b|_)|[A-Z]?[a-z]+[0-9]*|[A-Z]|[0-9]+"
)


def kebab_case(key: str) -> str:
    """Convert ``camelCase`` or ``snake_case`` keys to ``kebab-case``."""
    words = _WORD_PATTERN.findall(key)
    return "-".join(word.lower() for word in words)


def flag_name(key: str) -> str:
    """Return the flag spelling for a configuration key."""
    if len(key) == 1:
        return f"-{key}"
    return f"--{kebab_case(key)}"


def _is_dropped(value: Any) -> bool:
    if isinstance(value, float) and math.isnan(value):
        return True
    return value is None or value is False or value == ""


def _scalar_token(key: str, value: Any) -> str | None:
    if value is True:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, os.PathLike):
        return os.fspath(value)
    raise InvalidOptionError(
        f"Unsupported value for option {key!r}: {type(value).__name__}"
    )


def add_flag(args: list[str], key: str, value: Any) -> None:
    """Append one key/value pair to ``args``.

    Args:
        args: Argument list being built, modified in place.
        key: Configuration key.
        value: Scalar value. ``False``, ``None``, ``""`` and NaN are skipped.

    Raises:
        InvalidOptionError: If ``value`` is not a supported scalar.
    """
    if _is_dropped(value):
        return

    flag = flag_name(key)
    if flag in EQUALS_JOINED_FLAGS:
        token = "true" if value is True else _scalar_token(key, value)
        args.append(f"{flag}={token}")
        return

    token = _scalar_token(key, value)
    if token is None:
        args.append(flag)
        return

    args.append(flag)
    args.append(token)


def serialize_flags(config: Mapping[str, Any]) -> list[str]:
    """Build the ordered flag list for ``config``.

    Reserved keys must already be removed; see
    :meth:`testspawn.options.StageOptions.from_mapping`.
    """
    args: list[str] = []
    for key, value in config.items():
        if isinstance(value, (list, tuple)):
            for item in value:
                if isinstance(item, (list, tuple, Mapping)):
                    raise InvalidOptionError(
                        f"Nested sequences are not supported for option {key!r}"
                    )
                add_flag(args, key, item)
        else:
            add_flag(args, key, value)
    return args
