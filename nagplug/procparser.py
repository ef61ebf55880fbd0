"""Parsers for name/value files such as /proc/vmstat."""

from __future__ import annotations

import re
from collections.abc import Iterable

from .thresholds import PluginError

__all__ = ["procparser", "linelookup"]

_MAX_NAME = 32
_ULONG_MAX = 2**64 - 1
_UNSIGNED = re.compile(r"\s*([+-]?)(\d+)")


def _strtoul(text: str) -> int:
    match = _UNSIGNED.match(text)
    if match is None:
        return 0
    number = min(int(match.group(2)), _ULONG_MAX)
    if match.group(1) == "-":
        number = -number % (_ULONG_MAX + 1)
    return number


def procparser(path: str, names: Iterable[str], separator: str) -> dict[str, int]:
    """Read ``path`` and return the values of the rows listed in ``names``.

    Each row is ``<name><separator><value>``; rows whose names are not wanted,
    are too long, or lack the separator are skipped.
    """
    wanted = set(names)
    found: dict[str, int] = {}
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            for line in handle:
                name, sep, rest = line.partition(separator)
                if not sep or len(name) >= _MAX_NAME or name not in wanted:
                    continue
                found[name] = _strtoul(rest)
    except OSError as exc:
        raise PluginError(f"error: cannot read {path}: {exc.strerror}") from exc
    return found


def linelookup(line: str, pattern: str) -> str | None:
    """Return the value of a ``pattern: value`` line, or None if it does not match."""
    if not line or not line.startswith(pattern):
        return None
    rest = line[len(pattern):].lstrip()
    if not rest.startswith(":"):
        return None
    value = rest[1:].strip()
    return value or None