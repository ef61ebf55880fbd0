"""Strict conversion of numbers with optional time or size suffixes."""

from __future__ import annotations

import math
import re
from collections.abc import Mapping

__all__ = ["ConversionError", "age_to_seconds", "size_to_bytes", "parse_int"]


class ConversionError(ValueError):
    """A string could not be converted to a number."""


_NUMBER = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INTEGER = re.compile(r"\s*[+-]?\d+")

_AGE_MULTIPLIERS: Mapping[str, float] = {
    "": 1,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 7 * 86400,
    "y": 31557600,  # 365.25 days
}

_SIZE_MULTIPLIERS: Mapping[str, float] = {
    "": 1,
    "b": 1,
    "k": 1000.0,
    "m": 1000.0**2,
    "g": 1000.0**3,
    "t": 1000.0**4,
    "p": 1000.0**5,
}


def _convert(text: str | None, multipliers: Mapping[str, float]) -> int:
    if not text:
        raise ConversionError("no number to convert (empty string)")

    match = _NUMBER.match(text)
    value = float(match.group()) if match else math.nan
    if match is None or math.isinf(value):
        raise ConversionError(f"converting `{text}' to a number failed")

    rest = text[match.end():]
    suffix = rest[:1]
    factor = multipliers.get(suffix.lower()) if suffix.isascii() else None
    if factor is None:
        raise ConversionError(f"invalid suffix `{suffix}' in `{text}'")
    if len(rest) > 1:
        raise ConversionError(f"invalid trailing character `{rest[1]}' in `{text}'")
    return int(value * factor)


def age_to_seconds(text: str | None) -> int:
    """Convert e.g. ``90``, ``10m``, ``2h``, ``1d``, ``1w`` or ``1y`` to seconds."""
    return _convert(text, _AGE_MULTIPLIERS)


def size_to_bytes(text: str | None) -> int:
    """Convert e.g. ``512``, ``10k``, ``2M``, ``1G``, ``1T`` or ``1P`` to bytes."""
    return _convert(text, _SIZE_MULTIPLIERS)


def parse_int(text: str | None, message: str) -> int:
    """Parse a whole base-10 integer, raising ConversionError with ``message``."""
    if text and _INTEGER.fullmatch(text):
        number = int(text)
        if -(2**63) <= number < 2**63:
            return number
    raise ConversionError(f"{message}: '{text}'")