"""Derive perfdata limits from threshold ranges."""

from __future__ import annotations

from .thresholds import AlertOn, Range

__all__ = [
    "K_SHIFT",
    "M_SHIFT",
    "G_SHIFT",
    "unit_convert",
    "perfdata_limit",
    "perfdata_limit_converted",
]

K_SHIFT = 0
M_SHIFT = 10
G_SHIFT = 20


def unit_convert(value: int, shift: int) -> int:
    """Scale a kilobyte-based value down by ``shift`` binary orders."""
    return value >> shift


def perfdata_limit(threshold: Range | None, base: int, percent: bool) -> int | None:
    """Return the limit a threshold sets on ``base``, or None if it sets none."""
    if threshold is None:
        return None
    if threshold.alert_on is AlertOn.INSIDE:
        return None
    if threshold.start_infinity:
        return None
    bound = threshold.start if threshold.end_infinity else threshold.end

    limit = int(base * bound)
    if percent:
        limit = int(limit / 100.0)
    return limit


def perfdata_limit_converted(
    threshold: Range | None, base: int, shift: int, percent: bool
) -> int | None:
    """Like perfdata_limit, with the result scaled by ``shift``."""
    limit = perfdata_limit(threshold, base, percent)
    if limit is None:
        return None
    return unit_convert(limit, shift)