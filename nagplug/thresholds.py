"""Plugin states and Nagios-style threshold ranges."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

__all__ = [
    "Status",
    "PluginError",
    "ThresholdError",
    "AlertOn",
    "Range",
    "Thresholds",
    "parse_range",
    "set_thresholds",
    "thresholds_expressed_as_percentages",
]


class Status(enum.IntEnum):
    """Exit states understood by Nagios."""

    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3
    DEPENDENT = 4

    @property
    def text(self) -> str:
        """The state name as printed in plugin output."""
        return self.name


class PluginError(Exception):
    """A failure that ends a plugin run with the given state."""

    def __init__(self, message: str, status: Status = Status.UNKNOWN) -> None:
        super().__init__(message)
        self.message = message
        self.status = Status(status)


class ThresholdError(PluginError):
    """A threshold range string could not be parsed."""


class AlertOn(enum.Enum):
    """Whether an alert fires outside or inside the range."""

    OUTSIDE = 0
    INSIDE = 1


_NUMBER = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _leading_float(text: str) -> float:
    match = _NUMBER.match(text)
    return float(match.group()) if match else 0.0


@dataclass
class Range:
    """A threshold range such as ``10``, ``10:``, ``~:10`` or ``@10:20``."""

    start: float = 0.0
    start_infinity: bool = False
    end: float = 0.0
    end_infinity: bool = True
    alert_on: AlertOn = AlertOn.OUTSIDE

    def check(self, value: float) -> bool:
        """Return True when an alert should be raised for ``value``."""
        alert = self.alert_on is AlertOn.OUTSIDE
        if not self.start_infinity and not self.end_infinity:
            inside = self.start <= value <= self.end
        elif not self.start_infinity:
            inside = self.start <= value
        elif not self.end_infinity:
            inside = value <= self.end
        else:
            return not alert
        return not alert if inside else alert


@dataclass
class Thresholds:
    """A pair of optional warning and critical ranges."""

    warning: Range | None = None
    critical: Range | None = None

    def status(self, value: float) -> Status:
        """Return the state that ``value`` falls into."""
        if self.critical is not None and self.critical.check(value):
            return Status.CRITICAL
        if self.warning is not None and self.warning.check(value):
            return Status.WARNING
        return Status.OK


def parse_range(text: str) -> Range:
    """Parse a range string; raise ThresholdError if start exceeds end."""
    rng = Range()
    body = text
    if body.startswith("@"):
        rng.alert_on = AlertOn.INSIDE
        body = body[1:]

    head, sep, tail = body.partition(":")
    if sep:
        if head.startswith("~"):
            rng.start_infinity = True
        else:
            rng.start = _leading_float(body)
            rng.start_infinity = False
        end_text = tail
    else:
        end_text = body

    if end_text:
        rng.end = _leading_float(end_text)
        rng.end_infinity = False

    if rng.start_infinity or rng.end_infinity or rng.start <= rng.end:
        return rng
    raise ThresholdError(f"unparseable range: {text!r}")


def set_thresholds(warning: str | None, critical: str | None) -> Thresholds:
    """Build Thresholds from optional warning and critical range strings."""
    return Thresholds(
        warning=parse_range(warning) if warning is not None else None,
        critical=parse_range(critical) if critical is not None else None,
    )


def thresholds_expressed_as_percentages(
    warning: str | None, critical: str | None
) -> bool:
    """True unless a given threshold string lacks a '%' sign."""
    if warning is not None and "%" not in warning:
        return False
    if critical is not None and "%" not in critical:
        return False
    return True