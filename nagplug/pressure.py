"""Linux Pressure Stall Information (PSI) readers."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass

from .thresholds import PluginError

__all__ = [
    "PATH_PSI_CPU",
    "PATH_PSI_IO",
    "PATH_PSI_MEMORY",
    "PsiLine",
    "PsiTwoLines",
    "parse_psi_line",
    "read_cpu_pressure",
    "read_io_pressure",
    "read_memory_pressure",
]

PATH_PSI_CPU = "/proc/pressure/cpu"
PATH_PSI_IO = "/proc/pressure/io"
PATH_PSI_MEMORY = "/proc/pressure/memory"

_FLOAT = r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?"
_PSI_VALUES = re.compile(
    rf"\s*avg10=\s*({_FLOAT})\s*avg60=\s*({_FLOAT})"
    rf"\s*avg300=\s*({_FLOAT})\s*total=\s*\+?(\d+)"
)


@dataclass(frozen=True)
class PsiLine:
    """One ``some`` or ``full`` line of a pressure file."""

    avg10: float
    avg60: float
    avg300: float
    total: int


@dataclass(frozen=True)
class PsiTwoLines:
    """The ``some`` and ``full`` lines of an I/O or memory pressure file."""

    some: PsiLine
    full: PsiLine


def parse_psi_line(path: str, label: str) -> PsiLine:
    """Return the first line of ``path`` that starts with ``label``."""
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            line = next((row for row in handle if row.startswith(label)), None)
    except OSError as exc:
        raise PluginError(f"error opening {path}: {exc.strerror}") from exc

    match = _PSI_VALUES.match(line[len(label) + 1:]) if line is not None else None
    if match is None:
        raise PluginError(f"error reading {path}")
    avg10, avg60, avg300, total = match.groups()
    return PsiLine(float(avg10), float(avg60), float(avg300), int(total))


def _check_delay(delay: int) -> None:
    if delay <= 0:
        raise ValueError("the delay must be a positive number of seconds")


def read_cpu_pressure(delay: int, path: str = PATH_PSI_CPU) -> tuple[PsiLine, int]:
    """Read CPU pressure and the starvation (microseconds per second) over ``delay``."""
    _check_delay(delay)
    first = parse_psi_line(path, "some")
    time.sleep(delay)
    second = parse_psi_line(path, "some")
    return first, (second.total - first.total) // delay


def _read_two_lines(path: str, delay: int) -> tuple[PsiTwoLines, tuple[int, int]]:
    _check_delay(delay)
    before = PsiTwoLines(parse_psi_line(path, "some"), parse_psi_line(path, "full"))
    time.sleep(delay)
    some = parse_psi_line(path, "some")
    full = parse_psi_line(path, "full")
    starvation = (
        (some.total - before.some.total) // delay,
        (full.total - before.full.total) // delay,
    )
    return before, starvation


def read_io_pressure(
    delay: int, path: str = PATH_PSI_IO
) -> tuple[PsiTwoLines, tuple[int, int]]:
    """Read I/O pressure and the (some, full) starvation over ``delay``."""
    return _read_two_lines(path, delay)


def read_memory_pressure(
    delay: int, path: str = PATH_PSI_MEMORY
) -> tuple[PsiTwoLines, tuple[int, int]]:
    """Read memory pressure and the (some, full) starvation over ``delay``."""
    return _read_two_lines(path, delay)