"""Program name handling."""

from __future__ import annotations

from dataclasses import dataclass

from .thresholds import PluginError

__all__ = ["ProgramName", "set_program_name"]


@dataclass(frozen=True)
class ProgramName:
    """The program's base name and the short form used in output."""

    name: str
    short: str


def set_program_name(argv0: str | None) -> ProgramName:
    """Derive the program names from ``argv[0]``."""
    if argv0 is None:
        raise PluginError("A NULL argv[0] was passed through an exec system call")
    name = argv0.rpartition("/")[2]
    _, sep, tail = name.partition("_")
    return ProgramName(name=name, short=tail if sep else name)