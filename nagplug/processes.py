"""Per-user counts of the running processes, read from /proc."""

from __future__ import annotations

import os
import pwd
import re
import resource
from collections.abc import Iterator
from dataclasses import dataclass

from .thresholds import PluginError

__all__ = [
    "PROC_ROOT",
    "UserProcs",
    "ProcessList",
    "uid_to_username",
    "procs_list_getall",
]

PROC_ROOT = "/proc"
_MAX_CMD = 127
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")
_DIGITS = "0123456789"
_SPACES = " \t\n\r\f\v"


def _strtol(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def uid_to_username(uid: int) -> str:
    """Return the login name of ``uid``, or ``<no-user>`` if there is none."""
    try:
        return pwd.getpwuid(uid).pw_name
    except (KeyError, OverflowError):
        return "<no-user>"


def _nproc_limits() -> tuple[int, int]:
    try:
        return resource.getrlimit(resource.RLIMIT_NPROC)
    except (OSError, ValueError):
        return resource.RLIM_INFINITY, resource.RLIM_INFINITY


@dataclass
class UserProcs:
    """The number of processes (or threads) owned by one user."""

    uid: int
    username: str
    nbr: int = 0
    rlimit_nproc_soft: int = resource.RLIM_INFINITY
    rlimit_nproc_hard: int = resource.RLIM_INFINITY


class ProcessList:
    """Per-user process counters, in the order the users were first seen."""

    def __init__(self) -> None:
        self._users: dict[int, UserProcs] = {}
        self._total = 0

    def add(self, uid: int, inc: int = 1) -> UserProcs:
        """Count ``inc`` more processes for ``uid`` and return its entry."""
        self._total += inc
        entry = self._users.get(uid)
        if entry is None:
            soft, hard = _nproc_limits()
            entry = UserProcs(uid, uid_to_username(uid), 0, soft, hard)
            self._users[uid] = entry
        entry.nbr += inc
        return entry

    def total(self) -> int:
        """The number of processes counted over all users."""
        return self._total

    def __iter__(self) -> Iterator[UserProcs]:
        return iter(self._users.values())

    def __len__(self) -> int:
        return len(self._users)


def _read_status(path: str) -> tuple[str, int, int] | None:
    """Return (command, uid, threads) from a status file, or None."""
    name: str | None = None
    uid: int | None = None
    threads: int | None = None
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            for line in handle:
                if line.startswith("Name:"):
                    name = line[5:].lstrip(_SPACES)[:_MAX_CMD]
                if line.startswith("Threads:"):
                    threads = _strtol(line[8:])
                if line.startswith("Uid:"):
                    uid = _strtol(line[4:])
                if name is not None and uid is not None and threads is not None:
                    return name, uid, threads
    except OSError:
        # The process may have just terminated.
        return None
    return None


def procs_list_getall(
    threads: bool = False, verbose: bool = False, proc_root: str = PROC_ROOT
) -> ProcessList:
    """Count the running processes (or threads, if ``threads``) per user."""
    try:
        with os.scandir(proc_root) as scan:
            entries = list(scan)
    except OSError as exc:
        raise PluginError(f"Cannot open {proc_root}: {exc.strerror}") from exc

    plist = ProcessList()
    for entry in entries:
        if not entry.name[:1] or entry.name[0] not in _DIGITS:
            continue
        try:
            if not entry.is_dir(follow_symlinks=False):
                continue
        except OSError:
            continue

        info = _read_status(os.path.join(entry.path, "status"))
        if info is None:
            continue
        cmd, uid, nthreads = info
        plist.add(uid, nthreads if threads else 1)
        if verbose:
            print(
                f"{uid_to_username(uid):>12}:  pid: {entry.name:>5}  "
                f"threads: {nthreads:>5}, cmd: {cmd}",
                end="",
            )
    return plist