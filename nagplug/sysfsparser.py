"""Readers for the sysfs filesystem: CPU frequency scaling and thermal zones."""

from __future__ import annotations

import errno
import os
import re
from collections.abc import Iterable
from dataclasses import dataclass

from .thresholds import PluginError

__all__ = [
    "PATH_SYS",
    "PATH_SYS_CPU",
    "PATH_SYS_ACPI_THERMAL",
    "check_for_sysfs",
    "path_exists",
    "scan_entries",
    "read_first_line",
    "read_value",
    "linelookup_numeric",
    "CpuFreq",
    "Thermal",
]

PATH_SYS = "/sys"
PATH_SYS_CPU = PATH_SYS + "/devices/system/cpu"
PATH_SYS_ACPI_THERMAL = PATH_SYS + "/class/thermal"

_MOUNTS = "/proc/self/mounts"
_C_SPACES = " \t\n\v\f\r"
_ULLONG_MAX = 2**64 - 1
_LLONG_MAX = 2**63 - 1
_LLONG_MIN = -(2**63)

_AUTO_BASE = re.compile(
    r"[ \t\n\v\f\r]*([+-]?)(0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*)"
)
_DECIMAL = re.compile(r"[ \t\n\v\f\r]*([+-]?)([0-9]+)")
_ENTRY_KINDS = frozenset({"dir", "file", "symlink", "other"})
_ZONE_PREFIX = "thermal_zone"


def _strtoull_auto(text: str) -> int:
    """Unsigned parse with C base detection; 0 on no digits or overflow."""
    match = _AUTO_BASE.match(text)
    if match is None:
        return 0
    sign, digits = match.groups()
    if digits[:2] in ("0x", "0X"):
        number = int(digits[2:], 16)
    elif digits.startswith("0"):
        number = int(digits, 8)
    else:
        number = int(digits)
    if number > _ULLONG_MAX:
        return 0
    return (-number) % (_ULLONG_MAX + 1) if sign == "-" else number


def _strtoul_dec(text: str) -> int:
    """Unsigned base-10 parse; 0 on no digits or overflow."""
    match = _DECIMAL.match(text)
    if match is None:
        return 0
    sign, digits = match.groups()
    number = int(digits)
    if number > _ULLONG_MAX:
        return 0
    return (-number) % (_ULLONG_MAX + 1) if sign == "-" else number


def _leading_unsigned(text: str) -> int:
    match = _DECIMAL.match(text)
    if match is None or match.group(1) == "-":
        return 0
    return min(int(match.group(2)), _ULLONG_MAX)


def check_for_sysfs() -> None:
    """Raise PluginError unless a sysfs filesystem is mounted on /sys."""
    try:
        with open(_MOUNTS, encoding="utf-8", errors="replace") as handle:
            for line in handle:
                fields = line.split()
                if len(fields) >= 3 and fields[1] == PATH_SYS and fields[2] == "sysfs":
                    return
    except OSError:
        pass
    raise PluginError(f"The sysfs filesystem ({PATH_SYS}) is not mounted")


def path_exists(path: str) -> bool:
    """True if ``path`` exists."""
    return os.path.exists(path)


def _entry_kind(entry: os.DirEntry) -> str:
    if entry.is_symlink():
        return "symlink"
    if entry.is_dir(follow_symlinks=False):
        return "dir"
    if entry.is_file(follow_symlinks=False):
        return "file"
    return "other"


def scan_entries(path: str, kinds: Iterable[str]) -> list[os.DirEntry]:
    """List the entries of directory ``path`` whose kind is among ``kinds``.

    Kinds are ``dir``, ``file``, ``symlink`` and ``other``.
    """
    wanted = frozenset(kinds)
    unknown = wanted - _ENTRY_KINDS
    if unknown:
        raise ValueError(f"unknown entry kinds: {', '.join(sorted(unknown))}")
    try:
        with os.scandir(path) as scan:
            return [entry for entry in scan if _entry_kind(entry) in wanted]
    except OSError as exc:
        raise PluginError(f"Cannot open {path}: {exc.strerror}") from exc


def read_first_line(path: str) -> str | None:
    """The first line of ``path`` without its newline, or None if unreadable or empty."""
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            line = handle.readline()
    except OSError:
        return None
    if not line:
        return None
    return line[:-1] if line.endswith("\n") else line


def read_value(path: str) -> int:
    """The unsigned number on the first line of ``path``, or 0 if there is none."""
    line = read_first_line(path)
    if line is None:
        return 0
    return _strtoull_auto(line)


def linelookup_numeric(line: str, pattern: str) -> int | None:
    """Return the number after ``pattern`` and a blank in ``line``, or None."""
    if not line or len(pattern) + 1 > len(line):
        return None
    if not line.startswith(pattern) or line[len(pattern)] not in _C_SPACES:
        return None
    match = _DECIMAL.match(line, len(pattern))
    if match is None:
        return 0
    sign, digits = match.groups()
    number = -int(digits) if sign == "-" else int(digits)
    return max(_LLONG_MIN, min(_LLONG_MAX, number))


@dataclass(frozen=True)
class CpuFreq:
    """The cpufreq settings of one CPU."""

    cpu: int
    root: str = PATH_SYS_CPU

    def _path(self, name: str) -> str:
        return f"{self.root}/cpu{self.cpu}/cpufreq/{name}"

    def _value(self, name: str) -> int:
        line = read_first_line(self._path(name))
        return 0 if line is None else _strtoul_dec(line)

    def _string(self, name: str) -> str | None:
        return read_first_line(self._path(name))

    def hardware_limits(self) -> tuple[int, int]:
        """The (minimum, maximum) hardware frequencies in kHz."""
        low = self._value("cpuinfo_min_freq")
        if not low:
            raise OSError(errno.ENODEV, f"no minimum frequency for cpu {self.cpu}")
        high = self._value("cpuinfo_max_freq")
        if not high:
            raise OSError(errno.ENODEV, f"no maximum frequency for cpu {self.cpu}")
        return low, high

    def current_freq(self) -> int:
        """The frequency the kernel last set, in kHz (0 if unknown)."""
        return self._value("scaling_cur_freq")

    def available_freqs(self) -> str | None:
        """The available frequencies, as listed by the kernel."""
        return self._string("scaling_available_frequencies")

    def transition_latency(self) -> int:
        """The frequency transition latency in nanoseconds (0 if unknown)."""
        return self._value("cpuinfo_transition_latency")

    def driver(self) -> str | None:
        """The scaling driver in use."""
        return self._string("scaling_driver")

    def governor(self) -> str | None:
        """The scaling governor in use."""
        return self._string("scaling_governor")

    def available_governors(self) -> str | None:
        """The scaling governors available."""
        return self._string("scaling_available_governors")


@dataclass(frozen=True)
class Thermal:
    """The thermal zones exposed under a sysfs thermal class directory."""

    path: str = PATH_SYS_ACPI_THERMAL

    def kernel_support(self) -> bool:
        """True if the thermal class directory is present and accessible."""
        return os.path.isdir(self.path) and os.access(self.path, os.X_OK)

    def _unsupported(self) -> PluginError:
        return PluginError(
            "no ACPI thermal support in kernel "
            f'or incorrect path ("{self.path}")'
        )

    def critical_temperature(self, zone: int) -> int:
        """The critical trip point of ``zone`` in millidegrees, or -1 if none."""
        base = f"{self.path}/thermal_zone{zone}"
        for trip in range(4):
            kind = read_first_line(f"{base}/trip_point_{trip}_type")
            if kind is None or not kind.startswith("critical"):
                continue
            return read_value(f"{base}/trip_point_{trip}_temp")
        return -1

    def device(self, zone: int) -> str:
        """The ACPI device name of ``zone``, or ``Virtual device``."""
        device = read_first_line(f"{self.path}/thermal_zone{zone}/device/path")
        if device is None:
            return "Virtual device"
        return device.removeprefix("\\_TZ_.")

    def temperature(
        self, selected_zone: int | None = None
    ) -> tuple[int, int, str | None]:
        """Return (millidegrees, zone, type) of the hottest or the selected zone."""
        if not self.kernel_support():
            raise self._unsupported()
        try:
            names = os.listdir(self.path)
        except OSError as exc:
            raise PluginError(f"cannot open() {self.path}: {exc.strerror}") from exc

        found = False
        max_temp = 0
        max_zone = 0
        max_type: str | None = None
        for name in names:
            if not name.startswith(_ZONE_PREFIX):
                continue
            zone = _leading_unsigned(name[len(_ZONE_PREFIX):])
            if selected_zone is not None and selected_zone != zone:
                continue
            temp = read_value(f"{self.path}/{name}/temp")
            kind = read_first_line(f"{self.path}/{name}/type")
            found = True
            if max_temp < temp or max_temp == 0:
                max_temp, max_zone, max_type = temp, zone, kind

        if not found:
            if selected_zone is None:
                raise PluginError("no thermal information has been found")
            raise PluginError(f"no thermal information for zone '{selected_zone}'")
        return max_temp, max_zone, max_type

    def list_all(self) -> list[str]:
        """Print and return a description of every thermal zone."""
        if not self.kernel_support():
            raise self._unsupported()
        try:
            names = sorted(os.listdir(self.path))
        except OSError as exc:
            raise PluginError(f"cannot scandir() {self.path}: {exc.strerror}") from exc

        lines = [f"Thermal zones reported by the linux kernel ({self.path}):"]
        for name in names:
            if not name.startswith(_ZONE_PREFIX):
                continue
            zone = _leading_unsigned(name[len(_ZONE_PREFIX):])
            kind = read_first_line(f"{self.path}/{name}/type")
            crit = self.critical_temperature(zone)
            text = (
                f" - zone {zone:2d} [{self.device(zone)}], "
                f'type "{kind if kind is not None else "n/a"}"'
            )
            if crit > 0:
                text += f", critical trip point at {crit // 1000}°C"
            lines.append(text)

        for line in lines:
            print(line)
        return lines