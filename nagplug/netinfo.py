"""Per-second network interface rates and their debug listing."""

from __future__ import annotations

import enum
import logging
import math
import re
import time
from collections.abc import Iterable, Sequence
from dataclasses import fields, replace

from .iflink import Duplex, IfStats, Interface, netinfo_snapshot
from .thresholds import PluginError, Status

__all__ = [
    "Option",
    "rate_stats",
    "netinfo",
    "debug_lines",
    "print_ifname_debug",
]

log = logging.getLogger(__name__)

_U32 = 0x100000000


class Option(enum.IntFlag):
    """Options controlling which interfaces and metrics are considered."""

    NONE = 0
    CHECK_LINK = enum.auto()
    NO_LOOPBACK = enum.auto()
    NO_WIRELESS = enum.auto()
    NO_BYTES = enum.auto()
    NO_COLLISIONS = enum.auto()
    NO_DROPS = enum.auto()
    NO_ERRORS = enum.auto()
    NO_MULTICAST = enum.auto()
    NO_PACKETS = enum.auto()
    RX_ONLY = enum.auto()
    TX_ONLY = enum.auto()


def _rate(first: int, second: int, seconds: int) -> int:
    # Counters are 32-bit: a wrapped counter still yields the true delta.
    return math.ceil(((second - first) % _U32) / seconds)


def _rate_ifstats(before: IfStats, after: IfStats, seconds: int) -> IfStats:
    values = {}
    for field in fields(IfStats):
        first = getattr(before, field.name)
        second = getattr(after, field.name)
        log.debug("\t%-10s : %u %u", field.name, first, second)
        values[field.name] = _rate(first, second, seconds)
    return IfStats(**values)


def rate_stats(
    before: Sequence[Interface], after: Sequence[Interface], seconds: int
) -> list[Interface]:
    """Turn two snapshots taken ``seconds`` apart into per-second rates.

    The snapshots are paired in order; only as many interfaces as the shorter
    snapshot holds are returned.
    """
    if seconds <= 0:
        raise ValueError("the interval must be a positive number of seconds")

    rated: list[Interface] = []
    for first, second in zip(before, after):
        if first.name != second.name:
            raise PluginError("bug in netinfo(), please contact the developers")
        log.debug("network interface '%s'", first.name)
        stats = None
        if first.stats is not None and second.stats is not None:
            stats = _rate_ifstats(first.stats, second.stats, seconds)
        rated.append(replace(first, stats=stats))
    return rated


def _check_link(interface: Interface) -> None:
    log.debug("\tlink UP: %s", "true" if interface.is_up() else "false")
    log.debug("\tlink RUNNING: %s", "true" if interface.is_running() else "false")
    if interface.speed > 0:
        log.debug("\tspeed      : %uMbit/s", interface.speed)


def netinfo(
    options: Option = Option.NONE,
    pattern: str | None = None,
    seconds: int = 0,
) -> tuple[list[Interface], int]:
    """Snapshot the interfaces matching ``pattern``.

    With ``seconds`` > 0 a second snapshot is taken after that delay and the
    counters become per-second rates. Returns the interfaces and how many were
    compared. With CHECK_LINK set, an interface that is not UP and RUNNING
    raises a critical PluginError.
    """
    options = Option(options)
    try:
        regex = re.compile(pattern if pattern is not None else ".*")
    except re.error as exc:
        raise PluginError(f"could not compile regex: {exc}") from exc

    ignore_loopback = bool(options & Option.NO_LOOPBACK)
    ignore_wireless = bool(options & Option.NO_WIRELESS)

    log.debug("getting network informations...")
    first = netinfo_snapshot(ignore_loopback, ignore_wireless, regex)
    if seconds <= 0:
        return first, len(first)

    time.sleep(seconds)
    log.debug("getting network informations again (after %us)...", seconds)
    second = netinfo_snapshot(ignore_loopback, ignore_wireless, regex)

    rated = rate_stats(first, second, seconds)
    for interface in rated:
        _check_link(interface)
        if options & Option.CHECK_LINK and not (
            interface.is_up() and interface.is_running()
        ):
            raise PluginError(
                f"{interface.name} matches the given regular expression "
                "but is not UP and RUNNING!",
                Status.CRITICAL,
            )

    # Interfaces past the shorter snapshot keep their raw counters.
    return rated + list(first[len(rated):]), len(rated)


def _metric_line(name: str, metric: str, tx_only: bool, rx_only: bool) -> str:
    text = " - "
    if not rx_only:
        text += f"{name}_tx{metric}\t "
    if not tx_only:
        text += f"{name}_rx{metric}"
    return text


def debug_lines(interfaces: Iterable[Interface], options: Option = Option.NONE) -> list[str]:
    """Describe each interface and the metrics that would be reported for it."""
    options = Option(options)
    tx_only = bool(options & Option.TX_ONLY)
    rx_only = bool(options & Option.RX_ONLY)
    metrics = [
        (Option.NO_BYTES, "byte/s"),
        (Option.NO_ERRORS, "err/s"),
        (Option.NO_DROPS, "drop/s"),
        (Option.NO_PACKETS, "pck/s"),
    ]

    lines: list[str] = []
    for interface in interfaces:
        up, running = interface.is_up(), interface.is_running()
        if up and not running:
            state = " (NO-CARRIER)"
        elif up:
            state = ""
        else:
            state = " (DOWN)"
        speed = f" link-speed:{interface.speed}Mbps" if interface.speed > 0 else ""
        duplex = (
            f" {interface.duplex.text}-duplex"
            if interface.duplex is not Duplex.UNKNOWN
            else ""
        )
        lines.append(f"{interface.name}{state}{speed}{duplex}")

        if interface.stats is None:
            continue
        for flag, metric in metrics:
            if not options & flag:
                lines.append(_metric_line(interface.name, metric, tx_only, rx_only))
        if not options & Option.NO_COLLISIONS:
            lines.append(f" - {interface.name}_coll/s")
        if not options & Option.NO_MULTICAST:
            lines.append(f" - {interface.name}_mcast/s")
    return lines


def print_ifname_debug(
    interfaces: Iterable[Interface], options: Option = Option.NONE
) -> None:
    """Print the listing produced by debug_lines."""
    for line in debug_lines(interfaces, options):
        print(line)