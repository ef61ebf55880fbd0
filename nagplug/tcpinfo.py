"""Counts of TCP sockets per state, read from /proc/net/tcp and tcp6."""

from __future__ import annotations

import enum
import ipaddress
import re
import sys
from collections import Counter
from dataclasses import dataclass, field

from .thresholds import PluginError

__all__ = [
    "PROC_TCP",
    "PROC_TCP6",
    "TcpState",
    "TcpTable",
    "decode_address",
]

PROC_TCP = "/proc/net/tcp"
PROC_TCP6 = "/proc/net/tcp6"


class TcpState(enum.IntEnum):
    """Socket states as numbered by the kernel."""

    ESTABLISHED = 1
    SYN_SENT = 2
    SYN_RECV = 3
    FIN_WAIT1 = 4
    FIN_WAIT2 = 5
    TIME_WAIT = 6
    CLOSE = 7
    CLOSE_WAIT = 8
    LAST_ACK = 9
    LISTEN = 10
    CLOSING = 11


_HEX = re.compile(r"\s*([+-]?[0-9A-Fa-f]+)")
_DEC = re.compile(r"\s*([+-]?\d+)")
_ADDR = re.compile(r"\s*([0-9A-Fa-f]{1,64})")

# slot: local:port remote:port state txq:rxq timer:when retr uid timeout inode
_STEPS: tuple[re.Pattern[str] | str, ...] = (
    _DEC, ":",
    _ADDR, ":", _HEX,
    _ADDR, ":", _HEX,
    _HEX,
    _HEX, ":", _HEX,
    _HEX, ":", _HEX,
    _HEX, _DEC, _DEC, _DEC,
)
_MIN_FIELDS = 11
_U32 = 0xFFFFFFFF


def _scan(line: str) -> list[str]:
    """Return the leading fields of a socket line that parse."""
    values: list[str] = []
    pos = 0
    for step in _STEPS:
        if isinstance(step, str):
            if not line.startswith(step, pos):
                break
            pos += len(step)
            continue
        match = step.match(line, pos)
        if match is None:
            break
        values.append(match.group(1))
        pos = match.end()
    return values


def decode_address(hexaddr: str) -> str:
    """Turn a kernel hex address (host byte order words) into text."""
    if len(hexaddr) > 8:
        words = [hexaddr[i:i + 8] or "0" for i in range(0, 32, 8)]
        raw = b"".join(
            (int(word, 16) & _U32).to_bytes(4, sys.byteorder) for word in words
        )
        address = ipaddress.IPv6Address(raw)
        if address.ipv4_mapped is not None:
            return f"::ffff:{address.ipv4_mapped}"
        return str(address)
    raw = (int(hexaddr, 16) & _U32).to_bytes(4, sys.byteorder)
    return str(ipaddress.IPv4Address(raw))


@dataclass
class TcpTable:
    """Per-state socket counters accumulated over one or more files."""

    tcp4_path: str = PROC_TCP
    tcp6_path: str = PROC_TCP6
    counts: Counter = field(default_factory=Counter)

    def parse(self, path: str, verbose: bool = False) -> None:
        """Add the sockets listed in ``path`` to the counters."""
        try:
            handle = open(path, encoding="utf-8", errors="replace")
        except OSError as exc:
            raise PluginError(f"error opening {path}: {exc.strerror}") from exc

        with handle:
            for lineno, line in enumerate(handle, 1):
                if lineno == 1:
                    if verbose:
                        print(
                            f"[{path}]\nproto  {'status':<11} "
                            f"{'local-addr:port':>20} {'remote-addr:port':>22}"
                        )
                    continue

                fields = _scan(line)
                if len(fields) < _MIN_FIELDS:
                    sys.stderr.write(f"warning, got bogus tcp line.\n{line}")
                if len(fields) < 6:
                    continue

                state_number = int(fields[5], 16) & _U32
                try:
                    state: TcpState | None = TcpState(state_number)
                except ValueError:
                    state = None
                if state is not None:
                    self.counts[state] += 1

                if verbose:
                    self._print_socket(fields, state)

    @staticmethod
    def _print_socket(fields: list[str], state: TcpState | None) -> None:
        local, remote = fields[1], fields[3]
        local_port = int(fields[2], 16) & _U32
        remote_port = int(fields[4], 16) & _U32
        proto = "tcp6" if len(local) > 8 else "tcp"
        label = state.name if state is not None else ""
        print(
            f" {proto:<5} {label:<11} {decode_address(local):>15}:{local_port:<6} "
            f"{decode_address(remote):>15}:{remote_port:<6}"
        )

    def read(self, ipv4: bool = True, ipv6: bool = False, verbose: bool = False) -> None:
        """Parse the IPv4 and/or IPv6 socket tables."""
        if ipv4:
            self.parse(self.tcp4_path, verbose)
        if ipv6:
            self.parse(self.tcp6_path, verbose)

    def count(self, state: TcpState | int) -> int:
        """The number of sockets seen in ``state``."""
        return self.counts[TcpState(state)]