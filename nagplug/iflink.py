"""Network interface snapshots taken through rtnetlink, with link speed and duplex."""

from __future__ import annotations

import enum
import fcntl
import logging
import os
import re
import socket
import struct
from dataclasses import dataclass

from .thresholds import PluginError

__all__ = [
    "IFF_UP",
    "IFF_LOOPBACK",
    "IFF_RUNNING",
    "IFLA_IFNAME",
    "IFLA_STATS",
    "NLMSG_DONE",
    "RTM_NEWLINK",
    "SYS_CLASS_NET",
    "Duplex",
    "IfStats",
    "Interface",
    "speed_to_text",
    "link_speed",
    "is_wireless",
    "parse_rtattrs",
    "parse_link_messages",
    "netinfo_snapshot",
]

log = logging.getLogger(__name__)

IFF_UP = 0x1
IFF_LOOPBACK = 0x8
IFF_RUNNING = 0x40

NLMSG_DONE = 3
RTM_NEWLINK = 16
RTM_GETLINK = 18
NLM_F_REQUEST = 0x1
NLM_F_DUMP = 0x300
NETLINK_ROUTE = 0
AF_PACKET = 17

IFLA_IFNAME = 3
IFLA_STATS = 7

IFNAMSIZ = 16
SIOCGIWNAME = 0x8B01

SYS_CLASS_NET = "/sys/class/net"

_REPLY_BUFFER = 32768
_NLMSGHDR = struct.Struct("=IHHII")
_IFINFOMSG = struct.Struct("=BxHiII")
_RTATTR = struct.Struct("=HH")
_LINK_STATS = struct.Struct("=10I")
_RTGENMSG = struct.Struct("=B")

_UNKNOWN_SPEEDS = frozenset({0xFFFF, 0xFFFFFFFF})

_SPEED_TEXT = {
    10: "10Mbps",
    100: "100Mbps",
    1000: "1Gbps",
    2500: "2.5Gbps",
    5000: "5Gbps",
    10000: "10Gbps",
    14000: "14Gbps",
    20000: "20Gbps",
    25000: "25Gbps",
    40000: "40Gbps",
    50000: "50Gbps",
    56000: "56Gbps",
    100000: "100Gbps",
}


class Duplex(enum.IntEnum):
    """Link duplex mode as reported by the kernel."""

    HALF = 0
    FULL = 1
    UNKNOWN = 0xFF

    @property
    def text(self) -> str:
        """``half``, ``full`` or ``unknown``."""
        return self.name.lower()


@dataclass
class IfStats:
    """Traffic counters of one interface."""

    collisions: int = 0
    multicast: int = 0
    tx_packets: int = 0
    rx_packets: int = 0
    tx_bytes: int = 0
    rx_bytes: int = 0
    tx_errors: int = 0
    rx_errors: int = 0
    tx_dropped: int = 0
    rx_dropped: int = 0


@dataclass
class Interface:
    """A network interface with its flags, link settings and counters."""

    name: str
    flags: int = 0
    speed: int = 0
    duplex: Duplex = Duplex.UNKNOWN
    stats: IfStats | None = None

    def is_up(self) -> bool:
        """True if the interface is administratively up."""
        return bool(self.flags & IFF_UP)

    def is_running(self) -> bool:
        """True if the interface has a carrier."""
        return bool(self.flags & IFF_RUNNING)

    def is_loopback(self) -> bool:
        """True for a loopback interface."""
        return bool(self.flags & IFF_LOOPBACK)


def speed_to_text(speed: int) -> str:
    """Human-readable form of a link speed in Mbit/s."""
    return _SPEED_TEXT.get(speed, "unknown!")


def _read_sysfs(ifname: str, name: str) -> str | None:
    try:
        with open(os.path.join(SYS_CLASS_NET, ifname, name), encoding="utf-8") as handle:
            return handle.readline().strip()
    except (OSError, UnicodeDecodeError):
        return None


def link_speed(ifname: str) -> tuple[int, Duplex]:
    """Return (speed in Mbit/s, duplex) of ``ifname``; unknown speed is 0."""
    speed = 0
    duplex = Duplex.UNKNOWN

    speed_text = _read_sysfs(ifname, "speed")
    if speed_text is not None:
        try:
            speed = int(speed_text) & 0xFFFFFFFF
        except ValueError:
            speed = 0
    else:
        log.debug("%s: no link speed associated to this interface", ifname)

    duplex_text = _read_sysfs(ifname, "duplex")
    if duplex_text == "half":
        duplex = Duplex.HALF
    elif duplex_text == "full":
        duplex = Duplex.FULL

    log.debug(
        "%s: duplex %s (%d), speed is %s (%u)",
        ifname,
        "invalid" if duplex is Duplex.UNKNOWN else duplex.text,
        duplex,
        speed_to_text(speed),
        speed,
    )

    if speed in _UNKNOWN_SPEEDS:
        log.debug("%s: normalizing the unknown speed to zero...", ifname)
        speed = 0
    return speed, duplex


def is_wireless(ifname: str) -> bool:
    """True if ``ifname`` answers wireless extension requests."""
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    except OSError as exc:
        raise PluginError(f"socket() failed: {exc.strerror}") from exc

    request = ifname.encode("utf-8")[:IFNAMSIZ].ljust(2 * IFNAMSIZ, b"\0")
    with sock:
        try:
            reply = fcntl.ioctl(sock.fileno(), SIOCGIWNAME, request)
        except OSError:
            return False

    protocol = reply[IFNAMSIZ:].split(b"\0", 1)[0].decode("utf-8", "replace")
    log.debug("%s: wireless interface (%s)", ifname, protocol)
    return True


def _align(length: int) -> int:
    return (length + 3) & ~3


def parse_rtattrs(data: bytes) -> dict[int, bytes]:
    """Map each routing attribute type in ``data`` to its payload (last one wins)."""
    attrs: dict[int, bytes] = {}
    offset = 0
    remaining = len(data)
    while remaining >= _RTATTR.size:
        length, kind = _RTATTR.unpack_from(data, offset)
        if length < _RTATTR.size or length > remaining:
            break
        attrs[kind] = bytes(data[offset + _RTATTR.size:offset + length])
        step = _align(length)
        offset += step
        remaining -= step
    return attrs


def _parse_newlink(payload: bytes) -> Interface:
    if len(payload) < _IFINFOMSG.size:
        raise PluginError("truncated link message returned by the kernel")
    _family, _type, _index, flags, _change = _IFINFOMSG.unpack_from(payload)
    attrs = parse_rtattrs(payload[_IFINFOMSG.size:])

    raw_name = attrs.get(IFLA_IFNAME)
    if raw_name is None:
        raise PluginError("BUG: nil ifname returned by parse_rtattr()")
    name = raw_name.split(b"\0", 1)[0].decode("utf-8", "replace")

    stats = None
    raw_stats = attrs.get(IFLA_STATS)
    if raw_stats is not None and len(raw_stats) >= _LINK_STATS.size:
        (rx_packets, tx_packets, rx_bytes, tx_bytes, rx_errors, tx_errors,
         rx_dropped, tx_dropped, multicast, collisions) = _LINK_STATS.unpack_from(raw_stats)
        stats = IfStats(
            collisions=collisions,
            multicast=multicast,
            tx_packets=tx_packets,
            rx_packets=rx_packets,
            tx_bytes=tx_bytes,
            rx_bytes=rx_bytes,
            tx_errors=tx_errors,
            rx_errors=rx_errors,
            tx_dropped=tx_dropped,
            rx_dropped=rx_dropped,
        )
    else:
        log.debug("no network interface stats for '%s'...", name)

    return Interface(name=name, flags=flags, stats=stats)


def parse_link_messages(data: bytes) -> tuple[list[Interface], bool]:
    """Parse a netlink reply; return its links and whether the dump is done."""
    links: list[Interface] = []
    done = False
    offset = 0
    remaining = len(data)
    while remaining >= _NLMSGHDR.size:
        length, kind, _flags, _seq, _pid = _NLMSGHDR.unpack_from(data, offset)
        if length < _NLMSGHDR.size or length > remaining:
            break
        if kind == NLMSG_DONE:
            done = True
        elif kind == RTM_NEWLINK:
            links.append(_parse_newlink(data[offset + _NLMSGHDR.size:offset + length]))
        step = _align(length)
        offset += step
        remaining -= step
    return links, done


def _dump_request() -> bytes:
    length = _NLMSGHDR.size + _RTGENMSG.size
    header = _NLMSGHDR.pack(
        length, RTM_GETLINK, NLM_F_REQUEST | NLM_F_DUMP, 1, os.getpid()
    )
    return header + _RTGENMSG.pack(AF_PACKET)


def _rtnl_socket() -> socket.socket:
    try:
        sock = socket.socket(socket.AF_NETLINK, socket.SOCK_RAW, NETLINK_ROUTE)
    except OSError as exc:
        raise PluginError(f"failed to create netlink socket: {exc.strerror}") from exc
    try:
        sock.bind((0, 0))
    except OSError as exc:
        sock.close()
        raise PluginError(f"failed to bind netlink socket: {exc.strerror}") from exc
    return sock


def netinfo_snapshot(
    ignore_loopback: bool = False,
    ignore_wireless: bool = False,
    pattern: str | re.Pattern[str] | None = None,
) -> list[Interface]:
    """List the interfaces whose names match ``pattern`` (searched, default any)."""
    if isinstance(pattern, re.Pattern):
        regex = pattern
    else:
        try:
            regex = re.compile(pattern if pattern is not None else ".*")
        except re.error as exc:
            raise PluginError(f"could not compile regex: {exc}") from exc

    interfaces: list[Interface] = []
    with _rtnl_socket() as sock:
        try:
            sock.send(_dump_request())
        except OSError as exc:
            raise PluginError(f"error in sendmsg: {exc.strerror}") from exc

        done = False
        while not done:
            try:
                data = sock.recv(_REPLY_BUFFER)
            except InterruptedError:
                continue
            except OSError as exc:
                raise PluginError(f"error in recvmsg: {exc.strerror}") from exc
            if not data:
                break
            links, done = parse_link_messages(data)
            for link in links:
                skip = (
                    (ignore_loopback and link.is_loopback())
                    or (ignore_wireless and is_wireless(link.name))
                    or regex.search(link.name) is None
                )
                if skip:
                    log.debug("skipping network interface '%s'...", link.name)
                    continue
                link.speed, link.duplex = link_speed(link.name)
                interfaces.append(link)
    return interfaces