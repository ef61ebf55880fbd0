"""Plugin reporting the seconds between local time and the poller's time."""

from __future__ import annotations

import getopt
import sys
import time
from typing import TextIO

from .thresholds import Status, ThresholdError, set_thresholds
from .xstrton import ConversionError, parse_int

__all__ = ["get_timedelta", "main"]

_PROGRAM = "check_clock"
_PROGRAM_SHORT = "clock"


def _usage(out: TextIO) -> None:
    out.write(
        f"{_PROGRAM} (nagplug)\n"
        "This plugin returns the number of seconds elapsed between\n"
        "the host local time and Nagios time.\n"
        "\nUsage:\n"
        f"  {_PROGRAM} [-w COUNTER] [-c COUNTER] --refclock TIME\n"
        "\nOptions:\n"
        "  -r, --refclock COUNTER   the clock reference (in seconds since the Epoch)\n"
        "  -w, --warning COUNTER    warning threshold\n"
        "  -c, --critical COUNTER   critical threshold\n"
        "  -v, --verbose   show details for command-line debugging "
        "(Nagios may truncate output)\n"
        "  -h, --help      display this help and exit\n"
        "  -V, --version   output version information and exit\n"
        "\nExamples:\n"
        f"  {_PROGRAM} -w 60 -c 120 --refclock $ARG1$\n"
        "  # where $ARG1$ is the number of seconds since the Epoch: "
        "\"$(date '+%s')\"\n"
        "  # provided by the Nagios poller\n"
    )


def get_timedelta(refclock: int, verbose: bool = False) -> int:
    """Seconds between the local clock and ``refclock`` (seconds since the Epoch)."""
    now = int(time.time())
    delta = now - refclock
    if verbose:
        print(f"Seconds since the Epoch: {now}")
        print(f"Refclock: {refclock}  -->  Delta: {delta}")
    return delta


def main(argv: list[str] | None = None) -> int:
    """Run the plugin and return its Nagios state."""
    args = sys.argv[1:] if argv is None else argv
    try:
        opts, _ = getopt.gnu_getopt(
            args,
            "r:c:w:vhV",
            ["refclock=", "critical=", "warning=", "verbose", "help", "version"],
        )
    except getopt.GetoptError:
        _usage(sys.stderr)
        return Status.UNKNOWN

    refclock: int | None = None
    warning = critical = None
    verbose = False
    for opt, value in opts:
        if opt in ("-r", "--refclock"):
            try:
                refclock = parse_int(value, "the option '-s' requires an integer")
            except ConversionError as exc:
                print(f"{_PROGRAM}: {exc}", file=sys.stderr)
                return Status.UNKNOWN
        elif opt in ("-c", "--critical"):
            critical = value
        elif opt in ("-w", "--warning"):
            warning = value
        elif opt in ("-v", "--verbose"):
            verbose = True
        elif opt in ("-h", "--help"):
            _usage(sys.stdout)
            return Status.OK
        elif opt in ("-V", "--version"):
            print(f"{_PROGRAM} (nagplug)")
            return Status.OK

    # -1 doubles as the "not given" marker, as an unsigned all-ones value.
    if refclock is None or refclock == -1:
        _usage(sys.stderr)
        return Status.UNKNOWN

    try:
        thresholds = set_thresholds(warning, critical)
    except ThresholdError:
        _usage(sys.stderr)
        return Status.UNKNOWN

    delta = get_timedelta(refclock, verbose)
    status = thresholds.status(abs(delta))
    print(
        f"{_PROGRAM_SHORT} {status.text} - time delta {delta}s | clock_delta={delta}"
    )
    return status


if __name__ == "__main__":
    sys.exit(main())