"""Linux system readers, threshold handling and the check_clock plugin for Nagios-compatible monitoring."""

__version__ = "0.1.0"