"""URL (form) encoding."""

from __future__ import annotations

import string

__all__ = ["url_encode"]

_SAFE = frozenset((string.ascii_letters + string.digits + "-_.~").encode("ascii"))


def url_encode(text: str | bytes) -> str:
    """Percent-encode ``text`` with lowercase hex, writing spaces as '+'."""
    data = text.encode("utf-8") if isinstance(text, str) else bytes(text)
    parts = []
    for byte in data:
        if byte in _SAFE:
            parts.append(chr(byte))
        elif byte == 0x20:
            parts.append("+")
        else:
            parts.append(f"%{byte:02x}")
    return "".join(parts)