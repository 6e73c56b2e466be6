"""MAC / IPv4 address validation.

Pure helpers — no I/O.  ``normalize_mac`` assumes its input already passed
``validate_mac``.
"""

from __future__ import annotations

import re

# Six hex pairs; the separator captured after the first pair must repeat.
_MAC_RE = re.compile(r"[0-9A-Fa-f]{2}([:-])(?:[0-9A-Fa-f]{2}\1){4}[0-9A-Fa-f]{2}")

_OCTET_RE = re.compile(r"\d{1,3}", re.ASCII)


def validate_mac(text: str) -> bool:
    """Return ``True`` for ``aa:bb:cc:dd:ee:ff`` or ``AA-BB-CC-DD-EE-FF`` forms."""
    return _MAC_RE.fullmatch(text) is not None


def validate_ipv4(text: str) -> bool:
    """Return ``True`` for a dotted-quad address with every octet in 0-255."""
    parts = text.split(".")
    if len(parts) != 4:
        return False
    for part in parts:
        if not _OCTET_RE.fullmatch(part):
            return False
        if int(part) > 255:
            return False
    return True


def normalize_mac(text: str) -> str:
    """Lower-case *text* and use ``:`` as the separator."""
    return text.lower().replace("-", ":")
