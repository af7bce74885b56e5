"""Curdle Core - Player name rules."""
from __future__ import annotations

from curdle_core.protocol import NAME_MAX_LEN


def validate_name(name: str) -> bool:
    """Accept 1-9 printable ASCII characters with no whitespace."""
    if not name or len(name) > NAME_MAX_LEN:
        return False
    for ch in name:
        if ch.isspace() or not ch.isascii() or not ch.isprintable():
            return False
    return True


def normalize_name(name: str) -> str:
    """Fit a name to the width of the name field."""
    return name[:NAME_MAX_LEN]
