from __future__ import annotations

import re


_C_INT_RE = re.compile(r"[ \t\n\v\f\r]*([+-]?\d+)")


def parse_c_int(text: str) -> int:
    """Parse ``text`` the way C ``atoi`` does; no leading digits yields 0."""
    match = _C_INT_RE.match(text)
    if match is None:
        return 0
    return int(match.group(1))


def truncate_exit_status(value: int) -> int:
    return value & 0xFF
