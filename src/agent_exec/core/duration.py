"""Duration parsing and formatting.

Durations on the command line use Go's syntax: one or more
``<number><unit>`` pairs such as ``2h30m``, ``1.5s`` or ``300ms``. A bare
number is taken as seconds and ``0`` needs no unit.
"""

import re

_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_BARE_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def parse_duration(text: str) -> float:
    """Parse a duration string into seconds.

    Raises:
        ValueError: If the text is empty, negative or malformed.
    """
    raw = text.strip()
    if not raw:
        raise ValueError("empty duration")
    if raw.startswith("-"):
        raise ValueError(f"negative duration: {text}")
    if raw.startswith("+"):
        raw = raw[1:]

    if _BARE_NUMBER.fullmatch(raw):
        return float(raw)

    total = 0.0
    pos = 0
    while pos < len(raw):
        match = _COMPONENT.match(raw, pos)
        if match is None:
            raise ValueError(f"invalid duration: {text}")
        total += float(match.group(1)) * _UNITS[match.group(2)]
        pos = match.end()
    return total


def format_duration(seconds: float) -> str:
    """Format a duration for event output: ``12.0ms``, ``3.4s``, ``2m 5s``."""
    if seconds < 1:
        return f"{seconds * 1000:.1f}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    whole = int(seconds)
    return f"{whole // 60}m {whole % 60}s"


def format_elapsed(seconds: float) -> str:
    """Format elapsed wall time compactly: ``1h30m3s``, ``5m2s``, ``7s``."""
    whole = int(round(seconds))
    hours, rest = divmod(whole, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}h{minutes}m{secs}s"
    if minutes > 0:
        return f"{minutes}m{secs}s"
    return f"{secs}s"
