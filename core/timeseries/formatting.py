"""Human readable magnitudes for tooltips, axis ticks and KPI cards.

None of the formatters raise: ``None``, NaN, non-numeric and non-positive
inputs map to the formatter's zero string.
"""
from __future__ import annotations

import math
from typing import Optional, Sequence, Tuple

from .models import is_numeric

BYTE_UNITS: Sequence[Tuple[int, str]] = (
    (1024**3, "GB"),
    (1024**2, "MB"),
    (1024, "KB"),
)
SI_UNITS: Sequence[Tuple[int, str]] = (
    (1_000_000_000, "B"),
    (1_000_000, "M"),
    (1_000, "k"),
)


def _positive(value: object) -> Optional[float]:
    if not is_numeric(value):
        return None
    number = float(value)
    return number if number > 0 else None


def _scaled(value: float, units: Sequence[Tuple[int, str]]) -> Optional[str]:
    # units run largest first; a reading that rounds up to the next unit moves there
    for position, (threshold, suffix) in enumerate(units):
        if value < threshold:
            continue
        reading = f"{value / threshold:.1f}"
        if position and float(reading) * threshold >= units[position - 1][0]:
            threshold, suffix = units[position - 1]
            reading = f"{value / threshold:.1f}"
        return f"{reading}{suffix}"
    return None


def _carry(reading: str, units: Sequence[Tuple[int, str]]) -> Optional[str]:
    """Rescale a sub-unit reading that rounded up to the smallest unit."""
    number = float(reading)
    return _scaled(number, units) if number >= units[-1][0] else None


def _fractional(value: float) -> str:
    # three precision tiers below 1
    if value >= 1:
        return f"{value:.1f}"
    if value >= 0.1:
        return f"{value:.2f}"
    if value > 0:
        return f"{value:.3f}"
    return "0"


def format_bytes(value: object) -> str:
    number = _positive(value)
    if number is None:
        return "0B"
    scaled = _scaled(number, BYTE_UNITS)
    if scaled:
        return scaled
    if number.is_integer():
        return f"{int(number)}B"
    reading = _fractional(number)
    return _carry(reading, BYTE_UNITS) or f"{reading}B"


def format_count(value: object) -> str:
    number = _positive(value)
    if number is None:
        return "0"
    scaled = _scaled(number, SI_UNITS)
    if scaled:
        return scaled
    reading = str(int(math.floor(number + 0.5)))
    return _carry(reading, SI_UNITS) or reading


def format_rate(value: object) -> str:
    number = _positive(value)
    if number is None:
        return "0"
    scaled = _scaled(number, SI_UNITS)
    if scaled:
        return scaled
    reading = _fractional(number)
    return _carry(reading, SI_UNITS) or reading


def format_throughput(value: object, kind: str = "messages") -> str:
    """Tile headline such as ``12.5KB/s`` or ``1.2k/s``."""
    number = _positive(value) or 0.0
    units, unit_suffix = (BYTE_UNITS, "B") if kind == "bytes" else (SI_UNITS, "")
    reading = f"{number:.1f}"
    text = _scaled(number, units) or _carry(reading, units) or f"{reading}{unit_suffix}"
    return f"{text}/s"


def format_uptime(seconds: object) -> str:
    number = _positive(seconds)
    if number is None:
        return "0s"
    total = int(number)
    days, remainder = divmod(total, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes, secs = divmod(remainder, 60)

    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs and len(parts) < 2:
        parts.append(f"{secs}s")
    return " ".join(parts) or "0s"


__all__ = [
    "BYTE_UNITS",
    "SI_UNITS",
    "format_bytes",
    "format_count",
    "format_rate",
    "format_throughput",
    "format_uptime",
]
