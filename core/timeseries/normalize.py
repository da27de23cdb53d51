"""Normalization of backend series payloads into a SeriesSet."""
from __future__ import annotations

import logging
from typing import Any, Dict

from .models import Series

LOGGER = logging.getLogger(__name__)


def parse_series_set(payload: Any) -> Dict[str, Series]:
    """Convert ``{"series": [{"name": ..., "points": [[ts, value], ...]}]}``.

    Shape problems never raise: missing or non-list ``series`` gives an empty
    set, unnamed entries and malformed points are skipped, and non-numeric
    values are kept as absent samples.
    """
    if not payload or not isinstance(payload, dict):
        return {}
    entries = payload.get("series")
    if not isinstance(entries, list):
        if entries is not None:
            LOGGER.warning("Ignoring non-list 'series' field of type %s", type(entries).__name__)
        return {}

    parsed: Dict[str, Series] = {}
    skipped = 0
    for entry in entries:
        if not isinstance(entry, dict):
            skipped += 1
            continue
        name = entry.get("name")
        points = entry.get("points")
        if not isinstance(name, str) or not name:
            skipped += 1
            continue
        if not isinstance(points, list):
            points = []
        if name in parsed:
            LOGGER.warning("Series '%s' repeated in payload; keeping the last entry", name)
        parsed[name] = Series.from_pairs(name, points)

    if skipped:
        LOGGER.warning("Skipped %d malformed series entries", skipped)
    return parsed


__all__ = ["parse_series_set"]
