"""Positional subsampling for sparkline tiles."""
from __future__ import annotations

import numbers
from typing import Any, Dict, List, Sequence

from .errors import InvalidSampleSize
from .models import SeriesSet


def sample_indices(length: int, n: int) -> List[int]:
    """Indices ``floor(i * length / n)`` for ``i < n``, or all of them when ``length <= n``."""
    if isinstance(n, bool) or not isinstance(n, numbers.Integral) or n < 1:
        raise InvalidSampleSize(f"Sample size must be a positive integer, got {n!r}")
    if length <= n:
        return list(range(length))
    return [(i * length) // n for i in range(n)]


def tail(points: Sequence[Sequence[Any]], n: int) -> List[Any]:
    """Return at most ``n`` values picked by even stride; values are not averaged."""
    return [points[index][1] for index in sample_indices(len(points), n)]


def tail_series_set(series_set: SeriesSet, n: int) -> Dict[str, List[Any]]:
    """Sample every series of a set after ordering its points by timestamp."""
    return {name: tail(series_set[name].sorted().points, n) for name in sorted(series_set)}


__all__ = ["sample_indices", "tail", "tail_series_set"]
