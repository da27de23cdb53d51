"""Time-series normalization for the WatchMQTT dashboard charts."""
from __future__ import annotations

from .alignment import align, canonical_axis, is_all_gap
from .errors import EmptyInput, InvalidSampleSize, InvalidWindow, ReservedName, TimeSeriesError
from .formatting import format_bytes, format_count, format_rate, format_throughput, format_uptime
from .merge import merge
from .models import (
    TIMESTAMP_COLUMN,
    AlignedTable,
    GapPolicy,
    MatchPolicy,
    Sample,
    Series,
    SeriesSet,
    TimeWindow,
    is_numeric,
    series_set_from,
)
from .normalize import parse_series_set
from .planner import StepPolicy, plan, step_for_label
from .sampling import tail, tail_series_set

__all__ = [
    "TIMESTAMP_COLUMN",
    "AlignedTable",
    "EmptyInput",
    "GapPolicy",
    "InvalidSampleSize",
    "InvalidWindow",
    "MatchPolicy",
    "ReservedName",
    "Sample",
    "Series",
    "SeriesSet",
    "StepPolicy",
    "TimeSeriesError",
    "TimeWindow",
    "align",
    "canonical_axis",
    "format_bytes",
    "format_count",
    "format_rate",
    "format_throughput",
    "format_uptime",
    "is_all_gap",
    "is_numeric",
    "merge",
    "parse_series_set",
    "plan",
    "series_set_from",
    "step_for_label",
    "tail",
    "tail_series_set",
]
