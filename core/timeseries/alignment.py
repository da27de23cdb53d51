"""Align sparse named series onto a regular timestamp axis."""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .errors import ReservedName
from .models import (
    TIMESTAMP_COLUMN,
    AlignedTable,
    GapPolicy,
    MatchPolicy,
    Series,
    SeriesSet,
    TimeWindow,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_GAP_POLICY = GapPolicy.NULL_FILL
DEFAULT_MATCH_POLICY = MatchPolicy.EXACT


def canonical_axis(window: TimeWindow) -> pd.Index:
    """Every ``step`` tick in ``[start, end]``; validates the window."""
    return pd.Index(np.asarray(window.axis(), dtype="int64"), name=TIMESTAMP_COLUMN)


def _check_names(names: Iterable[str]) -> None:
    for name in names:
        if name == TIMESTAMP_COLUMN:
            raise ReservedName(name)


def _locate(series: Series, window: TimeWindow, match: MatchPolicy) -> pd.DataFrame:
    """Map usable samples to canonical ticks, keeping one sample per tick."""
    usable = [(sample.timestamp, sample.value) for sample in series.points if sample.value is not None]
    if not usable:
        return pd.DataFrame({"tick": pd.Series(dtype="int64"), "value": pd.Series(dtype="float64")})

    timestamps = np.asarray([ts for ts, _ in usable], dtype="float64")
    values = np.asarray([value for _, value in usable], dtype="float64")
    offsets = timestamps - window.start
    quotient = np.floor(offsets / window.step)
    remainder = offsets - quotient * window.step

    if match is MatchPolicy.NEAREST:
        # ties go to the earlier tick
        index = np.where(2 * remainder <= window.step, quotient, quotient + 1)
    else:
        index = np.where(remainder == 0, quotient, -1)
    distance = np.abs(offsets - index * window.step)

    located = pd.DataFrame(
        {
            "index": index,
            "distance": distance,
            "order": np.arange(len(usable)),
            "value": values,
        }
    )
    count = window.point_count
    located = located.loc[(located["index"] >= 0) & (located["index"] < count)]
    if match is MatchPolicy.EXACT:
        located = located.loc[located["distance"] == 0]

    # closest sample wins, then the last one in input order
    located = located.sort_values(["index", "distance", "order"], ascending=[True, True, False], kind="mergesort")
    located = located.drop_duplicates("index", keep="first")
    ticks = window.start + located["index"].astype("int64") * window.step
    return pd.DataFrame({"tick": ticks.to_numpy(dtype="int64"), "value": located["value"].to_numpy()})


def _resolve_columns(series_set: SeriesSet, columns: Optional[Sequence[str]]) -> List[str]:
    if columns is None:
        return sorted(series_set)
    resolved: List[str] = []
    for name in columns:
        if name not in resolved:
            resolved.append(name)
    return resolved


def align(
    series_set: SeriesSet,
    window: TimeWindow,
    gap_policy: Union[GapPolicy, str] = DEFAULT_GAP_POLICY,
    *,
    columns: Optional[Sequence[str]] = None,
    match: Union[MatchPolicy, str] = DEFAULT_MATCH_POLICY,
) -> AlignedTable:
    """Build a dense table with one row per axis tick and one column per series.

    Values are written only where a sample lands on a tick (exactly, or within
    ``step/2`` under ``MatchPolicy.NEAREST``); every other cell holds the gap
    value of ``gap_policy``. Rows are ordered by timestamp and columns by name
    unless ``columns`` fixes the order.
    """
    policy = GapPolicy.parse(gap_policy)
    match_policy = MatchPolicy.parse(match)
    axis = canonical_axis(window)
    _check_names(series_set)
    _check_names(series.name for series in series_set.values())
    names = _resolve_columns(series_set, columns)
    _check_names(names)

    frame = pd.DataFrame(index=axis, columns=names, dtype="float64")
    for name in names:
        series = series_set.get(name)
        if series is None:
            continue
        located = _locate(series, window, match_policy)
        if located.empty:
            continue
        frame.loc[located["tick"].to_numpy(), name] = located["value"].to_numpy()

    mask = frame.notna()
    observed = int(mask.sum().sum())
    if policy is GapPolicy.ZERO_FILL:
        frame = frame.fillna(0.0)

    table = AlignedTable.from_frame(frame, step=int(window.step), gap_policy=policy, observed=mask)

    LOGGER.debug(
        "Aligned %d series onto %d rows (%d observations, %s)",
        len(names),
        len(table),
        observed,
        policy.value,
    )
    if names and not observed:
        LOGGER.warning("No observations for %s in window %s", ", ".join(names), window.to_dict())
    return table


def is_all_gap(table: AlignedTable) -> bool:
    """True when no cell holds an observation, only gap values."""
    return table.observed_count() == 0


__all__ = [
    "DEFAULT_GAP_POLICY",
    "DEFAULT_MATCH_POLICY",
    "align",
    "canonical_axis",
    "is_all_gap",
]
