"""Combine aligned tables fetched at possibly different resolutions."""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from .errors import EmptyInput
from .models import TIMESTAMP_COLUMN, AlignedTable, Cell, GapPolicy

LOGGER = logging.getLogger(__name__)


def union_axis(tables: Sequence[AlignedTable]) -> pd.Index:
    """Sorted union of every timestamp present in ``tables``."""
    indices = [pd.Index(table.timestamps, dtype="int64") for table in tables]
    union = indices[0]
    for idx in indices[1:]:
        union = union.union(idx)
    return union.sort_values().rename(TIMESTAMP_COLUMN)


def _common_step(tables: Sequence[AlignedTable], axis: pd.Index) -> Optional[int]:
    steps = {table.step for table in tables}
    if len(steps) != 1:
        return None
    step = steps.pop()
    if step is None:
        return None
    if len(axis) > 1 and not bool((np.diff(axis.to_numpy()) == step).all()):
        return None
    return step


def _common_policy(tables: Sequence[AlignedTable]) -> Optional[GapPolicy]:
    policies = {table.gap_policy for table in tables}
    return policies.pop() if len(policies) == 1 else None


def merge(tables: Sequence[AlignedTable]) -> AlignedTable:
    """Merge tables on the union of their timestamps without resampling.

    A table without a row at some timestamp contributes its own gap value
    there. Columns shared by several tables take the first observation in
    list order; filled gaps never count as observations, so a zero-filled
    gap does not hide a later table's sample.
    """
    tables = list(tables)
    if not tables:
        raise EmptyInput("merge() needs at least one table")

    axis = union_axis(tables)
    columns: List[str] = []
    fills: Dict[str, Cell] = {}
    for table in tables:
        for name in table.columns:
            if name not in fills:
                columns.append(name)
                fills[name] = table.fill_for(name)

    result = pd.DataFrame(index=axis, columns=columns, dtype="float64")
    for table in tables:
        aligned = table.observed_frame().reindex(axis)
        for column in table.columns:
            current = result[column]
            incoming = aligned[column]
            fill_mask = current.isna() & incoming.notna()
            if fill_mask.any():
                result.loc[fill_mask, column] = incoming.loc[fill_mask]

    observed = result.notna()
    for column in columns:
        if fills[column] is not None:
            result[column] = result[column].fillna(fills[column])

    merged = AlignedTable.from_frame(
        result,
        step=_common_step(tables, axis),
        gap_policy=_common_policy(tables),
        fills=tuple(fills[column] for column in columns),
        observed=observed,
    )
    LOGGER.debug(
        "Merged %d tables into %d rows x %d columns (step=%s)",
        len(tables),
        len(merged),
        len(columns),
        merged.step,
    )
    return merged


__all__ = ["merge", "union_axis"]
