"""Merging aligned tables on the union of their timestamps."""

from __future__ import annotations

import pytest

from core.timeseries import EmptyInput, GapPolicy, Series, TimeWindow, align, merge, series_set_from
from core.timeseries.merge import union_axis
from tests.conftest import get_test_logger

logger = get_test_logger(__name__)
logger.info("Starting tests for table merging")


def _table(window: TimeWindow, policy: GapPolicy = GapPolicy.NULL_FILL, **points):
    series_set = series_set_from(Series.from_pairs(name, pairs) for name, pairs in points.items())
    return align(series_set, window, policy)


def test_disjoint_axes_give_sorted_union() -> None:
    left = _table(TimeWindow(1000, 1060, 30), a=[[1000, 1], [1060, 3]])
    right = _table(TimeWindow(1015, 1045, 30), b=[[1045, 9]])

    merged = merge([left, right])
    logger.info("Merged rows: %s", merged.to_records())

    assert len(merged) == len(left) + len(right)
    assert merged.timestamps == (1000, 1015, 1030, 1045, 1060)
    assert merged.columns == ("a", "b")
    assert merged.column("a") == [1.0, None, None, None, 3.0]
    assert merged.column("b") == [None, None, None, 9.0, None]
    assert merged.step is None


def test_same_window_keeps_step_and_policy(window: TimeWindow) -> None:
    traffic = _table(window, messages_sent=[[1000, 10], [1015, 11]])
    connections = _table(window, connected=[[1030, 4]])

    merged = merge([traffic, connections])

    assert len(merged) == 5
    assert merged.columns == ("messages_sent", "connected")
    assert merged.step == 15
    assert merged.gap_policy is GapPolicy.NULL_FILL
    assert merged.row(2) == {"timestamp": 1030, "messages_sent": None, "connected": 4.0}


def test_shared_column_prefers_earlier_table(window: TimeWindow) -> None:
    first = _table(window, a=[[1000, 1], [1030, 3]])
    second = _table(window, a=[[1000, 100], [1015, 200]])

    merged = merge([first, second])

    assert merged.column("a") == [1.0, 200.0, 3.0, None, None]


def test_each_table_contributes_its_own_gap_value() -> None:
    zero = _table(TimeWindow(1000, 1030, 30), GapPolicy.ZERO_FILL, a=[[1000, 1]])
    null = _table(TimeWindow(1015, 1045, 30), GapPolicy.NULL_FILL, b=[[1015, 2]])

    merged = merge([zero, null])

    assert merged.timestamps == (1000, 1015, 1030, 1045)
    assert merged.column("a") == [1.0, 0.0, 0.0, 0.0]
    assert merged.column("b") == [None, 2.0, None, None]
    assert merged.gap_policy is None
    assert merged.fill_for("a") == 0.0
    assert merged.fill_for("b") is None


def test_single_table_round_trips(window: TimeWindow) -> None:
    table = _table(window, a=[[1000, 5], [1030, 7]])

    assert merge([table]) == table


def test_different_steps_do_not_resample() -> None:
    fine = _table(TimeWindow(0, 60, 15), a=[[15, 1]])
    coarse = _table(TimeWindow(0, 60, 30), b=[[30, 2]])

    merged = merge([fine, coarse])

    assert merged.timestamps == (0, 15, 30, 45, 60)
    assert merged.column("b") == [None, None, 2.0, None, None]
    assert merged.step is None


def test_union_axis_ignores_duplicates(window: TimeWindow) -> None:
    table = _table(window, a=[])

    assert list(union_axis([table, table])) == [1000, 1015, 1030, 1045, 1060]


def test_merge_requires_a_table() -> None:
    with pytest.raises(EmptyInput):
        merge([])


def test_zero_filled_gap_does_not_hide_later_sample(window: TimeWindow) -> None:
    first = _table(window, GapPolicy.ZERO_FILL, a=[[1000, 1]])
    second = _table(window, GapPolicy.ZERO_FILL, a=[[1015, 200], [1030, 0]])

    merged = merge([first, second])
    logger.info("Zero-fill merge: %s", merged.column("a"))

    assert merged.column("a") == [1.0, 200.0, 0.0, 0.0, 0.0]
    assert merged.gap_policy is GapPolicy.ZERO_FILL
    assert merged.observed_count() == 3


def test_observed_zero_wins_over_later_sample(window: TimeWindow) -> None:
    first = _table(window, GapPolicy.ZERO_FILL, a=[[1015, 0]])
    second = _table(window, GapPolicy.NULL_FILL, a=[[1015, 7], [1045, 9]])

    merged = merge([first, second])

    assert merged.column("a") == [0.0, 0.0, 0.0, 9.0, 0.0]
