"""Value types shared by the planner, aligner, merger and sampler."""
from __future__ import annotations

import json
import math
import numbers
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Mapping, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .errors import InvalidWindow

TIMESTAMP_COLUMN = "timestamp"

Number = Union[int, float]
Cell = Optional[float]


def is_numeric(value: object) -> bool:
    """True for finite real numbers; bools and NaN/inf count as absent."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    try:
        return math.isfinite(value)
    except (TypeError, ValueError, OverflowError):
        return False


class Sample(NamedTuple):
    timestamp: Number
    value: Optional[float]


@dataclass(frozen=True)
class Series:
    """One named metric stream. Points keep input order; ``value`` is None when unusable."""

    name: str
    points: Tuple[Sample, ...] = ()

    @classmethod
    def from_pairs(cls, name: str, pairs: Iterable[Sequence[Any]]) -> "Series":
        points: List[Sample] = []
        for pair in pairs:
            if isinstance(pair, (str, bytes)) or not isinstance(pair, Sequence) or len(pair) < 2:
                continue
            timestamp, value = pair[0], pair[1]
            if not is_numeric(timestamp):
                continue
            points.append(Sample(timestamp, float(value) if is_numeric(value) else None))
        return cls(name=name, points=tuple(points))

    def sorted(self) -> "Series":
        # stable, so duplicated timestamps keep their input order
        return Series(self.name, tuple(sorted(self.points, key=lambda sample: sample.timestamp)))

    def values(self) -> List[Optional[float]]:
        return [sample.value for sample in self.points]

    def __len__(self) -> int:
        return len(self.points)


SeriesSet = Mapping[str, Series]


def series_set_from(series: Iterable[Series]) -> Dict[str, Series]:
    """Key series by name; a repeated name replaces the earlier entry."""
    return {item.name: item for item in series}


class GapPolicy(str, Enum):
    NULL_FILL = "null_fill"
    ZERO_FILL = "zero_fill"

    @property
    def fill_value(self) -> Cell:
        return 0.0 if self is GapPolicy.ZERO_FILL else None

    @classmethod
    def parse(cls, value: Union[str, "GapPolicy"]) -> "GapPolicy":
        if isinstance(value, GapPolicy):
            return value
        key = str(value).strip().lower().replace("-", "_")
        aliases = {"null": cls.NULL_FILL, "none": cls.NULL_FILL, "zero": cls.ZERO_FILL}
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown gap policy '{value}'") from None


class MatchPolicy(str, Enum):
    EXACT = "exact"
    NEAREST = "nearest"

    @classmethod
    def parse(cls, value: Union[str, "MatchPolicy"]) -> "MatchPolicy":
        if isinstance(value, MatchPolicy):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown match policy '{value}'") from None


@dataclass(frozen=True)
class TimeWindow:
    """Inclusive ``[start, end]`` range sampled every ``step`` seconds."""

    start: int
    end: int
    step: int

    def validate(self) -> None:
        if not isinstance(self.step, numbers.Integral) or isinstance(self.step, bool) or self.step <= 0:
            raise InvalidWindow(f"Step must be a positive integer, got {self.step!r}")
        if self.start > self.end:
            raise InvalidWindow(f"Window start {self.start} is after end {self.end}")

    @property
    def span(self) -> int:
        return self.end - self.start

    @property
    def point_count(self) -> int:
        self.validate()
        return self.span // self.step + 1

    def axis(self) -> range:
        self.validate()
        return range(int(self.start), int(self.end) + 1, int(self.step))

    def to_dict(self) -> Dict[str, int]:
        return {"from": int(self.start), "to": int(self.end), "step": int(self.step)}


@dataclass(frozen=True)
class AlignedTable:
    """Immutable table of rows keyed by timestamp plus one column per series."""

    columns: Tuple[str, ...]
    timestamps: Tuple[int, ...]
    cells: Tuple[Tuple[Cell, ...], ...]
    step: Optional[int] = None
    gap_policy: Optional[GapPolicy] = None
    fills: Tuple[Cell, ...] = field(default=(), compare=False)
    # per-cell flag, False where the cell holds a gap value
    observed: Tuple[Tuple[bool, ...], ...] = field(default=(), compare=False)

    @classmethod
    def from_frame(
        cls,
        frame: pd.DataFrame,
        *,
        step: Optional[int],
        gap_policy: Optional[GapPolicy],
        fills: Tuple[Cell, ...] = (),
        observed: Optional[pd.DataFrame] = None,
    ) -> "AlignedTable":
        """Freeze a timestamp-indexed float frame; NaN cells become ``None``.

        ``observed`` is a boolean frame of the same shape marking real samples.
        Without it every non-NaN cell counts as observed.
        """
        matrix = frame.to_numpy(dtype="float64")
        cells = tuple(tuple(None if math.isnan(value) else float(value) for value in row) for row in matrix)
        if observed is None:
            flags = tuple(tuple(value is not None for value in row) for row in cells)
        else:
            flags = tuple(tuple(bool(flag) for flag in row) for row in observed.to_numpy(dtype=bool))
        return cls(
            columns=tuple(str(column) for column in frame.columns),
            timestamps=tuple(int(ts) for ts in frame.index),
            cells=cells,
            step=step,
            gap_policy=gap_policy,
            fills=fills,
            observed=flags,
        )

    def __len__(self) -> int:
        return len(self.timestamps)

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return iter(self.to_records())

    def row(self, index: int) -> Dict[str, Any]:
        record: Dict[str, Any] = {TIMESTAMP_COLUMN: self.timestamps[index]}
        record.update(zip(self.columns, self.cells[index]))
        return record

    def to_records(self) -> List[Dict[str, Any]]:
        return [self.row(index) for index in range(len(self.timestamps))]

    def column(self, name: str) -> List[Cell]:
        position = self.columns.index(name)
        return [cells[position] for cells in self.cells]

    def fill_for(self, name: str) -> Cell:
        """Gap value this table uses for ``name``."""
        if self.fills:
            return self.fills[self.columns.index(name)]
        return self.gap_policy.fill_value if self.gap_policy else None

    def observed_mask(self) -> Tuple[Tuple[bool, ...], ...]:
        if self.observed:
            return self.observed
        return tuple(tuple(value is not None for value in cells) for cells in self.cells)

    def observed_count(self) -> int:
        return sum(1 for flags in self.observed_mask() for flag in flags if flag)

    def observed_frame(self) -> pd.DataFrame:
        """Like :meth:`to_frame` with gap cells set to NaN, whatever the gap value."""
        frame = self.to_frame()
        mask = np.asarray(self.observed_mask(), dtype=bool).reshape(len(self.timestamps), len(self.columns))
        return frame.where(mask)

    def to_json(self) -> str:
        payload = {
            "step": self.step,
            "gap_policy": self.gap_policy.value if self.gap_policy else None,
            "columns": list(self.columns),
            "rows": self.to_records(),
        }
        return json.dumps(payload, separators=(",", ":"), allow_nan=False)

    def to_frame(self) -> pd.DataFrame:
        data = {name: [cells[position] for cells in self.cells] for position, name in enumerate(self.columns)}
        frame = pd.DataFrame(
            data,
            index=pd.Index(self.timestamps, name=TIMESTAMP_COLUMN, dtype="int64"),
            columns=list(self.columns),
            dtype="float64",
        )
        return frame


__all__ = [
    "TIMESTAMP_COLUMN",
    "AlignedTable",
    "GapPolicy",
    "MatchPolicy",
    "Sample",
    "Series",
    "SeriesSet",
    "TimeWindow",
    "is_numeric",
    "series_set_from",
]
