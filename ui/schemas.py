"""Pydantic models for dashboard API responses."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from core.timeseries import AlignedTable, TimeWindow


class PlanResponse(BaseModel):
    start: int = Field(..., description="Unix seconds, aligned to step")
    end: int = Field(..., description="Unix seconds, aligned to step")
    step: int = Field(..., description="Resolution in seconds")
    points: int

    @classmethod
    def from_window(cls, window: TimeWindow) -> "PlanResponse":
        return cls(start=window.start, end=window.end, step=window.step, points=window.point_count)


class TableResponse(BaseModel):
    step: Optional[int] = None
    gap_policy: Optional[str] = None
    columns: List[str] = Field(default_factory=list)
    rows: List[Dict[str, Any]] = Field(default_factory=list, description="timestamp plus one cell per column")

    @classmethod
    def from_table(cls, table: AlignedTable) -> "TableResponse":
        return cls(
            step=table.step,
            gap_policy=table.gap_policy.value if table.gap_policy else None,
            columns=list(table.columns),
            rows=table.to_records(),
        )


class TileResponse(BaseModel):
    title: str
    series: str
    unit: str
    value: float
    display: str
    trend: List[Optional[float]] = Field(default_factory=list)


class CardResponse(BaseModel):
    label: str
    value: str


class ErrorResponse(BaseModel):
    detail: str
    meta: Dict[str, Any] = Field(default_factory=dict)


class RefreshResponse(BaseModel):
    overview_s: int = Field(..., description="Seconds between overview card refreshes")
    timeseries_s: int = Field(..., description="Seconds between chart refreshes")
    rollups_s: int = Field(..., description="Seconds between 24h rollup refreshes")
