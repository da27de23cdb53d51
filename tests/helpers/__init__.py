"""Shared helper utilities for the WatchMQTT test-suite."""

from .data import (
    TRAFFIC_SERIES,
    build_overview_payload,
    build_rollups_payload,
    build_series_payload,
    build_traffic_payload,
    ramp_points,
)
from .mocks import FakeHttpResponse, FakeSession

__all__ = [
    "TRAFFIC_SERIES",
    "build_overview_payload",
    "build_rollups_payload",
    "build_series_payload",
    "build_traffic_payload",
    "ramp_points",
    "FakeHttpResponse",
    "FakeSession",
]
