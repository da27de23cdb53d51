"""Exceptions raised by the time-series core."""
from __future__ import annotations


class TimeSeriesError(ValueError):
    """Base class for local precondition failures."""


class InvalidWindow(TimeSeriesError):
    """Window has a non-positive step, inverted bounds or a non-positive length."""


class ReservedName(TimeSeriesError):
    """A series name collides with the ``timestamp`` column."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Series name '{name}' is reserved for the timestamp column")
        self.name = name


class EmptyInput(TimeSeriesError):
    """Merge was called without any table."""


class InvalidSampleSize(TimeSeriesError):
    """Tail sampling was asked for fewer than one point."""


__all__ = [
    "TimeSeriesError",
    "InvalidWindow",
    "ReservedName",
    "EmptyInput",
    "InvalidSampleSize",
]
