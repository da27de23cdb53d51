"""Query resolution planning for look-back windows."""
from __future__ import annotations

import logging
import math
import numbers
import re
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .errors import InvalidWindow
from .models import TimeWindow

LOGGER = logging.getLogger(__name__)

# Prometheus-friendly resolutions, in seconds
DEFAULT_TIERS: Tuple[int, ...] = (15, 30, 60, 120, 300, 600, 900, 1800, 3600, 7200, 14400, 21600)
DEFAULT_TARGET_POINTS = 80
DEFAULT_LABEL_STEP = 60

TIME_RANGES: Tuple[Tuple[str, int], ...] = (
    ("Last 5m", 5),
    ("Last 15m", 15),
    ("Last 30m", 30),
    ("Last 1h", 60),
    ("Last 3h", 180),
    ("Last 6h", 360),
    ("Last 24h", 1440),
    ("Last 7d", 10080),
)

_LABEL_PATTERN = re.compile(r"(\d+)\s*([mhd])\b", re.IGNORECASE)
_LABEL_UNITS = {"m": 1, "h": 60, "d": 24 * 60}


@dataclass(frozen=True)
class StepPolicy:
    tiers: Tuple[int, ...] = DEFAULT_TIERS
    target_points: int = DEFAULT_TARGET_POINTS
    floor_step: int = DEFAULT_TIERS[0]
    ceiling_step: int = DEFAULT_TIERS[-1]

    def __post_init__(self) -> None:
        if not self.tiers:
            raise ValueError("Step policy needs at least one tier")
        if any(later <= earlier for earlier, later in zip(self.tiers, self.tiers[1:])):
            raise ValueError(f"Step tiers must be strictly increasing: {self.tiers}")
        if self.tiers[0] <= 0:
            raise ValueError("Step tiers must be positive")
        if self.target_points <= 0:
            raise ValueError("target_points must be positive")
        if not 0 < self.floor_step <= self.ceiling_step:
            raise ValueError(f"Invalid step bounds [{self.floor_step}, {self.ceiling_step}]")

    @classmethod
    def from_config(cls, section: Optional[Mapping[str, Any]]) -> "StepPolicy":
        section = section or {}
        tiers = tuple(int(value) for value in section.get("tiers", DEFAULT_TIERS))
        return cls(
            tiers=tiers,
            target_points=int(section.get("target_points", DEFAULT_TARGET_POINTS)),
            floor_step=int(section.get("floor_step", tiers[0] if tiers else DEFAULT_TIERS[0])),
            ceiling_step=int(section.get("ceiling_step", tiers[-1] if tiers else DEFAULT_TIERS[-1])),
        )

    def step_for_seconds(self, window_seconds: float) -> int:
        ideal = math.ceil(window_seconds / self.target_points)
        step = next((tier for tier in self.tiers if tier >= ideal), self.tiers[-1])
        return max(self.floor_step, min(step, self.ceiling_step))


DEFAULT_POLICY = StepPolicy()


def _validate_minutes(window_minutes: object) -> float:
    if isinstance(window_minutes, bool) or not isinstance(window_minutes, numbers.Real):
        raise InvalidWindow(f"Window must be a number of minutes, got {window_minutes!r}")
    minutes = float(window_minutes)
    if not math.isfinite(minutes) or minutes <= 0:
        raise InvalidWindow(f"Window must be positive, got {window_minutes!r}")
    return minutes


def optimal_step(window_minutes: float, policy: Optional[StepPolicy] = None) -> int:
    minutes = _validate_minutes(window_minutes)
    return (policy or DEFAULT_POLICY).step_for_seconds(minutes * 60)


def plan(
    window_minutes: float,
    *,
    now: Optional[float] = None,
    policy: Optional[StepPolicy] = None,
) -> TimeWindow:
    """Return step-aligned bounds covering the last ``window_minutes`` minutes."""
    minutes = _validate_minutes(window_minutes)
    policy = policy or DEFAULT_POLICY
    current = time.time() if now is None else now
    end = int(math.floor(current))
    start = end - int(round(minutes * 60))
    step = policy.step_for_seconds(minutes * 60)

    window = TimeWindow(start=start - start % step, end=end - end % step, step=step)
    LOGGER.debug("Planned %s", describe_plan(window))
    return window


def describe_plan(window: TimeWindow) -> Dict[str, int]:
    return {
        "from": window.start,
        "to": window.end,
        "step": window.step,
        "points": window.point_count,
    }


def minutes_for_label(label: str) -> Optional[int]:
    for preset, minutes in TIME_RANGES:
        if label == preset:
            return minutes
    match = _LABEL_PATTERN.search(label or "")
    if not match:
        return None
    return int(match.group(1)) * _LABEL_UNITS[match.group(2).lower()]


def step_for_label(label: str, policy: Optional[StepPolicy] = None) -> int:
    """Resolve a range label such as ``"Last 3h"`` or ``"7d"`` to a step."""
    minutes = minutes_for_label(label)
    if not minutes:
        LOGGER.debug("Unrecognised range label %r, using %ss", label, DEFAULT_LABEL_STEP)
        return DEFAULT_LABEL_STEP
    return optimal_step(minutes, policy)


def point_counts(windows: Sequence[float], policy: Optional[StepPolicy] = None) -> List[int]:
    """Points requested for each window length; used to check the doubling rule."""
    policy = policy or DEFAULT_POLICY
    return [math.ceil(_validate_minutes(minutes) * 60 / policy.step_for_seconds(minutes * 60)) for minutes in windows]


__all__ = [
    "DEFAULT_POLICY",
    "DEFAULT_TIERS",
    "StepPolicy",
    "TIME_RANGES",
    "describe_plan",
    "minutes_for_label",
    "optimal_step",
    "plan",
    "point_counts",
    "step_for_label",
]
