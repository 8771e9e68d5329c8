"""
Purpose: Congestion tier for a route alternative.
What it does:
Turns a (normal duration, duration in traffic) pair into LOW / MEDIUM / HIGH.

Two formulas exist for the same concept:
- classify (default): percentage delay, cut points 10% / 30%
- classify_by_duration_ratio: traffic/normal ratio, cut points 1.2 / 1.5
Which one is intended is still unresolved; callers pick via SelectionPolicy.traffic_formula.
"""
from __future__ import annotations

from enum import Enum
from typing import Callable, Dict

LOW_DELAY_CUTOFF = 0.10
HIGH_DELAY_CUTOFF = 0.30

LOW_RATIO_CUTOFF = 1.2
HIGH_RATIO_CUTOFF = 1.5


class TrafficDensity(str, Enum):
    """
    Congestion tier. Totally ordered: LOW < MEDIUM < HIGH.
    """
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _RANK[self]

    def __lt__(self, other):
        if not isinstance(other, TrafficDensity):
            return NotImplemented
        return self.rank < other.rank

    # str mixin would otherwise compare the string values
    def __le__(self, other):
        if not isinstance(other, TrafficDensity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, TrafficDensity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, TrafficDensity):
            return NotImplemented
        return self.rank >= other.rank


_RANK = {TrafficDensity.LOW: 0, TrafficDensity.MEDIUM: 1, TrafficDensity.HIGH: 2}


def delay_ratio(normal_s: float, traffic_s: float) -> float:
    """(traffic - normal) / normal, with normal floored at 1s to avoid division by zero."""
    return (traffic_s - normal_s) / max(normal_s, 1)


def classify(normal_s: float, traffic_s: float) -> TrafficDensity:
    """
    Percentage-delay classification:
      delay < 10%          -> LOW (includes traffic faster than normal)
      10% <= delay < 30%   -> MEDIUM
      delay >= 30%         -> HIGH
    Monotone in traffic_s for a fixed normal_s.
    """
    ratio = delay_ratio(normal_s, traffic_s)
    if ratio < LOW_DELAY_CUTOFF:
        return TrafficDensity.LOW
    if ratio < HIGH_DELAY_CUTOFF:
        return TrafficDensity.MEDIUM
    return TrafficDensity.HIGH


def classify_by_duration_ratio(normal_s: float, traffic_s: float) -> TrafficDensity:
    """
    Duration-ratio classification (traffic / normal):
      ratio <= 1.2 -> LOW, ratio <= 1.5 -> MEDIUM, else HIGH.
    """
    ratio = traffic_s / max(normal_s, 1)
    if ratio <= LOW_RATIO_CUTOFF:
        return TrafficDensity.LOW
    if ratio <= HIGH_RATIO_CUTOFF:
        return TrafficDensity.MEDIUM
    return TrafficDensity.HIGH


TRAFFIC_FORMULAS: Dict[str, Callable[[float, float], TrafficDensity]] = {
    "delay_percentage": classify,
    "duration_ratio": classify_by_duration_ratio,
}


def classifier_for(formula: str) -> Callable[[float, float], TrafficDensity]:
    """Look up a classifier by its policy name."""
    try:
        return TRAFFIC_FORMULAS[formula]
    except KeyError:
        raise ValueError(f"Unknown traffic formula: {formula}") from None
