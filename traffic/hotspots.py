"""
Purpose: Congestion hotspots along a route.
What it does:
Scans the per-step durations of a provider route and flags the steps whose
traffic delay is large enough to warn the user about (e.g. a marker on the map).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Sequence

from .classifier import TrafficDensity

if TYPE_CHECKING:
    from routing.models import Coordinate

MIN_DELAY_S = 300  # 5 minutes
MEDIUM_DELAY_S = 600
HIGH_DELAY_S = 900


@dataclass(frozen=True)
class RouteStep:
    """A single maneuver step of a provider route."""
    start: "Coordinate"
    normal_duration_s: int
    traffic_duration_s: int


@dataclass(frozen=True)
class CongestionHotspot:
    step_index: int
    location: "Coordinate"
    delay_s: int
    severity: TrafficDensity

    @property
    def description(self) -> str:
        return f"Heavy traffic delay: {round(self.delay_s / 60)} minutes"


def find_congestion_hotspots(steps: Sequence[RouteStep], min_delay_s: int = MIN_DELAY_S) -> List[CongestionHotspot]:
    """
    Return one hotspot per step whose delay exceeds min_delay_s, in step order.

    Severity: HIGH above 15 minutes of delay, MEDIUM above 10, LOW otherwise.
    """
    hotspots: List[CongestionHotspot] = []
    for index, step in enumerate(steps):
        delay = step.traffic_duration_s - step.normal_duration_s
        if delay <= min_delay_s:
            continue

        if delay > HIGH_DELAY_S:
            severity = TrafficDensity.HIGH
        elif delay > MEDIUM_DELAY_S:
            severity = TrafficDensity.MEDIUM
        else:
            severity = TrafficDensity.LOW

        hotspots.append(
            CongestionHotspot(step_index=index, location=step.start, delay_s=delay, severity=severity)
        )
    return hotspots
