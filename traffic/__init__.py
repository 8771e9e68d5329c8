"""
Traffic package: congestion tiers and per-step hotspots.

Public API:
- TrafficDensity, classify, classify_by_duration_ratio, classifier_for
- RouteStep, CongestionHotspot, find_congestion_hotspots
"""
from .classifier import TrafficDensity, classify, classify_by_duration_ratio, classifier_for
from .hotspots import RouteStep, CongestionHotspot, find_congestion_hotspots

__all__ = [
    "TrafficDensity",
    "classify",
    "classify_by_duration_ratio",
    "classifier_for",
    "RouteStep",
    "CongestionHotspot",
    "find_congestion_hotspots",
]
