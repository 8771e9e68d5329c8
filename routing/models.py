"""
Purpose: Domain models for the route-selection engine.
What it does:
- Defines the core data structures that flow between the layers:
- Coordinate (validated latitude/longitude)
- RouteAlternative (one option returned by the routing provider)
- DecodedRoute (an alternative after polyline decoding + traffic classification)
- RouteSelection (the route the user picked, densified, with its matched delivery points)

Rule: No HTTP calls, no geometry algorithms. Models only.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Tuple

from traffic.classifier import TrafficDensity

from .errors import InvalidCoordinate

LatLon = Tuple[float, float]


@dataclass(frozen=True)
class Coordinate:
    """
    A WGS84 point. Construction fails fast with InvalidCoordinate
    when either component is out of range; values are never clamped.
    """

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        lat, lon = self.latitude, self.longitude
        if math.isnan(lat) or not -90.0 <= lat <= 90.0:
            raise InvalidCoordinate(f"latitude out of range: {lat}")
        if math.isnan(lon) or not -180.0 <= lon <= 180.0:
            raise InvalidCoordinate(f"longitude out of range: {lon}")

    @classmethod
    def from_pair(cls, pair: LatLon) -> Coordinate:
        lat, lon = pair
        return cls(latitude=float(lat), longitude=float(lon))

    def as_tuple(self) -> LatLon:
        return (self.latitude, self.longitude)


@dataclass(frozen=True)
class RouteAlternative:
    """
    One route option as returned by the routing provider.

    traffic_duration_s >= normal_duration_s is expected but not enforced:
    providers do violate it and the classifier copes.
    """

    id: str
    encoded_polyline: str
    normal_duration_s: int
    traffic_duration_s: int
    distance_m: float
    summary: str = ""
    is_fallback: bool = False  # synthesized locally, not authoritative


@dataclass(frozen=True)
class DecodedRoute:
    """
    An alternative after decoding and classification.
    Produced once per alternative and never mutated.
    """

    source_alternative_id: str
    coordinates: Tuple[Coordinate, ...]
    density: TrafficDensity
    normal_duration_s: int = 0
    traffic_duration_s: int = 0
    distance_m: float = 0.0
    summary: str = ""
    is_fallback: bool = False

    def __post_init__(self) -> None:
        if not self.coordinates:
            raise ValueError("a decoded route needs at least one coordinate")


# ordered sequence of points; first/last equal the source route's
DensifiedPath = Tuple[Coordinate, ...]


@dataclass(frozen=True)
class RouteSelection:
    """
    The user's chosen route plus the delivery points reachable from it.
    matched_points is ordered by distance from the origin (ascending).
    generation ties the selection to the origin/destination it was computed for.
    """

    chosen_route_id: str
    densified_path: DensifiedPath
    matched_points: Tuple = field(default_factory=tuple)
    generation: int = 0
