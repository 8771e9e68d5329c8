"""
Purpose: Distance primitives used by every other layer.
What it does:
- haversine_distance: great-circle distance in meters
- point_to_segment_distance_approx: distance from a point to a short segment
- interpolate / path_length: small helpers for densification and fallback routes

Rule: pure functions, no I/O, no logging.
"""
from __future__ import annotations

import math
from typing import Sequence

from routing.models import Coordinate

EARTH_RADIUS_M = 6371000.0


def haversine_distance(a: Coordinate, b: Coordinate) -> float:
    """
    Great-circle distance between two coordinates, in meters.
    Symmetric, and exactly 0.0 for identical points.
    """
    lat1, lon1 = math.radians(a.latitude), math.radians(a.longitude)
    lat2, lon2 = math.radians(b.latitude), math.radians(b.longitude)
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    x = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(x)))


def point_to_segment_distance_approx(p: Coordinate, a: Coordinate, b: Coordinate) -> float:
    """
    Distance in meters from p to the segment [a, b].

    The projection of p onto the segment is computed treating latitude and
    longitude as a flat Cartesian plane, then the haversine distance to the
    projected point is returned. This is only accurate for short segments
    (city scale, tens of meters) and degrades at high latitudes; it is not a
    geodesic cross-track distance.

    - a == b: distance to a
    - projection parameter outside [0, 1]: distance to the nearer endpoint
    """
    seg_lat = b.latitude - a.latitude
    seg_lon = b.longitude - a.longitude
    len_sq = seg_lat * seg_lat + seg_lon * seg_lon
    if len_sq == 0.0:
        return haversine_distance(p, a)

    t = ((p.latitude - a.latitude) * seg_lat + (p.longitude - a.longitude) * seg_lon) / len_sq
    if t <= 0.0:
        return haversine_distance(p, a)
    if t >= 1.0:
        return haversine_distance(p, b)

    return haversine_distance(p, interpolate(a, b, t))


def interpolate(a: Coordinate, b: Coordinate, fraction: float) -> Coordinate:
    """
    Linear interpolation of latitude and longitude independently
    (not a great-circle interpolation).
    """
    return Coordinate(
        latitude=a.latitude + (b.latitude - a.latitude) * fraction,
        longitude=a.longitude + (b.longitude - a.longitude) * fraction,
    )


def path_length(coordinates: Sequence[Coordinate]) -> float:
    """Sum of haversine distances between consecutive points, in meters."""
    return sum(haversine_distance(a, b) for a, b in zip(coordinates[:-1], coordinates[1:]))
