"""
Purpose: Route densification for proximity tests.
What it does:
Inserts evenly spaced interpolated points between consecutive route points so
that no gap is longer than max_segment_m. Every original point is kept, in
order, and the endpoints are untouched.
"""
from __future__ import annotations

import math
from typing import List, Sequence

from routing.models import Coordinate, DensifiedPath

from .geomath import haversine_distance, interpolate

DEFAULT_MAX_SEGMENT_M = 50.0


def densify(coordinates: Sequence[Coordinate], max_segment_m: float = DEFAULT_MAX_SEGMENT_M) -> DensifiedPath:
    """
    For each pair (p[i], p[i+1]) longer than max_segment_m, insert
    ceil(d / max_segment_m) - 1 points at equal fractions between them.

    Interpolation is linear in latitude/longitude (an approximation, fine for
    the short hops it is used on). Fewer than two points are returned as-is.
    """
    if max_segment_m <= 0:
        raise ValueError("max_segment_m must be > 0")

    if len(coordinates) < 2:
        return tuple(coordinates)

    densified: List[Coordinate] = [coordinates[0]]
    for start, end in zip(coordinates[:-1], coordinates[1:]):
        distance = haversine_distance(start, end)
        if distance > max_segment_m:
            pieces = math.ceil(distance / max_segment_m)
            for step in range(1, pieces):
                densified.append(interpolate(start, end, step / pieces))
        densified.append(end)

    return tuple(densified)
