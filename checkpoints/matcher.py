"""
Purpose: Match delivery points (checkpoints) against a chosen route.
What it does:
- Given a densified route + candidate locations, keep the candidates within a
  proximity threshold of any route segment
- Deduplicate by candidate id and sort by distance from the user's origin
- Signal "nothing in range" explicitly with NoMatchSignal

Also provides find_nearest_checkpoint, used to snap a position to a checkpoint.

Rule: pure functions. No registry calls, no state.
"""
from __future__ import annotations

import math
from typing import Dict, List, Optional, Sequence, Tuple, Union

from geometry.geomath import EARTH_RADIUS_M, haversine_distance, point_to_segment_distance_approx
from routing.models import Coordinate

from .models import DeliveryPointCandidate, MatchedDeliveryPoint, NoMatchSignal

DEFAULT_PROXIMITY_THRESHOLD_M = 100.0

# degrees of latitude per meter along a meridian
_DEG_PER_M = 180.0 / (math.pi * EARTH_RADIUS_M)

MatchResult = Union[List[MatchedDeliveryPoint], NoMatchSignal]


def match(
    densified_path: Sequence[Coordinate],
    candidates: Sequence[DeliveryPointCandidate],
    proximity_threshold_m: float = DEFAULT_PROXIMITY_THRESHOLD_M,
    origin: Optional[Coordinate] = None,
    *,
    route_id: str = "",
) -> MatchResult:
    """
    Return the candidates whose minimum distance to the route is within
    proximity_threshold_m (inclusive).

    Args:
        densified_path: route points, ideally densified (see geometry.densify)
        candidates: delivery points from the registry
        proximity_threshold_m: max distance to the route, in meters
        origin: user's position; distance_from_origin_m is measured from here
                (defaults to the first route point)
        route_id: echoed into the NoMatchSignal

    Returns:
        List[MatchedDeliveryPoint] sorted by (distance_from_origin_m, candidate_id),
        one entry per candidate id, or NoMatchSignal when nothing is in range.
    """
    if proximity_threshold_m < 0:
        raise ValueError("proximity_threshold_m must be >= 0")

    if origin is None and densified_path:
        origin = densified_path[0]

    segments = _segments(densified_path)
    bbox = _expanded_bbox(densified_path, proximity_threshold_m)

    matched: Dict[str, MatchedDeliveryPoint] = {}
    for candidate in candidates:
        #dedupe: a candidate matches at most once, first occurrence wins
        if candidate.id in matched:
            continue
        if bbox is None or not _inside(candidate.coordinate, bbox):
            continue

        distance_to_route = _min_distance_to_route(candidate.coordinate, segments)
        if distance_to_route > proximity_threshold_m:
            continue

        matched[candidate.id] = MatchedDeliveryPoint(
            candidate_id=candidate.id,
            name=candidate.name,
            coordinate=candidate.coordinate,
            distance_to_route_m=distance_to_route,
            distance_from_origin_m=haversine_distance(origin, candidate.coordinate),
        )

    if not matched:
        return NoMatchSignal(
            route_id=route_id,
            proximity_threshold_m=proximity_threshold_m,
            candidates_considered=len(candidates),
        )

    return sorted(
        matched.values(),
        key=lambda point: (point.distance_from_origin_m, point.candidate_id),
    )


def find_nearest_checkpoint(
    location: Coordinate,
    candidates: Sequence[DeliveryPointCandidate],
    max_distance_m: float = DEFAULT_PROXIMITY_THRESHOLD_M,
) -> Optional[DeliveryPointCandidate]:
    """
    Nearest candidate to location (haversine), or None when the nearest one is
    farther than max_distance_m or there are no candidates. Ties keep the first.
    """
    nearest: Optional[DeliveryPointCandidate] = None
    nearest_distance = float("inf")
    for candidate in candidates:
        distance = haversine_distance(location, candidate.coordinate)
        if distance < nearest_distance:
            nearest = candidate
            nearest_distance = distance

    if nearest is None or nearest_distance > max_distance_m:
        return None
    return nearest


# -------------------------
# Internal helpers
# -------------------------

Segment = Tuple[Coordinate, Coordinate]
BBox = Tuple[float, float, float, float]  # min_lat, max_lat, min_lon, max_lon


def _segments(path: Sequence[Coordinate]) -> List[Segment]:
    # a single point is a degenerate segment
    if len(path) == 1:
        return [(path[0], path[0])]
    return list(zip(path[:-1], path[1:]))


def _min_distance_to_route(point: Coordinate, segments: Sequence[Segment]) -> float:
    best = float("inf")
    for start, end in segments:
        distance = point_to_segment_distance_approx(point, start, end)
        if distance < best:
            best = distance
            if best == 0.0:
                break
    return best


def _expanded_bbox(path: Sequence[Coordinate], threshold_m: float) -> Optional[BBox]:
    """
    Bounding box of the path grown by the threshold (plus 1% slack), used to
    skip candidates that cannot be within range. None for an empty path.
    """
    if not path:
        return None

    lats = [p.latitude for p in path]
    lons = [p.longitude for p in path]
    margin_lat = threshold_m * 1.01 * _DEG_PER_M

    # longitude degrees shrink with latitude; widen using the highest |lat| in the box
    max_abs_lat = min(max(abs(min(lats) - margin_lat), abs(max(lats) + margin_lat)), 89.9)
    margin_lon = margin_lat / math.cos(math.radians(max_abs_lat))

    return (min(lats) - margin_lat, max(lats) + margin_lat, min(lons) - margin_lon, max(lons) + margin_lon)


def _inside(point: Coordinate, bbox: BBox) -> bool:
    min_lat, max_lat, min_lon, max_lon = bbox
    return min_lat <= point.latitude <= max_lat and min_lon <= point.longitude <= max_lon
