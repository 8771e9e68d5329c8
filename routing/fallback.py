"""
Purpose: Locally synthesized route alternatives.
What it does:
Keeps the route-choice flow usable when the provider is unreachable (or returns
fewer options than the UI needs):
- direct_route: a straight 2-point origin -> destination route with an estimated duration
- perturbed_copy: a deterministic variant of a route (shifted interior points,
  scaled duration/distance) used to pad the list of options
- synthesize_fallback / pad_alternatives: build the full list

These routes are not geodesic and not authoritative; every synthesized
alternative carries is_fallback=True.
"""
from __future__ import annotations

from typing import List, Sequence

from geometry.geomath import haversine_distance, interpolate
from geometry.polyline import decode, encode

from .models import Coordinate, RouteAlternative

DEFAULT_SPEED_MPS = 6.0  # ~21.6 km/h, city traffic
DEFAULT_OFFSET_DEG = 0.002
DEFAULT_DURATION_STEP = 0.10  # +10% duration per copy
DEFAULT_DISTANCE_STEP = 0.15  # +15% distance per copy
DEFAULT_TRAFFIC_STEP = 0.05


def direct_route(
    origin: Coordinate,
    destination: Coordinate,
    *,
    route_id: str = "fallback1",
    speed_mps: float = DEFAULT_SPEED_MPS,
) -> RouteAlternative:
    """Straight line origin -> destination; duration estimated from speed_mps."""
    if speed_mps <= 0:
        raise ValueError("speed_mps must be > 0")

    distance = haversine_distance(origin, destination)
    duration = int(round(distance / speed_mps))
    return RouteAlternative(
        id=route_id,
        encoded_polyline=encode([origin, destination]),
        normal_duration_s=duration,
        traffic_duration_s=duration,
        distance_m=distance,
        summary="Direct route (estimated)",
        is_fallback=True,
    )


def perturbed_copy(
    base: RouteAlternative,
    index: int,
    *,
    route_id: str,
    offset_deg: float = DEFAULT_OFFSET_DEG,
    duration_step: float = DEFAULT_DURATION_STEP,
    distance_step: float = DEFAULT_DISTANCE_STEP,
    traffic_step: float = DEFAULT_TRAFFIC_STEP,
) -> RouteAlternative:
    """
    Deterministic variant number `index` (1-based) of base.

    - first and last point are kept exactly; a 2-point base first gains its midpoint
    - interior point j is shifted by offset_deg * index on both axes,
      with the sign alternating per point (+, -, +, ...); flipped near a pole or
      the antimeridian so the copy stays a valid route
    - duration scaled by (1 + duration_step * index), distance by (1 + distance_step * index);
      traffic duration additionally by (1 + traffic_step * index) so the copy
      never looks less congested than its base
    """
    if index < 1:
        raise ValueError("index must be >= 1")

    points = decode(base.encoded_polyline)
    if len(points) == 2:
        points = [points[0], interpolate(points[0], points[1], 0.5), points[1]]

    offset = offset_deg * index
    shifted: List[Coordinate] = list(points)
    for j in range(1, len(points) - 1):
        sign = 1.0 if j % 2 == 1 else -1.0
        shifted[j] = Coordinate(
            latitude=_shift(points[j].latitude, sign * offset, 90.0),
            longitude=_shift(points[j].longitude, sign * offset, 180.0),
        )

    duration_multiplier = 1 + duration_step * index
    distance_multiplier = 1 + distance_step * index
    return RouteAlternative(
        id=route_id,
        encoded_polyline=encode(shifted),
        normal_duration_s=int(round(base.normal_duration_s * duration_multiplier)),
        traffic_duration_s=int(round(base.traffic_duration_s * duration_multiplier * (1 + traffic_step * index))),
        distance_m=base.distance_m * distance_multiplier,
        summary=f"Alternative Route {index}",
        is_fallback=True,
    )


def pad_alternatives(
    alternatives: Sequence[RouteAlternative],
    count: int,
    *,
    id_prefix: str = "route",
    **perturbation,
) -> List[RouteAlternative]:
    """
    Return alternatives extended with perturbed copies of the first one until
    there are at least `count`. Copy ids continue the numbering: <prefix><n>.
    """
    padded = list(alternatives)
    if not padded:
        raise ValueError("cannot pad an empty list of alternatives")

    base = padded[0]
    taken = {alternative.id for alternative in padded}
    number = len(padded)
    while len(padded) < count:
        index = len(padded)
        number += 1
        while f"{id_prefix}{number}" in taken:
            number += 1
        route_id = f"{id_prefix}{number}"
        taken.add(route_id)
        padded.append(perturbed_copy(base, index, route_id=route_id, **perturbation))
    return padded


def synthesize_fallback(
    origin: Coordinate,
    destination: Coordinate,
    count: int = 2,
    *,
    speed_mps: float = DEFAULT_SPEED_MPS,
    **perturbation,
) -> List[RouteAlternative]:
    """
    Fallback list for a failed provider call: the direct route plus
    count - 1 perturbed copies of it (always at least one route).
    """
    direct = direct_route(origin, destination, route_id="fallback1", speed_mps=speed_mps)
    return pad_alternatives([direct], max(count, 1), id_prefix="fallback", **perturbation)


def _shift(value: float, delta: float, limit: float) -> float:
    # near a pole or the antimeridian shift the other way; unshifted if neither fits
    for candidate in (value + delta, value - delta):
        if -limit <= candidate <= limit:
            return candidate
    return value
