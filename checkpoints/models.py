"""
Purpose: Domain models for delivery points (checkpoints).
What it does:
- DeliveryPointCandidate: a location supplied by the registry (read-only input)
- MatchedDeliveryPoint: a candidate that lies close enough to the chosen route
- NoMatchSignal: typed "nothing within range" outcome of a match

Rule: No matching logic here. Models only.
"""
from __future__ import annotations

from dataclasses import dataclass

from routing.models import Coordinate


@dataclass(frozen=True)
class DeliveryPointCandidate:
    """
    A physical spot where courier and customer can meet,
    as defined by the admin in the delivery-point registry.
    """
    id: str
    name: str
    coordinate: Coordinate
    address: str = ""


@dataclass(frozen=True)
class MatchedDeliveryPoint:
    """
    A candidate within the proximity threshold of the route.
    distance_to_route_m: minimum distance to any route segment
    distance_from_origin_m: straight-line distance from the user's origin (sort key)
    """
    candidate_id: str
    name: str
    coordinate: Coordinate
    distance_to_route_m: float
    distance_from_origin_m: float


@dataclass(frozen=True)
class NoMatchSignal:
    """
    No candidate lies within the proximity threshold of the route.

    Returned instead of an empty list so the caller has to branch on it
    (e.g. prompt the user to pick another route). Falsy, never equal to [].
    """
    route_id: str
    proximity_threshold_m: float
    candidates_considered: int

    def __bool__(self) -> bool:
        return False

    @property
    def message(self) -> str:
        return (
            f"No delivery points are available within {self.proximity_threshold_m:.0f} meters "
            f"of your route. Please change your route to continue."
        )
