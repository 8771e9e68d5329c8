"""
Purpose: Central configuration for delivery-point matching.
What it does:

Stores all tunable thresholds for matching checkpoints against a route:

PROXIMITY_THRESHOLD_M = 100
MAX_SEGMENT_M = 50
NEAREST_CHECKPOINT_RADIUS_M = 100

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class MatchingPolicy:
    """
    Central configuration for densification and proximity matching.
    """

    # --- Proximity ---
    # Maximum distance from a delivery point to the route for it to count
    # as reachable (inclusive).
    proximity_threshold_m: float = 100.0

    # --- Densification ---
    # Longest allowed gap between consecutive route points before matching.
    # Smaller = more accurate proximity tests, more segments to test.
    max_segment_m: float = 50.0

    # --- Snapping ---
    # Radius used to snap the user's current position to the nearest checkpoint.
    nearest_checkpoint_radius_m: float = 100.0

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if self.proximity_threshold_m < 0:
            raise ValueError("proximity_threshold_m must be >= 0")

        if self.max_segment_m <= 0:
            raise ValueError("max_segment_m must be > 0")

        if self.nearest_checkpoint_radius_m < 0:
            raise ValueError("nearest_checkpoint_radius_m must be >= 0")


def default_matching_policy() -> MatchingPolicy:
    """
    Convenience factory for the default policy.
    """
    p = MatchingPolicy()
    p.validate()
    return p
