"""
Purpose: Central configuration for the route-selection controller.
What it does:

Stores all tunable parameters for presenting route alternatives:

MIN_ALTERNATIVES = 2 (pad with perturbed copies below this)
MAX_ALTERNATIVES = 2 (keep only the provider's first N)
FALLBACK_SPEED_MPS = 6.0
PROVIDER_TIMEOUT_S = None (no timeout)

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional

from checkpoints.policy import MatchingPolicy
from traffic.classifier import TRAFFIC_FORMULAS


@dataclass(frozen=True)
class SelectionPolicy:
    """
    Central configuration for fetching, presenting and choosing routes.
    """

    # --- Alternatives on offer ---
    # The UI always shows at least min_alternatives options; missing ones are
    # padded with perturbed copies of the first route.
    min_alternatives: int = 2
    max_alternatives: int = 2

    # --- Fallback synthesis (provider unreachable) ---
    # Assumed travel speed for the direct origin -> destination route.
    fallback_speed_mps: float = 6.0
    # Coordinate shift per copy index, in degrees (~220 m of latitude).
    fallback_offset_deg: float = 0.002
    # Per-copy multipliers: duration +10%, distance +15%, traffic +5%.
    fallback_duration_step: float = 0.10
    fallback_distance_step: float = 0.15
    fallback_traffic_step: float = 0.05

    # --- Provider call ---
    # Seconds to wait for the provider before falling back. None = wait forever.
    provider_timeout_s: Optional[float] = None

    # --- Traffic classification ---
    # "delay_percentage" (default) or "duration_ratio"; see traffic.classifier.
    traffic_formula: str = "delay_percentage"

    # --- Matching ---
    matching: MatchingPolicy = field(default_factory=MatchingPolicy)

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if self.min_alternatives < 1:
            raise ValueError("min_alternatives must be >= 1")

        if self.max_alternatives < self.min_alternatives:
            raise ValueError("max_alternatives must be >= min_alternatives")

        if self.fallback_speed_mps <= 0:
            raise ValueError("fallback_speed_mps must be > 0")

        if self.fallback_offset_deg < 0:
            raise ValueError("fallback_offset_deg must be >= 0")

        if min(self.fallback_duration_step, self.fallback_distance_step, self.fallback_traffic_step) < 0:
            raise ValueError("fallback steps must be >= 0")

        if self.provider_timeout_s is not None and self.provider_timeout_s <= 0:
            raise ValueError("provider_timeout_s must be > 0 (or None)")

        if self.traffic_formula not in TRAFFIC_FORMULAS:
            raise ValueError(f"traffic_formula must be one of {sorted(TRAFFIC_FORMULAS)}")

        self.matching.validate()

    def perturbation_kwargs(self) -> dict:
        """Keyword arguments for routing.fallback perturbation helpers."""
        return {
            "offset_deg": self.fallback_offset_deg,
            "duration_step": self.fallback_duration_step,
            "distance_step": self.fallback_distance_step,
            "traffic_step": self.fallback_traffic_step,
        }


def default_selection_policy() -> SelectionPolicy:
    """
    Convenience factory for the default policy.
    """
    p = SelectionPolicy()
    p.validate()
    return p
