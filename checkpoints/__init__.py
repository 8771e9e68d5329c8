"""
Checkpoints (delivery points) package.

Public API:
- Domain models: DeliveryPointCandidate, MatchedDeliveryPoint, NoMatchSignal
- Matching: match, find_nearest_checkpoint
- Policy: MatchingPolicy, default_matching_policy
- Registry adapter: DeliveryPointRegistryClient
"""
from .models import DeliveryPointCandidate, MatchedDeliveryPoint, NoMatchSignal
from .matcher import match, find_nearest_checkpoint, MatchResult
from .policy import MatchingPolicy, default_matching_policy
from .registry_client import DeliveryPointRegistryClient

__all__ = [
    "DeliveryPointCandidate",
    "MatchedDeliveryPoint",
    "NoMatchSignal",
    "match",
    "find_nearest_checkpoint",
    "MatchResult",
    "MatchingPolicy",
    "default_matching_policy",
    "DeliveryPointRegistryClient",
]
