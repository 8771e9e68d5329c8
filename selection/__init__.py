#Expose the route-selection flow:
#Policy (tunable parameters)
#State machine (lifecycle of one selection)
#Controller (the "one object" entry point for the UI)
#Session store (HTTP persistence of the chosen route)

from .policy import SelectionPolicy, default_selection_policy
from .state_machine import SelectionState, SelectionStateException, can_transition, transition
from .controller import (
    RouteSelectionController,
    FetchOutcome,
    RoutingProvider,
    DeliveryPointRegistry,
    SelectionStore,
)
from .session_store import RouteSessionStore, selection_to_payload

__all__ = [
    "SelectionPolicy",
    "default_selection_policy",
    "SelectionState",
    "SelectionStateException",
    "can_transition",
    "transition",
    "RouteSelectionController",
    "FetchOutcome",
    "RoutingProvider",
    "DeliveryPointRegistry",
    "SelectionStore",
    "RouteSessionStore",
    "selection_to_payload",
]
