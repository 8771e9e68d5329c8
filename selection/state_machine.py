"""
Purpose: Lifecycle of a route selection.

IDLE -> FETCHING_ROUTES -> ROUTES_READY -> ROUTE_CHOSEN -> POINTS_MATCHED
        FETCHING_ROUTES -> FETCH_FAILED -> ROUTES_READY (fallback routes)

Any origin/destination change goes back to FETCHING_ROUTES from every state.
A NoMatchSignal keeps the controller in ROUTE_CHOSEN.
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet


class SelectionState(str, Enum):
    IDLE = "IDLE"
    FETCHING_ROUTES = "FETCHING_ROUTES"
    FETCH_FAILED = "FETCH_FAILED"
    ROUTES_READY = "ROUTES_READY"
    ROUTE_CHOSEN = "ROUTE_CHOSEN"
    POINTS_MATCHED = "POINTS_MATCHED"


class SelectionStateException(Exception):
    """Raised when an invalid state transition is attempted."""
    pass


_ALLOWED: Dict[SelectionState, FrozenSet[SelectionState]] = {
    SelectionState.IDLE: frozenset({SelectionState.FETCHING_ROUTES}),
    SelectionState.FETCHING_ROUTES: frozenset({
        SelectionState.FETCHING_ROUTES,
        SelectionState.ROUTES_READY,
        SelectionState.FETCH_FAILED,
    }),
    SelectionState.FETCH_FAILED: frozenset({
        SelectionState.FETCHING_ROUTES,
        SelectionState.ROUTES_READY,
    }),
    SelectionState.ROUTES_READY: frozenset({
        SelectionState.FETCHING_ROUTES,
        SelectionState.ROUTE_CHOSEN,
    }),
    SelectionState.ROUTE_CHOSEN: frozenset({
        SelectionState.FETCHING_ROUTES,
        SelectionState.ROUTE_CHOSEN,
        SelectionState.POINTS_MATCHED,
    }),
    SelectionState.POINTS_MATCHED: frozenset({
        SelectionState.FETCHING_ROUTES,
        SelectionState.ROUTE_CHOSEN,
    }),
}

# states from which the user may pick one of the alternatives
CHOOSABLE_STATES = frozenset({
    SelectionState.ROUTES_READY,
    SelectionState.ROUTE_CHOSEN,
    SelectionState.POINTS_MATCHED,
})


def can_transition(current: SelectionState, target: SelectionState) -> bool:
    return target in _ALLOWED[current]


def transition(current: SelectionState, target: SelectionState) -> SelectionState:
    """
    Validate current -> target and return target.
    """
    if not can_transition(current, target):
        raise SelectionStateException(f"Cannot transition from {current.value} to {target.value}")
    return target
