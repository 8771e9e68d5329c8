"""
Purpose: Error taxonomy shared by the geometry, matching and selection layers.
What it does:
- DecodeError / InvalidCoordinate: malformed input, raised at the boundary.
- ProviderError: the routing provider failed (the controller recovers with fallback routes).
- RegistryError / PersistenceError: delivery-point registry or session store failed.
- UnknownRouteError: choose_route was called with an id that is not on offer.

Rule: no logic here, exceptions only.
"""


class RouteEngineError(Exception):
    """Base class for every error raised by this library."""
    pass


class DecodeError(RouteEngineError, ValueError):
    """Raised when an encoded polyline is truncated or malformed."""
    pass


class InvalidCoordinate(RouteEngineError, ValueError):
    """Raised when a latitude/longitude falls outside the valid range."""
    pass


class ProviderError(RouteEngineError):
    """Raised when the routing provider is unreachable or returned an error."""
    pass


class RegistryError(RouteEngineError):
    """Raised when the delivery-point registry cannot be read."""
    pass


class PersistenceError(RouteEngineError):
    """Raised when a route selection could not be saved."""
    pass


class UnknownRouteError(RouteEngineError, KeyError):
    """Raised when a route id is not among the current alternatives."""
    pass
