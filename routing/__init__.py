#Marks routing as a package.
#Re-exports the shared data model, the error taxonomy and the directions adapter
#so other modules import from routing without knowing internal file names.
#No business logic.
#(fallback.py is imported directly by the selection layer; it depends on geometry,
#which itself depends on routing.models.)

from .errors import (
    RouteEngineError,
    DecodeError,
    InvalidCoordinate,
    ProviderError,
    RegistryError,
    PersistenceError,
    UnknownRouteError,
)
from .models import Coordinate, RouteAlternative, DecodedRoute, DensifiedPath, RouteSelection
from .directions_client import DirectionsClient

__all__ = [
    "RouteEngineError",
    "DecodeError",
    "InvalidCoordinate",
    "ProviderError",
    "RegistryError",
    "PersistenceError",
    "UnknownRouteError",
    "Coordinate",
    "RouteAlternative",
    "DecodedRoute",
    "DensifiedPath",
    "RouteSelection",
    "DirectionsClient",
]
