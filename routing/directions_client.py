#Purpose: The directions-provider "adapter/client".
#Sole responsibility: talk to a Google-Directions-compatible HTTP API and return normalized outputs.
#Encapsulates provider-specific details:
#coordinate formatting ("lat,lon")
#query construction (alternatives, departure_time, traffic model)
#timeouts/error handling -> ProviderError
#parsing response JSON into RouteAlternative / RouteStep
#It should not contain classification, matching or selection rules.

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

import requests
from dotenv import load_dotenv

from traffic.hotspots import RouteStep

from .errors import InvalidCoordinate, ProviderError
from .models import Coordinate, RouteAlternative

# Read provider settings from environment
# Example in .env:
# DIRECTIONS_BASE_URL=https://maps.googleapis.com
# DIRECTIONS_API_KEY=...
load_dotenv()
BASE_URL = os.getenv("DIRECTIONS_BASE_URL")
API_KEY = os.getenv("DIRECTIONS_API_KEY")

DIRECTIONS_PATH = "/maps/api/directions/json"

logger = logging.getLogger(__name__)


class DirectionsClient:
    """
    Directions adapter / client

    Sole responsibility:
    - Talk to the directions API via HTTP
    - Convert internal Coordinate -> "lat,lon" query values
    - Return normalized RouteAlternative objects

    Implements the RoutingProvider protocol consumed by RouteSelectionController.
    """
    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        *,
        mode: str = "driving",
        timeout: int = 5,
    ):
        self.base_url = (base_url or BASE_URL or "").rstrip("/")
        self.api_key = api_key if api_key is not None else API_KEY
        self.mode = mode  # driving, walking, bicycling
        self.timeout = timeout  # seconds to wait before giving up on the provider

        if not self.base_url:
            raise ValueError("Directions base URL not set. Please set DIRECTIONS_BASE_URL in the .env file.")

    #----------------
    # Internal helpers
    #----------------
    @staticmethod
    def format_coordinate(point: Coordinate) -> str:
        """Convert a Coordinate to the provider's 'lat,lon' format."""
        return f"{point.latitude},{point.longitude}"

    def _fetch(self, origin: Coordinate, destination: Coordinate, alternatives: bool) -> Dict[str, Any]:
        params = {
            "origin": self.format_coordinate(origin),
            "destination": self.format_coordinate(destination),
            "alternatives": "true" if alternatives else "false",
            "departure_time": "now",  # required for duration_in_traffic
            "traffic_model": "best_guess",
            "mode": self.mode,
        }
        if self.api_key:
            params["key"] = self.api_key

        try:
            response = requests.get(
                f"{self.base_url}{DIRECTIONS_PATH}",
                params=params,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as exc:
            raise ProviderError(f"Directions request failed: {exc}") from exc
        except ValueError as exc:
            raise ProviderError("Directions response is not valid JSON") from exc

        #validating provider response
        status = data.get("status")
        if status != "OK":
            raise ProviderError(f"Directions error: {status} {data.get('error_message', '')}".strip())
        if not data.get("routes"):
            raise ProviderError("Directions returned no routes")
        return data

    #----------------
    # Public methods
    #----------------
    def get_routes(self, origin: Coordinate, destination: Coordinate) -> List[RouteAlternative]:
        """
        Fetch route alternatives between origin and destination.

        Returns:
            [RouteAlternative(id="route1", ...), RouteAlternative(id="route2", ...), ...]
            in provider order (the first one is the provider's preferred route).
        """
        data = self._fetch(origin, destination, alternatives=True)

        alternatives: List[RouteAlternative] = []
        for index, route in enumerate(data["routes"]):
            try:
                alternatives.append(_parse_alternative(index, route))
            except (KeyError, IndexError, TypeError, ValueError) as exc:
                # one malformed route should not sink the others
                logger.warning("Skipping malformed directions route %d: %s", index, exc)

        if not alternatives:
            raise ProviderError("Directions returned no usable routes")
        return alternatives

    def get_route_steps(self, origin: Coordinate, destination: Coordinate) -> List[RouteStep]:
        """
        Per-step durations of the preferred route, input for traffic.find_congestion_hotspots.
        Steps without a traffic duration use their normal duration.
        """
        data = self._fetch(origin, destination, alternatives=False)
        leg = data["routes"][0]["legs"][0]

        steps: List[RouteStep] = []
        for step in leg.get("steps", []):
            try:
                start = Coordinate(
                    latitude=float(step["start_location"]["lat"]),
                    longitude=float(step["start_location"]["lng"]),
                )
            except (KeyError, TypeError, ValueError, InvalidCoordinate) as exc:
                raise ProviderError(f"Malformed directions step: {exc}") from exc
            normal = int(step.get("duration", {}).get("value", 0))
            traffic = int(step.get("duration_in_traffic", {}).get("value", normal))
            steps.append(RouteStep(start=start, normal_duration_s=normal, traffic_duration_s=traffic))
        return steps


def _parse_alternative(index: int, route: Dict[str, Any]) -> RouteAlternative:
    """Normalize one provider route (first leg) into a RouteAlternative."""
    leg = route["legs"][0]
    normal = int(leg["duration"]["value"])
    # providers omit duration_in_traffic when they have no live data
    traffic = int(leg.get("duration_in_traffic", {}).get("value", normal))
    return RouteAlternative(
        id=f"route{index + 1}",
        encoded_polyline=route["overview_polyline"]["points"],
        normal_duration_s=normal,
        traffic_duration_s=traffic,
        distance_m=float(leg["distance"]["value"]),
        summary=route.get("summary", ""),
    )
