import csv
import logging
import os
from typing import List, Optional

from checkpoints.models import DeliveryPointCandidate, NoMatchSignal
from geometry.polyline import encode
from geometry.geomath import interpolate
from routing.directions_client import DirectionsClient
from routing.errors import ProviderError
from routing.models import Coordinate, RouteAlternative
from selection.controller import RouteSelectionController
from traffic.hotspots import find_congestion_hotspots


class CsvDeliveryPointRegistry:
    """Delivery point registry backed by a CSV file (see generate_mock_delivery_points.py)."""
    def __init__(self, filepath):
        self.filepath = filepath

    def list_candidates(self) -> List[DeliveryPointCandidate]:
        return load_delivery_points(self.filepath)


class MockDirections:
    """
    Offline stand-in for the directions provider.
    Returns a straight route and a dog-leg route through a waypoint north of it.
    """
    def get_routes(self, origin, destination) -> List[RouteAlternative]:
        middle = interpolate(origin, destination, 0.5)
        waypoint = Coordinate(middle.latitude + 0.003, middle.longitude - 0.003)
        return [
            RouteAlternative(
                id="route1",
                encoded_polyline=encode([origin, middle, destination]),
                normal_duration_s=600,
                traffic_duration_s=640,
                distance_m=1550.0,
                summary="Main road",
            ),
            RouteAlternative(
                id="route2",
                encoded_polyline=encode([origin, waypoint, destination]),
                normal_duration_s=720,
                traffic_duration_s=1000,
                distance_m=2100.0,
                summary="Northern bypass",
            ),
        ]


def load_delivery_points(filepath="delivery_points_generated.csv") -> List[DeliveryPointCandidate]:
    points = []

    # Resolve relative paths from the repo root, wherever the script is run from.
    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    absolute_path = filepath if os.path.isabs(filepath) else os.path.join(base_dir, filepath)

    with open(absolute_path, 'r') as file:
        reader = csv.DictReader(file)
        for row in reader:
            points.append(
                DeliveryPointCandidate(
                    id=row['point_id'],
                    name=row['name'],
                    coordinate=Coordinate(float(row['lat']), float(row['lon'])),
                    address=row.get('address', ""),
                )
            )
    return points


def run_route_selection(points_file="delivery_points_generated.csv", origin=None, destination=None, provider=None, route_id: Optional[str] = None):
    print("=== STARTING ROUTE SELECTION DEMO ===")

    origin = origin or Coordinate(12.9716, 77.5946)
    destination = destination or Coordinate(12.9816, 77.6046)

    # Use the real provider when it is configured, the offline mock otherwise.
    if provider is None:
        provider = DirectionsClient() if os.getenv("DIRECTIONS_BASE_URL") else MockDirections()

    controller = RouteSelectionController(provider, CsvDeliveryPointRegistry(points_file))

    # 1. Fetch alternatives
    outcome = controller.select_destination(origin, destination)
    if outcome.used_fallback:
        print(f"[WARNING] Provider unavailable, showing estimated routes: {outcome.warning}")

    print("\n--- Route Alternatives ---")
    for route in outcome.alternatives:
        print(
            f"{route.source_alternative_id}: {route.summary or 'Route'} | "
            f"{route.distance_m / 1000:.1f} km | {route.traffic_duration_s // 60} min | "
            f"traffic {route.density.value}"
        )

    # Step-level congestion is only available from the real provider.
    if isinstance(provider, DirectionsClient):
        try:
            hotspots = find_congestion_hotspots(provider.get_route_steps(origin, destination))
        except ProviderError as exc:
            print(f"[WARNING] Could not load route steps: {exc}")
        else:
            for hotspot in hotspots:
                print(f"  [{hotspot.severity.value}] step {hotspot.step_index}: {hotspot.description}")

    # 2. Choose a route (first one unless told otherwise) and match delivery points
    chosen = route_id or outcome.alternatives[0].source_alternative_id
    result = controller.choose_route(chosen)

    print(f"\n--- Delivery Points Along {chosen} ---")
    if isinstance(result, NoMatchSignal):
        print(f"[NO MATCH] {result.message}")
    elif result is not None:
        for point in result.matched_points:
            print(
                f"{point.candidate_id} {point.name}: {point.distance_to_route_m:.0f} m off route, "
                f"{point.distance_from_origin_m:.0f} m from start"
            )

    print("\n=== DEMO COMPLETE ===")
    print(f"Final state: {controller.current_state.value}")
    return result


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run_route_selection()
