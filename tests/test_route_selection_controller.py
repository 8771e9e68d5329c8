import threading

import pytest

from checkpoints.models import DeliveryPointCandidate, NoMatchSignal
from checkpoints.policy import MatchingPolicy
from geometry.polyline import encode
from routing.errors import PersistenceError, ProviderError, RegistryError, UnknownRouteError
from routing.models import Coordinate, RouteAlternative, RouteSelection
from selection.controller import RouteSelectionController
from selection.policy import SelectionPolicy
from selection.state_machine import SelectionState, SelectionStateException, can_transition, transition
from traffic.classifier import TrafficDensity

ORIGIN = Coordinate(12.9716, 77.5946)
DESTINATION = Coordinate(12.9816, 77.5946)
OTHER_DESTINATION = Coordinate(12.9616, 77.5846)

M_PER_DEG_LON = 108355.0


def straight_route(route_id="route1", normal=600, traffic=620):
    return RouteAlternative(
        id=route_id,
        encoded_polyline=encode([ORIGIN, DESTINATION]),
        normal_duration_s=normal,
        traffic_duration_s=traffic,
        distance_m=1112.0,
        summary="Straight",
    )


def western_route(route_id="route2"):
    # dog-leg ~650 m west of the straight route
    waypoint = Coordinate(12.9766, 77.5886)
    return RouteAlternative(
        id=route_id,
        encoded_polyline=encode([ORIGIN, waypoint, DESTINATION]),
        normal_duration_s=700,
        traffic_duration_s=1000,
        distance_m=1500.0,
        summary="Western detour",
    )


class MockRoutingProvider:
    def __init__(self, routes=None, error=None):
        self.routes = routes if routes is not None else [straight_route(), western_route()]
        self.error = error
        self.calls = []

    def get_routes(self, origin, destination):
        self.calls.append((origin, destination))
        if self.error is not None:
            raise self.error
        return list(self.routes)


class MockRegistry:
    def __init__(self, candidates=None):
        # one point 30 m east of the straight route, one far away
        self.candidates = candidates if candidates is not None else [
            DeliveryPointCandidate("dp1", "Gate A", Coordinate(12.9766, 77.5946 + 30 / M_PER_DEG_LON)),
            DeliveryPointCandidate("dp2", "Depot", Coordinate(12.9500, 77.6500)),
        ]

    def list_candidates(self):
        return list(self.candidates)


class MockStore:
    def __init__(self, error=None):
        self.saved = []
        self.error = error

    def save(self, selection):
        if self.error is not None:
            raise self.error
        self.saved.append(selection)


@pytest.fixture
def controller():
    return RouteSelectionController(MockRoutingProvider(), MockRegistry(), MockStore())


# -------------------------
# State machine
# -------------------------

def test_state_machine_allows_documented_flow():
    state = SelectionState.IDLE
    for target in (
        SelectionState.FETCHING_ROUTES,
        SelectionState.FETCH_FAILED,
        SelectionState.ROUTES_READY,
        SelectionState.ROUTE_CHOSEN,
        SelectionState.POINTS_MATCHED,
        SelectionState.FETCHING_ROUTES,
    ):
        state = transition(state, target)
    assert state == SelectionState.FETCHING_ROUTES


def test_state_machine_rejects_skipping_the_fetch():
    assert not can_transition(SelectionState.IDLE, SelectionState.ROUTES_READY)
    with pytest.raises(SelectionStateException):
        transition(SelectionState.ROUTES_READY, SelectionState.POINTS_MATCHED)


# -------------------------
# Fetching alternatives
# -------------------------

def test_select_destination_decodes_and_classifies(controller):
    outcome = controller.select_destination(ORIGIN, DESTINATION)

    assert outcome.generation == 1
    assert not outcome.stale
    assert not outcome.used_fallback
    assert outcome.warning is None
    assert [r.source_alternative_id for r in outcome.alternatives] == ["route1", "route2"]
    assert outcome.alternatives[0].density == TrafficDensity.LOW     # +3%
    assert outcome.alternatives[1].density == TrafficDensity.HIGH    # +43%
    assert controller.current_state == SelectionState.ROUTES_READY
    assert controller.get_alternatives() == outcome.alternatives


def test_provider_error_falls_back_and_reports_warning():
    error = ProviderError("OVER_QUERY_LIMIT")
    controller = RouteSelectionController(MockRoutingProvider(error=error), MockRegistry())

    outcome = controller.select_destination(ORIGIN, DESTINATION)

    assert outcome.used_fallback
    assert outcome.warning is error
    assert [r.source_alternative_id for r in outcome.alternatives] == ["fallback1", "fallback2"]
    assert all(r.is_fallback for r in outcome.alternatives)
    assert controller.state_history == (
        SelectionState.IDLE,
        SelectionState.FETCHING_ROUTES,
        SelectionState.FETCH_FAILED,
        SelectionState.ROUTES_READY,
    )


def test_empty_provider_result_counts_as_failure():
    controller = RouteSelectionController(MockRoutingProvider(routes=[]), MockRegistry())
    outcome = controller.select_destination(ORIGIN, DESTINATION)
    assert outcome.used_fallback
    assert isinstance(outcome.warning, ProviderError)


def test_malformed_polyline_is_dropped_and_list_padded():
    broken = RouteAlternative("route1", "_p~iF~ps|", 600, 600, 1000.0)
    provider = MockRoutingProvider(routes=[broken, straight_route("route2")])
    controller = RouteSelectionController(provider, MockRegistry())

    outcome = controller.select_destination(ORIGIN, DESTINATION)

    assert outcome.dropped_route_ids == ("route1",)
    assert not outcome.used_fallback
    assert [r.source_alternative_id for r in outcome.alternatives] == ["route2", "route3"]
    assert outcome.alternatives[1].is_fallback


def test_extra_provider_routes_are_truncated():
    routes = [straight_route("route1"), western_route("route2"), straight_route("route3")]
    controller = RouteSelectionController(MockRoutingProvider(routes=routes), MockRegistry())
    outcome = controller.select_destination(ORIGIN, DESTINATION)
    assert [r.source_alternative_id for r in outcome.alternatives] == ["route1", "route2"]


def test_traffic_formula_comes_from_policy():
    provider = MockRoutingProvider(routes=[straight_route(normal=600, traffic=700)] * 2)
    by_delay = RouteSelectionController(provider, MockRegistry())
    by_ratio = RouteSelectionController(provider, MockRegistry(), policy=SelectionPolicy(traffic_formula="duration_ratio"))

    assert by_delay.select_destination(ORIGIN, DESTINATION).alternatives[0].density == TrafficDensity.MEDIUM
    assert by_ratio.select_destination(ORIGIN, DESTINATION).alternatives[0].density == TrafficDensity.LOW


def test_slow_provider_times_out_into_fallback():
    release = threading.Event()

    class SlowProvider:
        def get_routes(self, origin, destination):
            release.wait(5)
            return [straight_route()]

    controller = RouteSelectionController(SlowProvider(), MockRegistry(), policy=SelectionPolicy(provider_timeout_s=0.05))
    try:
        outcome = controller.select_destination(ORIGIN, DESTINATION)
    finally:
        release.set()

    assert outcome.used_fallback
    assert "timed out" in str(outcome.warning)


# -------------------------
# Generation guard
# -------------------------

def test_newer_destination_supersedes_in_flight_fetch():
    controller = None

    class ReentrantProvider(MockRoutingProvider):
        def get_routes(self, origin, destination):
            if len(self.calls) == 0:
                self.calls.append((origin, destination))
                # the user picks another destination while this request is in flight
                controller.select_destination(ORIGIN, OTHER_DESTINATION)
                return [straight_route("stale1"), straight_route("stale2")]
            return super().get_routes(origin, destination)

    controller = RouteSelectionController(ReentrantProvider(), MockRegistry())
    outcome = controller.select_destination(ORIGIN, DESTINATION)

    assert outcome.stale
    assert outcome.generation == 1
    assert controller.get_current_generation() == 2
    assert [r.source_alternative_id for r in controller.get_alternatives()] == ["route1", "route2"]
    assert controller.current_state == SelectionState.ROUTES_READY


def test_match_result_for_old_generation_is_discarded():
    controller = None

    class ReentrantRegistry(MockRegistry):
        def list_candidates(self):
            controller.select_destination(ORIGIN, OTHER_DESTINATION)
            return super().list_candidates()

    controller = RouteSelectionController(MockRoutingProvider(), ReentrantRegistry())
    controller.select_destination(ORIGIN, DESTINATION)

    assert controller.choose_route("route1") is None
    assert controller.current_selection is None
    assert controller.get_current_generation() == 2
    assert controller.current_state == SelectionState.ROUTES_READY


# -------------------------
# Choosing a route
# -------------------------

def test_choose_route_matches_delivery_points(controller):
    controller.select_destination(ORIGIN, DESTINATION)

    selection = controller.choose_route("route1")

    assert isinstance(selection, RouteSelection)
    assert selection.chosen_route_id == "route1"
    assert selection.generation == 1
    assert [p.candidate_id for p in selection.matched_points] == ["dp1"]
    assert selection.matched_points[0].distance_to_route_m == pytest.approx(30, abs=1)
    assert len(selection.densified_path) > 2
    assert controller.current_state == SelectionState.POINTS_MATCHED
    assert controller.current_selection is selection


def test_no_match_keeps_route_chosen_and_allows_another_choice(controller):
    controller.select_destination(ORIGIN, DESTINATION)

    result = controller.choose_route("route2")

    assert isinstance(result, NoMatchSignal)
    assert result.route_id == "route2"
    assert controller.current_state == SelectionState.ROUTE_CHOSEN
    assert controller.current_selection is None

    assert isinstance(controller.choose_route("route1"), RouteSelection)
    assert controller.current_state == SelectionState.POINTS_MATCHED


def test_choose_unknown_route_raises(controller):
    controller.select_destination(ORIGIN, DESTINATION)
    with pytest.raises(UnknownRouteError):
        controller.choose_route("route9")


def test_choose_before_any_destination_raises(controller):
    with pytest.raises(SelectionStateException):
        controller.choose_route("route1")


def test_registry_error_propagates():
    class BrokenRegistry:
        def list_candidates(self):
            raise RegistryError("registry down")

    controller = RouteSelectionController(MockRoutingProvider(), BrokenRegistry())
    controller.select_destination(ORIGIN, DESTINATION)

    with pytest.raises(RegistryError):
        controller.choose_route("route1")
    assert controller.current_state == SelectionState.ROUTE_CHOSEN


def test_matching_threshold_comes_from_policy():
    policy = SelectionPolicy(matching=MatchingPolicy(proximity_threshold_m=10.0))
    controller = RouteSelectionController(MockRoutingProvider(), MockRegistry(), policy=policy)
    controller.select_destination(ORIGIN, DESTINATION)

    result = controller.choose_route("route1")

    assert isinstance(result, NoMatchSignal)
    assert result.proximity_threshold_m == 10.0


def test_nearest_checkpoint_uses_policy_radius(controller):
    near_gate = Coordinate(12.9766, 77.5946)
    assert controller.nearest_checkpoint(near_gate).id == "dp1"
    assert controller.nearest_checkpoint(Coordinate(12.9900, 77.5600)) is None


# -------------------------
# Saving
# -------------------------

def test_save_selection_hands_selection_to_store():
    store = MockStore()
    controller = RouteSelectionController(MockRoutingProvider(), MockRegistry(), store)
    controller.select_destination(ORIGIN, DESTINATION)
    selection = controller.choose_route("route1")

    controller.save_selection()

    assert store.saved == [selection]


def test_save_without_selection_raises(controller):
    with pytest.raises(SelectionStateException):
        controller.save_selection()


@pytest.mark.parametrize("error", [PersistenceError("503"), RuntimeError("disk full")])
def test_store_failure_is_reported_as_persistence_error(error):
    controller = RouteSelectionController(MockRoutingProvider(), MockRegistry(), MockStore(error=error))
    controller.select_destination(ORIGIN, DESTINATION)
    controller.choose_route("route1")

    with pytest.raises(PersistenceError):
        controller.save_selection()


def test_save_without_store_raises():
    controller = RouteSelectionController(MockRoutingProvider(), MockRegistry())
    controller.select_destination(ORIGIN, DESTINATION)
    controller.choose_route("route1")
    with pytest.raises(PersistenceError):
        controller.save_selection()


# -------------------------
# Recovery at the edges
# -------------------------

def test_provider_failure_at_antimeridian_still_offers_fallback():
    controller = RouteSelectionController(MockRoutingProvider(error=ProviderError("down")), MockRegistry())

    outcome = controller.select_destination(Coordinate(0.0, 179.999), Coordinate(0.0, 180.0))

    assert outcome.used_fallback
    assert [r.source_alternative_id for r in outcome.alternatives] == ["fallback1", "fallback2"]
    assert outcome.dropped_route_ids == ()
    assert controller.current_state == SelectionState.ROUTES_READY


def test_overlong_polyline_value_is_dropped_and_fetch_continues():
    overlong = RouteAlternative("route1", "~" * 250 + "??", 600, 600, 1000.0)
    provider = MockRoutingProvider(routes=[overlong, straight_route("route2"), western_route("route3")])
    controller = RouteSelectionController(provider, MockRegistry())

    outcome = controller.select_destination(ORIGIN, DESTINATION)

    assert outcome.dropped_route_ids == ("route1",)
    assert not outcome.used_fallback
    assert [r.source_alternative_id for r in outcome.alternatives] == ["route2", "route3"]
    assert controller.current_state == SelectionState.ROUTES_READY


def test_hung_provider_calls_do_not_starve_later_fetches():
    release = threading.Event()
    calls = []

    class HangingProvider:
        def get_routes(self, origin, destination):
            calls.append(origin)
            # the first six requests never answer in time
            if len(calls) <= 6:
                release.wait(5)
            return [straight_route(), western_route()]

    controller = RouteSelectionController(HangingProvider(), MockRegistry(), policy=SelectionPolicy(provider_timeout_s=0.2))
    try:
        for _ in range(6):
            assert controller.select_destination(ORIGIN, DESTINATION).used_fallback
        outcome = controller.select_destination(ORIGIN, DESTINATION)
    finally:
        release.set()

    assert len(calls) == 7
    assert not outcome.used_fallback
    assert [r.source_alternative_id for r in outcome.alternatives] == ["route1", "route2"]
