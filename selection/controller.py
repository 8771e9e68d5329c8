"""
Purpose: Orchestrator for route choice (the "glue").
What it does:
Requests route alternatives from the routing provider, decodes and classifies
them for the user to choose from, and on choice densifies the route and
matches delivery points against it. Every origin/destination change starts a
new generation; results computed for an older generation are dropped.

Collaborators are injected (no module-level state), so several controllers
(e.g. one per user session, or per test) never interfere.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence, Tuple, Union

from checkpoints.matcher import find_nearest_checkpoint, match
from checkpoints.models import DeliveryPointCandidate, NoMatchSignal
from geometry.densify import densify
from geometry.polyline import decode
from routing.errors import DecodeError, InvalidCoordinate, PersistenceError, ProviderError, UnknownRouteError
from routing.fallback import pad_alternatives, synthesize_fallback
from routing.models import Coordinate, DecodedRoute, RouteAlternative, RouteSelection
from traffic.classifier import classifier_for

from .policy import SelectionPolicy, default_selection_policy
from .state_machine import CHOOSABLE_STATES, SelectionState, SelectionStateException, transition

logger = logging.getLogger(__name__)


class RoutingProvider(Protocol):
    def get_routes(self, origin: Coordinate, destination: Coordinate) -> List[RouteAlternative]:
        ...


class DeliveryPointRegistry(Protocol):
    def list_candidates(self) -> List[DeliveryPointCandidate]:
        ...


class SelectionStore(Protocol):
    def save(self, selection: RouteSelection) -> None:
        ...


@dataclass(frozen=True)
class FetchOutcome:
    """
    Result of select_destination.

    stale: a newer select_destination superseded this one; nothing was applied
    used_fallback: the alternatives were synthesized locally (not authoritative)
    warning: the provider error that triggered the fallback, if any
    dropped_route_ids: alternatives left out because their polyline was malformed
    """
    generation: int
    alternatives: List[DecodedRoute] = field(default_factory=list)
    used_fallback: bool = False
    warning: Optional[ProviderError] = None
    dropped_route_ids: Tuple[str, ...] = ()
    stale: bool = False


ChooseResult = Union[RouteSelection, NoMatchSignal, None]


class RouteSelectionController:
    """
    Stateful coordinator of one user's route choice.

    State transitions are serialized by a lock; the lock is never held while
    the provider or the registry is being called, so a newer
    select_destination can start while an older fetch is still in flight.
    """
    def __init__(
        self,
        routing_provider: RoutingProvider,
        delivery_point_registry: DeliveryPointRegistry,
        selection_store: Optional[SelectionStore] = None,
        policy: Optional[SelectionPolicy] = None,
    ):
        self.routing_provider = routing_provider
        self.delivery_point_registry = delivery_point_registry
        self.selection_store = selection_store
        self.policy = policy or default_selection_policy()
        self.policy.validate()
        self._classify = classifier_for(self.policy.traffic_formula)

        self._lock = threading.Lock()
        self._generation = 0
        self._state = SelectionState.IDLE
        self._history: List[SelectionState] = [SelectionState.IDLE]
        self._origin: Optional[Coordinate] = None
        self._destination: Optional[Coordinate] = None
        self._alternatives: Dict[str, DecodedRoute] = {}
        self._current_selection: Optional[RouteSelection] = None

    # --- Read-only views ---

    @property
    def current_state(self) -> SelectionState:
        return self._state

    @property
    def state_history(self) -> Tuple[SelectionState, ...]:
        return tuple(self._history)

    @property
    def current_selection(self) -> Optional[RouteSelection]:
        return self._current_selection

    def get_current_generation(self) -> int:
        return self._generation

    def get_alternatives(self) -> List[DecodedRoute]:
        with self._lock:
            return list(self._alternatives.values())

    # --- Public API ---

    def select_destination(self, origin: Coordinate, destination: Coordinate) -> FetchOutcome:
        """
        Start a new generation for (origin, destination) and fetch alternatives.

        Provider failures never block the flow: on ProviderError (or timeout, or
        no usable routes) fallback alternatives are synthesized and the error is
        returned as FetchOutcome.warning.
        """
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._origin = origin
            self._destination = destination
            self._alternatives = {}
            self._current_selection = None
            self._set_state(SelectionState.FETCHING_ROUTES)

        logger.info("Generation %d: fetching routes %s -> %s", generation, origin.as_tuple(), destination.as_tuple())

        warning: Optional[ProviderError] = None
        try:
            raw_alternatives = self._fetch_routes(origin, destination)
        except ProviderError as exc:
            warning = exc
            raw_alternatives = []

        usable, dropped = self._decode_all(raw_alternatives)
        usable = usable[: self.policy.max_alternatives]

        if warning is None and not usable:
            warning = ProviderError("Routing provider returned no usable routes")

        used_fallback = warning is not None
        if used_fallback:
            logger.warning("Generation %d: using fallback routes (%s)", generation, warning)
            fallback = synthesize_fallback(
                origin,
                destination,
                self.policy.min_alternatives,
                speed_mps=self.policy.fallback_speed_mps,
                **self.policy.perturbation_kwargs(),
            )
            usable, fallback_dropped = self._decode_all(fallback)
            dropped.extend(fallback_dropped)
        elif len(usable) < self.policy.min_alternatives:
            padded = pad_alternatives(
                [alternative for alternative, _ in usable],
                self.policy.min_alternatives,
                **self.policy.perturbation_kwargs(),
            )
            extra, extra_dropped = self._decode_all(padded[len(usable):])
            usable.extend(extra)
            dropped.extend(extra_dropped)

        decoded_routes = [route for _, route in usable]

        with self._lock:
            if generation != self._generation:
                logger.debug("Discarding routes for stale generation %d (current %d)", generation, self._generation)
                return FetchOutcome(generation=generation, stale=True)

            if used_fallback:
                self._set_state(SelectionState.FETCH_FAILED)
            self._alternatives = {route.source_alternative_id: route for route in decoded_routes}
            self._set_state(SelectionState.ROUTES_READY)

        return FetchOutcome(
            generation=generation,
            alternatives=decoded_routes,
            used_fallback=used_fallback,
            warning=warning,
            dropped_route_ids=tuple(dropped),
        )

    def choose_route(self, route_id: str) -> ChooseResult:
        """
        Densify the chosen alternative and match delivery points against it.

        Returns:
            RouteSelection  -> state POINTS_MATCHED
            NoMatchSignal   -> state stays ROUTE_CHOSEN; ask the user for another route
            None            -> origin/destination changed meanwhile; result discarded
        Raises:
            UnknownRouteError, SelectionStateException, RegistryError (from the registry)
        """
        with self._lock:
            if self._state not in CHOOSABLE_STATES:
                raise SelectionStateException(f"Cannot choose a route in state {self._state.value}")
            route = self._alternatives.get(route_id)
            if route is None:
                raise UnknownRouteError(route_id)
            generation = self._generation
            origin = self._origin
            self._current_selection = None
            self._set_state(SelectionState.ROUTE_CHOSEN)

        matching = self.policy.matching
        path = densify(route.coordinates, matching.max_segment_m)
        candidates = self.delivery_point_registry.list_candidates()
        result = match(
            path,
            candidates,
            matching.proximity_threshold_m,
            origin,
            route_id=route_id,
        )

        with self._lock:
            if generation != self._generation:
                logger.debug("Discarding match for stale generation %d (current %d)", generation, self._generation)
                return None

            if isinstance(result, NoMatchSignal):
                logger.info(
                    "Route %s: no delivery points within %.0f m (%d candidates)",
                    route_id, result.proximity_threshold_m, result.candidates_considered,
                )
                return result

            selection = RouteSelection(
                chosen_route_id=route_id,
                densified_path=path,
                matched_points=tuple(result),
                generation=generation,
            )
            self._current_selection = selection
            self._set_state(SelectionState.POINTS_MATCHED)

        logger.info("Route %s: %d delivery points matched", route_id, len(selection.matched_points))
        return selection

    def nearest_checkpoint(self, location: Coordinate) -> Optional[DeliveryPointCandidate]:
        """Snap a position to the closest delivery point within the policy radius."""
        return find_nearest_checkpoint(
            location,
            self.delivery_point_registry.list_candidates(),
            self.policy.matching.nearest_checkpoint_radius_m,
        )

    def save_selection(self) -> None:
        """
        Hand the current selection to the selection store. Not retried;
        any failure is raised as PersistenceError.
        """
        selection = self._current_selection
        if selection is None:
            raise SelectionStateException("No matched route selection to save")
        if self.selection_store is None:
            raise PersistenceError("No selection store configured")

        try:
            self.selection_store.save(selection)
        except PersistenceError:
            logger.warning("Saving route selection %s failed", selection.chosen_route_id)
            raise
        except Exception as exc:
            logger.warning("Saving route selection %s failed: %s", selection.chosen_route_id, exc)
            raise PersistenceError(f"Failed to save route selection: {exc}") from exc

    # --- Internal helpers ---

    def _set_state(self, target: SelectionState) -> None:
        # caller holds self._lock
        self._state = transition(self._state, target)
        self._history.append(target)
        logger.debug("Selection state -> %s", target.value)

    def _fetch_routes(self, origin: Coordinate, destination: Coordinate) -> List[RouteAlternative]:
        timeout = self.policy.provider_timeout_s
        if timeout is None:
            return list(self.routing_provider.get_routes(origin, destination))

        # one worker per call, so a provider hung past the timeout never delays later fetches
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="routing-provider")
        future = executor.submit(self.routing_provider.get_routes, origin, destination)
        try:
            return list(future.result(timeout=timeout))
        except FutureTimeoutError as exc:
            # the request keeps running; its late result is never applied
            raise ProviderError(f"Routing provider timed out after {timeout}s") from exc
        finally:
            executor.shutdown(wait=False)

    def _decode_all(
        self, alternatives: Sequence[RouteAlternative]
    ) -> Tuple[List[Tuple[RouteAlternative, DecodedRoute]], List[str]]:
        """
        Decode + classify each alternative. Undecodable ones (or ones that
        decode to nothing) are dropped and their ids returned.
        """
        usable: List[Tuple[RouteAlternative, DecodedRoute]] = []
        dropped: List[str] = []
        for alternative in alternatives:
            try:
                coordinates = decode(alternative.encoded_polyline)
            except (DecodeError, InvalidCoordinate) as exc:
                logger.warning("Dropping route %s: %s", alternative.id, exc)
                dropped.append(alternative.id)
                continue
            if not coordinates:
                logger.warning("Dropping route %s: empty polyline", alternative.id)
                dropped.append(alternative.id)
                continue

            usable.append((alternative, DecodedRoute(
                source_alternative_id=alternative.id,
                coordinates=tuple(coordinates),
                density=self._classify(alternative.normal_duration_s, alternative.traffic_duration_s),
                normal_duration_s=alternative.normal_duration_s,
                traffic_duration_s=alternative.traffic_duration_s,
                distance_m=alternative.distance_m,
                summary=alternative.summary,
                is_fallback=alternative.is_fallback,
            )))
        return usable, dropped
