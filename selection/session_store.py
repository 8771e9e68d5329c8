#Purpose: Persist a chosen route selection (the user's "route session").
#Sole responsibility: serialize a RouteSelection and POST it to the backend.
#Failures become PersistenceError and are not retried here.

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import requests
from dotenv import load_dotenv

from routing.errors import PersistenceError
from routing.models import RouteSelection

# Example in .env:
# SESSION_BASE_URL=http://localhost:5000/api/route-sessions
load_dotenv()
BASE_URL = os.getenv("SESSION_BASE_URL")

logger = logging.getLogger(__name__)


def selection_to_payload(selection: RouteSelection, user_id: Optional[str] = None) -> Dict[str, Any]:
    """JSON-ready representation of a selection."""
    path = selection.densified_path
    payload: Dict[str, Any] = {
        "route": selection.chosen_route_id,
        "generation": selection.generation,
        "startLocation": _point(path[0]) if path else None,
        "destination": _point(path[-1]) if path else None,
        "path": [_point(p) for p in path],
        "selectedCheckpoints": [
            {
                "checkpointId": m.candidate_id,
                "name": m.name,
                "location": _point(m.coordinate),
                "distanceToRoute": round(m.distance_to_route_m, 1),
                "distanceFromOrigin": round(m.distance_from_origin_m, 1),
            }
            for m in selection.matched_points
        ],
    }
    if user_id is not None:
        payload["user"] = user_id
    return payload


def _point(coordinate) -> Dict[str, float]:
    return {"latitude": coordinate.latitude, "longitude": coordinate.longitude}


class RouteSessionStore:
    """
    HTTP session store.

    Implements the SelectionStore protocol consumed by RouteSelectionController.
    """
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        user_id: Optional[str] = None,
        auth_token: Optional[str] = None,
        timeout: int = 5,
    ):
        self.base_url = (base_url or BASE_URL or "").rstrip("/")
        self.user_id = user_id
        self.auth_token = auth_token
        self.timeout = timeout

        if not self.base_url:
            raise ValueError("Session base URL not set. Please set SESSION_BASE_URL in the .env file.")

    def save(self, selection: RouteSelection) -> None:
        """POST <base>[/<user_id>] with the selection payload."""
        url = f"{self.base_url}/{self.user_id}" if self.user_id else self.base_url
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"

        try:
            response = requests.post(
                url,
                json=selection_to_payload(selection, self.user_id),
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise PersistenceError(f"Failed to save route session: {exc}") from exc

        logger.info("Saved route session for route %s (generation %d)", selection.chosen_route_id, selection.generation)
