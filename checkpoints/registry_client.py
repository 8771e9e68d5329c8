#Purpose: The delivery-point registry "adapter/client".
#Sole responsibility: fetch admin-defined delivery points over HTTP and return DeliveryPointCandidate objects.
#Transport failures become RegistryError; an out-of-range point raises InvalidCoordinate.
#It should not contain matching rules.

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

import requests
from dotenv import load_dotenv

from routing.errors import RegistryError
from routing.models import Coordinate

from .models import DeliveryPointCandidate

# Example in .env:
# REGISTRY_BASE_URL=http://localhost:5000/api
load_dotenv()
BASE_URL = os.getenv("REGISTRY_BASE_URL")


class DeliveryPointRegistryClient:
    """
    Registry adapter / client.

    Implements the DeliveryPointRegistry protocol consumed by RouteSelectionController.
    """
    def __init__(self, base_url: Optional[str] = None, timeout: int = 5, auth_token: Optional[str] = None):
        self.base_url = (base_url or BASE_URL or "").rstrip("/")
        self.timeout = timeout
        self.auth_token = auth_token

        if not self.base_url:
            raise ValueError("Registry base URL not set. Please set REGISTRY_BASE_URL in the .env file.")

    def list_candidates(self) -> List[DeliveryPointCandidate]:
        """
        GET <base>/delivery-points

        Accepts either a bare JSON list or {"deliveryPoints": [...]}.
        """
        headers = {"Accept": "application/json"}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"

        try:
            response = requests.get(f"{self.base_url}/delivery-points", headers=headers, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as exc:
            raise RegistryError(f"Delivery point request failed: {exc}") from exc
        except ValueError as exc:
            raise RegistryError("Delivery point response is not valid JSON") from exc

        records = data.get("deliveryPoints", []) if isinstance(data, dict) else data
        if not isinstance(records, list):
            raise RegistryError("Delivery point response is not a list")

        return [parse_candidate(record) for record in records]


def parse_candidate(record: Dict[str, Any]) -> DeliveryPointCandidate:
    """Normalize one registry record (Mongo-style `_id` or plain `id`)."""
    try:
        candidate_id = str(record.get("_id", record.get("id")))
        latitude = float(record["latitude"])
        longitude = float(record["longitude"])
    except (KeyError, TypeError, ValueError) as exc:
        raise RegistryError(f"Malformed delivery point record: {record!r}") from exc

    if candidate_id == "None":
        raise RegistryError(f"Delivery point record has no id: {record!r}")

    return DeliveryPointCandidate(
        id=candidate_id,
        name=record.get("name", ""),
        coordinate=Coordinate(latitude=latitude, longitude=longitude),
        address=record.get("address", ""),
    )
