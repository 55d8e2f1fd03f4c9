"""Approximate location lookup used to ask for local sunrise and sunset."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import requests

LOGGER = logging.getLogger(__name__)

IPINFO_URL = "https://ipinfo.io/json"


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


def detect_coordinates_from_ip(timeout: int = 5) -> Coordinates:
    """Attempt to detect approximate coordinates using the ipinfo.io service."""
    LOGGER.debug("Requesting IP-based location from ipinfo.io (timeout=%s)", timeout)
    response = requests.get(IPINFO_URL, timeout=timeout)
    LOGGER.debug("ipinfo.io response status: %s", response.status_code)
    response.raise_for_status()
    payload = response.json()

    loc_token = payload.get("loc")
    if not loc_token:
        raise ValueError("ipinfo.io payload has no 'loc' field")
    latitude, longitude = map(float, str(loc_token).split(","))
    LOGGER.debug(
        "Parsed coordinates from ipinfo.io: lat=%s lon=%s (city=%s)",
        latitude,
        longitude,
        payload.get("city", ""),
    )
    return Coordinates(latitude=latitude, longitude=longitude)


def build_coordinates(latitude: Optional[float], longitude: Optional[float]) -> Optional[Coordinates]:
    """Create coordinates only when both components are present."""
    if latitude is None or longitude is None:
        return None
    return Coordinates(latitude=float(latitude), longitude=float(longitude))
