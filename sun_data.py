"""Fetching sunrise, sunset and twilight times from api.sunrise-sunset.org."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional

import pytz
import requests

from location import Coordinates, detect_coordinates_from_ip

LOGGER = logging.getLogger(__name__)

SUNRISE_SUNSET_URL = "https://api.sunrise-sunset.org/json"

TIMESTAMP_FIELDS = (
    "sunrise",
    "sunset",
    "solar_noon",
    "civil_twilight_begin",
    "civil_twilight_end",
    "nautical_twilight_begin",
    "nautical_twilight_end",
    "astronomical_twilight_begin",
    "astronomical_twilight_end",
)


class FetchError(Exception):
    """Raised when sun data could not be retrieved or understood."""


@dataclass(frozen=True)
class SunData:
    """One fetched set of sun timestamps, all timezone aware."""

    sunrise: datetime
    sunset: datetime
    solar_noon: datetime
    day_length_seconds: int
    civil_twilight_begin: datetime
    civil_twilight_end: datetime
    nautical_twilight_begin: datetime
    nautical_twilight_end: datetime
    astronomical_twilight_begin: datetime
    astronomical_twilight_end: datetime
    fetched_at: datetime


class SunriseSunsetService:
    """Thin wrapper around the sunrise-sunset.org JSON API.

    When no coordinates are given, the location is looked up from the
    public IP on every fetch. If that lookup fails the request is sent
    without coordinates and the provider's default location applies.
    """

    def __init__(
        self,
        coordinates: Optional[Coordinates] = None,
        *,
        locate: Optional[Callable[[], Coordinates]] = detect_coordinates_from_ip,
        timeout: int = 10,
    ) -> None:
        self.coordinates = coordinates
        self._locate = locate
        self.timeout = timeout

    def fetch(self) -> SunData:
        params: Dict[str, Any] = {"formatted": 0}
        coordinates = self._resolve_coordinates()
        if coordinates is not None:
            params["lat"] = coordinates.latitude
            params["lng"] = coordinates.longitude

        LOGGER.debug("Requesting sun data with params=%s", params)
        try:
            response = requests.get(SUNRISE_SUNSET_URL, params=params, timeout=self.timeout)
            LOGGER.debug("Sun data response status: %s", response.status_code)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise FetchError("Unable to retrieve sun data") from exc

        if not isinstance(payload, dict) or payload.get("status") != "OK":
            status = payload.get("status") if isinstance(payload, dict) else None
            raise FetchError(f"Invalid response from sunrise-sunset.org: {status}")

        data = self._parse_results(payload.get("results"))
        LOGGER.info("Fetched sun data: sunrise=%s sunset=%s", data.sunrise, data.sunset)
        return data

    def _resolve_coordinates(self) -> Optional[Coordinates]:
        if self.coordinates is not None or self._locate is None:
            return self.coordinates
        try:
            return self._locate()
        except Exception:
            LOGGER.warning("Location lookup failed; requesting sun data without coordinates", exc_info=True)
            return None

    @staticmethod
    def _parse_results(results: Any) -> SunData:
        if not isinstance(results, dict):
            raise FetchError("Sun data payload is missing 'results'")
        try:
            stamps = {name: _parse_timestamp(results[name]) for name in TIMESTAMP_FIELDS}
            day_length = int(results["day_length"])
        except (KeyError, TypeError, ValueError) as exc:
            raise FetchError("Malformed sun data payload") from exc

        if not stamps["sunrise"] < stamps["sunset"]:
            raise FetchError(f"Inconsistent sun data: sunrise {stamps['sunrise']} is not before sunset {stamps['sunset']}")

        return SunData(
            day_length_seconds=day_length,
            fetched_at=datetime.now(pytz.UTC),
            **stamps,
        )


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = pytz.UTC.localize(parsed)
    return parsed.astimezone(pytz.UTC)
