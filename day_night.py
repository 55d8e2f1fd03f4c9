"""Day/night decision from cached sun data."""
from __future__ import annotations

from datetime import datetime
from enum import Enum

from sun_data import SunData


class Theme(Enum):
    LIGHT = "light"
    DARK = "dark"


def decide(now: datetime, data: SunData) -> Theme:
    """Return the theme that should be active at *now*.

    Only hours are compared, read in the timezone the provider reported
    (UTC). A sunset at 19:45 and a current time of 19:10 share hour 19, so
    the switch can happen up to an hour early or late around the boundaries.
    """
    hour = now.astimezone(data.sunset.tzinfo).hour
    sunset_hour = data.sunset.hour
    sunrise_hour = data.sunrise.astimezone(data.sunset.tzinfo).hour

    if sunset_hour > sunrise_hour:
        # night spans midnight
        is_night = hour >= sunset_hour or hour <= sunrise_hour
    else:
        is_night = sunset_hour <= hour <= sunrise_hour
    return Theme.DARK if is_night else Theme.LIGHT
