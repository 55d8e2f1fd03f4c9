from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional

import pytest
import pytz

from config_store import Config, ConfigStore
from day_night import Theme
from shared_state import SharedState
from sun_data import SunData
from theme_applier import ApplyError


def make_sun_data(sunrise_hour: int = 6, sunset_hour: int = 19, day: int = 9) -> SunData:
    base = datetime(2025, 11, day, tzinfo=pytz.UTC)
    sunrise = base + timedelta(hours=sunrise_hour, minutes=12)
    sunset = base + timedelta(hours=sunset_hour, minutes=45)
    if sunset <= sunrise:
        sunset += timedelta(days=1)
    return SunData(
        sunrise=sunrise,
        sunset=sunset,
        solar_noon=sunrise + (sunset - sunrise) / 2,
        day_length_seconds=int((sunset - sunrise).total_seconds()),
        civil_twilight_begin=sunrise - timedelta(minutes=30),
        civil_twilight_end=sunset + timedelta(minutes=30),
        nautical_twilight_begin=sunrise - timedelta(minutes=60),
        nautical_twilight_end=sunset + timedelta(minutes=60),
        astronomical_twilight_begin=sunrise - timedelta(minutes=90),
        astronomical_twilight_end=sunset + timedelta(minutes=90),
        fetched_at=base,
    )


class FakeProvider:
    def __init__(self, results: Optional[list] = None) -> None:
        self.results = list(results or [])
        self.calls = 0

    def fetch(self) -> SunData:
        self.calls += 1
        result = self.results.pop(0) if self.results else make_sun_data()
        if isinstance(result, Exception):
            raise result
        return result


class RecordingApplier:
    def __init__(self, fail: bool = False) -> None:
        self.applied: List[Theme] = []
        self.fail = fail

    def apply(self, theme: Theme) -> None:
        self.applied.append(theme)
        if self.fail:
            raise ApplyError("osascript missing")


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def store(tmp_path):
    return ConfigStore(tmp_path / "settings.json")


@pytest.fixture
def state(store):
    return SharedState(store, Config(automatic_switching=True))


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def applier():
    return RecordingApplier()


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 11, 9, 20, 4, 59, tzinfo=pytz.UTC))
