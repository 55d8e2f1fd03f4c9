from datetime import datetime

import pytest
import pytz

from conftest import make_sun_data
from day_night import Theme, decide


def at_hour(hour: int, minute: int = 0) -> datetime:
    return datetime(2025, 11, 9, hour, minute, tzinfo=pytz.UTC)


@pytest.mark.parametrize(
    "hour, expected",
    [
        (20, Theme.DARK),
        (12, Theme.LIGHT),
        (6, Theme.DARK),
        (19, Theme.DARK),
        (7, Theme.LIGHT),
        (0, Theme.DARK),
    ],
)
def test_decide_with_sunset_19_and_sunrise_6(hour, expected):
    data = make_sun_data(sunrise_hour=6, sunset_hour=19)
    assert decide(at_hour(hour), data) is expected


def test_decide_compares_hours_only():
    # Known approximation: sunset is 19:45 but 19:10 already counts as night.
    data = make_sun_data(sunrise_hour=6, sunset_hour=19)
    assert data.sunset.minute == 45
    assert decide(at_hour(19, 10), data) is Theme.DARK


def test_decide_when_night_does_not_wrap_midnight_in_utc():
    # Western longitudes: sunrise 14 UTC, sunset 2 UTC the next day.
    data = make_sun_data(sunrise_hour=14, sunset_hour=2)
    assert decide(at_hour(3), data) is Theme.DARK
    assert decide(at_hour(14), data) is Theme.DARK
    assert decide(at_hour(15), data) is Theme.LIGHT
    assert decide(at_hour(1), data) is Theme.LIGHT


def test_decide_reads_now_in_provider_timezone():
    data = make_sun_data(sunrise_hour=6, sunset_hour=19)
    berlin = pytz.timezone("Europe/Berlin")
    # 13:00 in Berlin in November is 12:00 UTC.
    now = berlin.localize(datetime(2025, 11, 9, 13, 0))
    assert decide(now, data) is Theme.LIGHT
    # 20:30 in Berlin is 19:30 UTC.
    assert decide(berlin.localize(datetime(2025, 11, 9, 20, 30)), data) is Theme.DARK


def test_decide_is_deterministic():
    data = make_sun_data()
    results = {decide(at_hour(h), data) for h in range(24) for _ in range(3)}
    assert results <= {Theme.LIGHT, Theme.DARK}
    assert [decide(at_hour(h), data) for h in range(24)] == [decide(at_hour(h), data) for h in range(24)]
