"""Background scheduling of theme recomputation and daily sun data refreshes."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional

import pytz
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.base import BaseTrigger
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from config_store import Config
from day_night import Theme, decide
from shared_state import SharedState
from sun_data import FetchError, SunData, SunriseSunsetService
from theme_applier import ApplyError, ThemeApplier

LOGGER = logging.getLogger(__name__)

TICK_SECONDS = 1


def fires_between(trigger: BaseTrigger, since: datetime, now: datetime) -> bool:
    """Return True if *trigger* has a fire time in the interval ``(since, now]``."""
    next_fire = trigger.get_next_fire_time(None, since + timedelta(microseconds=1))
    return next_fire is not None and next_fire <= now


@dataclass
class Job:
    name: str
    trigger: BaseTrigger
    action: Callable[[], None]
    last_tick: datetime


class ThemeScheduler:
    """Run the hourly theme recompute and the daily sun data refresh.

    A single APScheduler interval job calls :meth:`tick` every second on a
    one-worker pool, and :meth:`tick` runs each registered job whose cron
    trigger fired since the previous tick, in registration order. Commands
    coming from the foreground go through :meth:`set_automatic_switching`
    and :meth:`apply_override`, which only share :class:`SharedState` with
    the jobs.
    """

    def __init__(
        self,
        state: SharedState,
        provider: SunriseSunsetService,
        applier: ThemeApplier,
        timezone: str = "UTC",
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._state = state
        self._provider = provider
        self._applier = applier
        self._tzinfo = pytz.timezone(timezone)
        self._clock = clock or (lambda: datetime.now(self._tzinfo))
        self._fetch_lock = threading.Lock()
        self._jobs: List[Job] = []
        self._scheduler = BackgroundScheduler(
            timezone=self._tzinfo,
            executors={"default": ThreadPoolExecutor(max_workers=1)},
            job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": None},
        )

        self.add_job("hourly_recompute", CronTrigger(minute=5, second=0, timezone=self._tzinfo), self.recompute_theme)
        self.add_job("daily_refresh", CronTrigger(hour=6, minute=0, second=0, timezone=self._tzinfo), self.refresh_sun_data)

    def start(self) -> None:
        if not self._scheduler.running:
            LOGGER.info("Starting background scheduler")
            self._scheduler.add_job(self.tick, trigger=IntervalTrigger(seconds=TICK_SECONDS), id="tick", replace_existing=True)
            self._scheduler.start()

    def shutdown(self) -> None:
        if self._scheduler.running:
            LOGGER.info("Stopping background scheduler")
            self._scheduler.shutdown(wait=False)

    @property
    def running(self) -> bool:
        return bool(self._scheduler.running)

    @property
    def timezone(self) -> str:
        zone = getattr(self._tzinfo, "zone", None)
        return str(zone or self._tzinfo)

    @property
    def job_names(self) -> List[str]:
        return [job.name for job in self._jobs]

    def add_job(self, name: str, trigger: BaseTrigger, action: Callable[[], None]) -> None:
        self._jobs.append(Job(name=name, trigger=trigger, action=action, last_tick=self._clock()))
        LOGGER.debug("Registered job %s with trigger %s", name, trigger)

    def tick(self, now: Optional[datetime] = None) -> List[str]:
        """Run every job due since the previous tick and return their names."""
        now = now or self._clock()
        ran: List[str] = []
        for job in self._jobs:
            due = fires_between(job.trigger, job.last_tick, now)
            job.last_tick = now
            if not due:
                continue
            LOGGER.debug("Running job %s at %s", job.name, now)
            try:
                job.action()
            except Exception:
                LOGGER.exception("Job %s raised an unexpected error", job.name)
            ran.append(job.name)
        return ran

    # -- Recurring jobs ------------------------------------------------------
    def recompute_theme(self) -> None:
        if not self._state.get_config().automatic_switching:
            LOGGER.debug("Automatic switching disabled; skipping theme recompute")
            return
        data = self._state.get_sun_data()
        if data is None:
            LOGGER.debug("No sun data cached yet; skipping theme recompute")
            return
        self._apply_for(data)

    def refresh_sun_data(self) -> None:
        if not self._state.get_config().automatic_switching:
            LOGGER.debug("Automatic switching disabled; skipping sun data refresh")
            return
        try:
            data = self._provider.fetch()
        except FetchError:
            LOGGER.warning("Daily sun data refresh failed; keeping previous data", exc_info=True)
            return
        self._state.set_sun_data(data)

    # -- On-demand commands --------------------------------------------------
    def set_automatic_switching(self, enabled: bool) -> None:
        """Persist the flag, then fetch if needed and apply once when enabling.

        The flag is saved before any fetch, so it stays as requested even when
        the fetch raises :class:`FetchError`.
        """
        self._state.set_config(Config(automatic_switching=enabled))
        if not enabled:
            return

        data = self._state.get_sun_data()
        if data is None:
            data = self._fetch_once()
        self._apply_for(data)

    def apply_override(self, theme: Theme) -> None:
        LOGGER.info("Manual theme override: %s", theme.value)
        self._apply(theme)

    def _fetch_once(self) -> SunData:
        with self._fetch_lock:
            data = self._state.get_sun_data()
            if data is not None:
                return data
            LOGGER.info("Retrieving sun data before first automatic switch")
            data = self._provider.fetch()
            self._state.set_sun_data(data)
            return data

    def _apply_for(self, data: SunData) -> None:
        now = self._clock()
        theme = decide(now, data)
        LOGGER.info("Computed %s theme for %s", theme.value, now)
        self._apply(theme)

    def _apply(self, theme: Theme) -> None:
        try:
            self._applier.apply(theme)
        except ApplyError:
            LOGGER.warning("Failed to apply %s theme", theme.value, exc_info=True)
