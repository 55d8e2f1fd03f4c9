"""Lock-guarded container for the state shared by the scheduler and commands."""
from __future__ import annotations

import logging
import threading
from typing import Optional

from config_store import Config, ConfigStore
from sun_data import SunData

LOGGER = logging.getLogger(__name__)


class SharedState:
    """Holds the current config and the optional cached sun data.

    Every accessor takes the lock for its own duration only. Both values are
    frozen dataclasses, so callers always work on a snapshot.
    """

    def __init__(self, store: ConfigStore, config: Config, sun_data: Optional[SunData] = None) -> None:
        self._store = store
        self._lock = threading.Lock()
        self._config = config
        self._sun_data = sun_data

    def get_config(self) -> Config:
        with self._lock:
            return self._config

    def set_config(self, config: Config) -> None:
        """Persist *config* and make it current; on a save error nothing changes."""
        with self._lock:
            self._store.save(config)
            self._config = config
        LOGGER.info("Automatic switching set to %s", config.automatic_switching)

    def get_sun_data(self) -> Optional[SunData]:
        with self._lock:
            return self._sun_data

    def set_sun_data(self, data: SunData) -> None:
        with self._lock:
            self._sun_data = data
        LOGGER.debug("Cached sun data fetched at %s", data.fetched_at)
