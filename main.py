"""Entry point for the sunset/sunrise theme switcher."""
from __future__ import annotations

import argparse
import logging
import os
import sys
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytz
from tzlocal import get_localzone_name

from config_store import SETTINGS_FILENAME, Config, ConfigLoadError, ConfigSaveError, ConfigStore
from day_night import Theme
from location import build_coordinates
from scheduler import ThemeScheduler
from shared_state import SharedState
from sun_data import FetchError, SunriseSunsetService
from theme_applier import ThemeApplier, default_theme_applier

APP_ROOT = Path(__file__).parent
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

LOGGER = logging.getLogger(__name__)


def settings_path() -> Path:
    """Return the settings file location, honouring the ``APP_DIR`` variable."""
    return Path(os.environ.get("APP_DIR", str(APP_ROOT))) / SETTINGS_FILENAME


def system_timezone() -> str:
    try:
        tz_name = get_localzone_name()
        pytz.timezone(tz_name)
        LOGGER.debug("Resolved system timezone: %s", tz_name)
        return tz_name
    except Exception:
        LOGGER.warning("Falling back to UTC for system timezone resolution")
        return "UTC"


class SunsetThemeApp:
    """Wires the shared state, the scheduler and the OS collaborators together."""

    def __init__(
        self,
        store: ConfigStore,
        provider: SunriseSunsetService,
        applier: ThemeApplier,
        timezone: Optional[str] = None,
    ) -> None:
        self.state = SharedState(store, store.load_or_create())
        self.scheduler = ThemeScheduler(
            self.state,
            provider,
            applier,
            timezone=timezone or system_timezone(),
        )
        LOGGER.debug("Initial config: %s", self.state.get_config())

    # -- Commands ------------------------------------------------------------
    def get_config(self) -> Config:
        return self.state.get_config()

    def set_automatic_switching(self, enabled: bool) -> None:
        self.scheduler.set_automatic_switching(enabled)

    def apply_theme_override(self, theme: Theme) -> None:
        self.scheduler.apply_override(theme)

    def status(self) -> Dict[str, Any]:
        data = self.state.get_sun_data()
        return {
            "automatic_switching": self.get_config().automatic_switching,
            "timezone": self.scheduler.timezone,
            "sunrise": data.sunrise.isoformat() if data else None,
            "sunset": data.sunset.isoformat() if data else None,
            "fetched_at": data.fetched_at.isoformat() if data else None,
        }

    # -- Lifecycle -----------------------------------------------------------
    def start(self) -> None:
        self.scheduler.start()

    def shutdown(self) -> None:
        self.scheduler.shutdown()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Switch the OS theme at sunrise and sunset.")
    parser.add_argument(
        "command",
        nargs="?",
        default="run",
        choices=["run", "status", "enable", "disable", "light", "dark"],
        help="run the scheduler (default), show status, toggle automatic switching or force a theme",
    )
    parser.add_argument("--settings", type=Path, default=None, help="path of the settings JSON file")
    parser.add_argument("--timezone", default=None, help="timezone used for the job schedule")
    parser.add_argument("--latitude", type=float, default=None)
    parser.add_argument("--longitude", type=float, default=None)
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    return parser


def run_command(app: SunsetThemeApp, command: str, stop_event: Optional[threading.Event] = None) -> int:
    try:
        if command == "status":
            for key, value in app.status().items():
                print(f"{key}: {value}")
        elif command in ("enable", "disable"):
            app.set_automatic_switching(command == "enable")
        elif command in ("light", "dark"):
            app.apply_theme_override(Theme(command))
        else:
            _run_forever(app, stop_event or threading.Event())
    except FetchError:
        LOGGER.error("Unable to fetch sun data; automatic switching stays enabled", exc_info=True)
        return 1
    except ConfigSaveError:
        LOGGER.error("The setting could not be saved", exc_info=True)
        return 1
    return 0


def _run_forever(app: SunsetThemeApp, stop_event: threading.Event) -> None:
    config = app.get_config()
    if config.automatic_switching:
        try:
            app.set_automatic_switching(True)
        except FetchError:
            LOGGER.warning("Initial sun data fetch failed; waiting for the daily refresh", exc_info=True)
    app.start()
    try:
        while not stop_event.wait(1.0):
            pass
    except KeyboardInterrupt:
        LOGGER.info("Interrupted; shutting down")
    finally:
        app.shutdown()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format=LOG_FORMAT)
    # skipped ticks while a slow fetch holds the single worker
    logging.getLogger("apscheduler.executors.default").setLevel(logging.ERROR)
    logging.getLogger("apscheduler.scheduler").setLevel(logging.ERROR)

    store = ConfigStore(args.settings or settings_path())
    provider = SunriseSunsetService(build_coordinates(args.latitude, args.longitude))
    try:
        app = SunsetThemeApp(store, provider, default_theme_applier(), timezone=args.timezone)
    except ConfigLoadError:
        LOGGER.error("Could not read the settings file", exc_info=True)
        return 1
    except ConfigSaveError:
        LOGGER.error("Could not create the default settings file", exc_info=True)
        return 1
    return run_command(app, args.command)


if __name__ == "__main__":
    sys.exit(main())
