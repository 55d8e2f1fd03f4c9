"""Persistence of the user's automatic switching preference."""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path

LOGGER = logging.getLogger(__name__)

SETTINGS_FILENAME = "settings.json"


class ConfigNotFoundError(Exception):
    """Raised when no settings file has been written yet."""


class ConfigLoadError(Exception):
    """Raised when an existing settings file could not be read."""


class ConfigSaveError(Exception):
    """Raised when the settings could not be written to disk."""


@dataclass(frozen=True)
class Config:
    automatic_switching: bool = True


class ConfigStore:
    """Reads and writes :class:`Config` as a small JSON document."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> Config:
        if not self.path.exists():
            raise ConfigNotFoundError(f"No settings file at {self.path}")
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except OSError as exc:
            raise ConfigLoadError(f"Could not read settings from {self.path}") from exc
        LOGGER.debug("Loaded settings from %s: %s", self.path, payload)
        if not isinstance(payload, dict) or not isinstance(payload.get("automatic_switching"), bool):
            raise ValueError(f"Malformed settings in {self.path}: {payload!r}")
        return Config(automatic_switching=payload["automatic_switching"])

    def save(self, config: Config) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as handle:
                json.dump(asdict(config), handle, indent=2)
        except OSError as exc:
            raise ConfigSaveError(f"Could not write settings to {self.path}") from exc
        LOGGER.debug("Saved settings to %s: %s", self.path, config)

    def load_or_create(self) -> Config:
        """Return the stored config, writing the default one on first run."""
        try:
            return self.load()
        except ConfigNotFoundError:
            LOGGER.info("No settings found at %s; creating defaults", self.path)
        except ValueError:
            LOGGER.warning("Settings at %s are unreadable; resetting to defaults", self.path, exc_info=True)

        config = Config()
        self.save(config)
        return config
