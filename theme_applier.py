"""Platform specific switching of the OS light/dark appearance."""
from __future__ import annotations

import logging
import subprocess
import sys
from typing import List, Protocol, runtime_checkable

try:  # pragma: no cover - platform specific import
    import winreg
except ImportError:  # pragma: no cover - non-Windows fallback
    winreg = None  # type: ignore

from day_night import Theme

LOGGER = logging.getLogger(__name__)

PERSONALIZE_KEY = r"Software\Microsoft\Windows\CurrentVersion\Themes\Personalize"


class ApplyError(Exception):
    """Raised when the OS appearance could not be changed."""


@runtime_checkable
class ThemeApplier(Protocol):
    """Switches the OS appearance; implementations must not block for long."""

    def apply(self, theme: Theme) -> None:
        """Apply *theme*, raising :class:`ApplyError` on failure."""


def _spawn(command: List[str]) -> None:
    """Start *command* without waiting for it to finish."""
    LOGGER.debug("Spawning %s", command)
    try:
        subprocess.Popen(command, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
    except OSError as exc:
        raise ApplyError(f"Could not run {command[0]}") from exc


class MacOSThemeApplier:
    """Toggles dark mode through System Events using JavaScript for Automation."""

    def apply(self, theme: Theme) -> None:
        dark = "true" if theme is Theme.DARK else "false"
        script = f"Application('System Events').appearancePreferences.darkMode = {dark}"
        LOGGER.info("Switching macOS appearance to %s", theme.value)
        _spawn(["osascript", "-l", "JavaScript", "-e", script])


class GnomeThemeApplier:
    """Sets the GNOME desktop color scheme with gsettings."""

    def apply(self, theme: Theme) -> None:
        scheme = "prefer-dark" if theme is Theme.DARK else "default"
        LOGGER.info("Switching GNOME color scheme to %s", scheme)
        _spawn(["gsettings", "set", "org.gnome.desktop.interface", "color-scheme", scheme])


class WindowsThemeApplier:
    """Writes the personalization registry values for apps and the system."""

    def apply(self, theme: Theme) -> None:
        if winreg is None:
            raise ApplyError("Windows registry is not available on this platform")
        value = 0 if theme is Theme.DARK else 1
        LOGGER.info("Switching Windows appearance to %s", theme.value)
        try:
            with winreg.OpenKey(winreg.HKEY_CURRENT_USER, PERSONALIZE_KEY, 0, winreg.KEY_SET_VALUE) as key:
                winreg.SetValueEx(key, "AppsUseLightTheme", 0, winreg.REG_DWORD, value)
                winreg.SetValueEx(key, "SystemUsesLightTheme", 0, winreg.REG_DWORD, value)
        except OSError as exc:
            raise ApplyError("Could not update the Windows personalization settings") from exc


def default_theme_applier(platform: str = sys.platform) -> ThemeApplier:
    if platform == "darwin":
        return MacOSThemeApplier()
    if platform.startswith("win"):
        return WindowsThemeApplier()
    return GnomeThemeApplier()
