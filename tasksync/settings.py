"""Persisted user settings (theme, dark mode, API key)."""

import logging
import sqlite3

from .cache import LocalStore

logger = logging.getLogger(__name__)

THEME_NORMAL = "normal"
THEME_CHRISTMAS = "christmas"

KEY_THEME_MODE = "theme_mode"
KEY_CHRISTMAS_ENABLED = "christmas_enabled"
KEY_DARK_MODE = "dark_mode"
KEY_API_KEY = "api_key"


class SettingsStore:
    """Small settings store: loaded once at init, saved on every change."""

    def __init__(self, store: LocalStore, default_api_key: str = ""):
        """Initialize and load settings.

        Args:
            store: Key-value store holding the settings.
            default_api_key: API key used when none has been stored.
        """
        self.store = store
        self.theme_mode = THEME_NORMAL
        self.christmas_enabled = False
        self.dark_mode = False
        self.api_key = default_api_key
        self._load()

    def _read(self, key: str) -> str | None:
        try:
            return self.store.get(key)
        except (OSError, sqlite3.Error) as e:
            logger.warning(f"Could not read setting {key}: {e}")
            return None

    def _write(self, key: str, value: str) -> None:
        try:
            self.store.set(key, value)
        except (OSError, sqlite3.Error) as e:
            logger.warning(f"Could not save setting {key}: {e}")

    def _load(self) -> None:
        theme = self._read(KEY_THEME_MODE)
        if theme in (THEME_NORMAL, THEME_CHRISTMAS):
            self.theme_mode = theme
        self.christmas_enabled = self._read(KEY_CHRISTMAS_ENABLED) == "true"
        self.dark_mode = self._read(KEY_DARK_MODE) == "true"
        self.api_key = self._read(KEY_API_KEY) or self.api_key
        self._revert_theme()

    def _revert_theme(self) -> None:
        """The seasonal theme cannot stay active once it is disabled."""
        if not self.christmas_enabled and self.theme_mode == THEME_CHRISTMAS:
            self.theme_mode = THEME_NORMAL
            self._write(KEY_THEME_MODE, self.theme_mode)

    def toggle_theme_mode(self) -> str:
        """Switch between the normal and seasonal theme.

        Returns:
            The theme mode after the call.
        """
        if not self.christmas_enabled and self.theme_mode == THEME_NORMAL:
            return self.theme_mode
        self.theme_mode = THEME_CHRISTMAS if self.theme_mode == THEME_NORMAL else THEME_NORMAL
        self._write(KEY_THEME_MODE, self.theme_mode)
        return self.theme_mode

    def set_christmas_enabled(self, enabled: bool) -> None:
        self.christmas_enabled = enabled
        self._write(KEY_CHRISTMAS_ENABLED, "true" if enabled else "false")
        self._revert_theme()

    def toggle_dark_mode(self) -> bool:
        self.dark_mode = not self.dark_mode
        self._write(KEY_DARK_MODE, "true" if self.dark_mode else "false")
        return self.dark_mode

    def set_api_key(self, key: str) -> None:
        self.api_key = key
        if key:
            self._write(KEY_API_KEY, key)

    def to_dict(self) -> dict:
        """Current settings for display. The API key is masked."""
        return {
            "theme_mode": self.theme_mode,
            "christmas_enabled": self.christmas_enabled,
            "dark_mode": self.dark_mode,
            "api_key_set": bool(self.api_key),
        }
