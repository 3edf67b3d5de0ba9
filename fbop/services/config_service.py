"""Device-local configuration: which mode this device runs in.

Persisted as a small JSON file so it survives restarts.
"""

import json
import logging
from pathlib import Path

from fbop.models.config import AppConfig, AppMode, ThemeMode

logger = logging.getLogger(__name__)

KEY_MODE = "mode"
KEY_FAMILY_ID = "family_id"
KEY_CHILD_ID = "child_id"
KEY_LOOKUP_CODE = "lookup_code"
KEY_THEME_MODE = "theme_mode"


class ConfigRepository:
    def __init__(self, path: Path):
        self._path = Path(path)

    def _load(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable config %s: %s", self._path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(data))

    def get_config(self) -> AppConfig:
        data = self._load()
        try:
            mode = AppMode(data.get(KEY_MODE))
        except ValueError:
            mode = AppMode.NOT_CONFIGURED
        return AppConfig(
            mode=mode,
            family_id=data.get(KEY_FAMILY_ID),
            child_id=data.get(KEY_CHILD_ID),
            lookup_code=data.get(KEY_LOOKUP_CODE),
        )

    def set_parent_mode(self, family_id: str) -> None:
        data = self._load()
        data.update({KEY_MODE: AppMode.PARENT.value, KEY_FAMILY_ID: family_id})
        data.pop(KEY_CHILD_ID, None)
        data.pop(KEY_LOOKUP_CODE, None)
        self._save(data)

    def set_kid_mode(self, family_id: str, child_id: str, lookup_code: str) -> None:
        data = self._load()
        data.update({
            KEY_MODE: AppMode.KID.value,
            KEY_FAMILY_ID: family_id,
            KEY_CHILD_ID: child_id,
            KEY_LOOKUP_CODE: lookup_code,
        })
        self._save(data)

    def clear(self) -> None:
        """Forget everything, including the theme."""
        if self._path.exists():
            self._path.unlink()

    def get_theme_mode(self) -> ThemeMode:
        try:
            return ThemeMode(self._load().get(KEY_THEME_MODE))
        except ValueError:
            return ThemeMode.SYSTEM

    def set_theme_mode(self, mode: ThemeMode) -> None:
        data = self._load()
        data[KEY_THEME_MODE] = mode.value
        self._save(data)
