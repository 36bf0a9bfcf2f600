from __future__ import annotations

import json
import os
from typing import Any

from .logger import get_logger
from .path_utils import abs_dir_str

_logger = get_logger("settings")

# Keys whose values are stored as normalized absolute directories.
_DIR_KEYS = {"last_open_dir"}


class SettingsManager:
    def __init__(self, settings_path: str):
        self.settings_path = settings_path
        self._settings: dict[str, Any] = {}
        self.load()

    DEFAULTS: dict[str, Any] = {
        "default_quality": 95,
        "resize_max_width": 1920,
        "resize_max_height": 1920,
        "double_press_ms": 400,
        "file_check_interval_ms": 3000,
    }

    def load(self) -> None:
        try:
            if os.path.exists(self.settings_path):
                with open(self.settings_path, encoding="utf-8") as f:
                    data = json.load(f)
                    if isinstance(data, dict):
                        self._settings = data
                        _logger.debug("settings loaded: %s", self.settings_path)
                        return
        except (OSError, ValueError) as e:
            _logger.warning("settings load failed: %s", e)
        self._settings = {}

    def save(self) -> None:
        try:
            parent = os.path.dirname(self.settings_path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(self.settings_path, "w", encoding="utf-8") as f:
                json.dump(self._settings, f, ensure_ascii=False, indent=2)
            _logger.debug("settings saved: %s", self.settings_path)
        except OSError as e:
            _logger.error("settings save failed: %s", e)

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._settings:
            return self._settings[key]
        if default is not None:
            return default
        return self.DEFAULTS.get(key)

    def has(self, key: str) -> bool:
        return key in self._settings

    def set(self, key: str, value: Any) -> None:
        if key in _DIR_KEYS and isinstance(value, str) and value:
            value = abs_dir_str(value)
        self._settings[key] = value
        self.save()

    @property
    def data(self) -> dict[str, Any]:
        return self._settings

    @property
    def default_quality(self) -> int:
        q = int(self.get("default_quality"))
        return max(1, min(100, q))

    @property
    def resize_limits(self) -> tuple[int, int]:
        return int(self.get("resize_max_width")), int(self.get("resize_max_height"))

    @property
    def double_press_seconds(self) -> float:
        return max(0, int(self.get("double_press_ms"))) / 1000.0

    @property
    def last_open_dir(self) -> str | None:
        val = self.get("last_open_dir")
        return val if isinstance(val, str) and os.path.isdir(val) else None
