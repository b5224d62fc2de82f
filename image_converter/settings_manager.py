from __future__ import annotations

import json
import os
from typing import Any

from .formats import ImageFormat, parse_target
from .logger import get_logger
from .path_utils import abs_dir_str

_logger = get_logger("settings")

_DIR_KEYS = ("last_input_dir", "last_output_dir")


class SettingsManager:
    def __init__(self, settings_path: str):
        self.settings_path = settings_path
        self._settings: dict[str, Any] = {}
        self.load()

    DEFAULTS: dict[str, Any] = {
        "last_input_dir": None,
        "last_output_dir": None,
        "last_target_format": None,
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
                    _logger.warning("settings file is not a JSON object: %s", self.settings_path)
        except (OSError, ValueError) as e:
            _logger.warning("settings load failed: %s", e)
        self._settings = {}

    def save(self) -> None:
        try:
            folder = os.path.dirname(self.settings_path)
            if folder:
                os.makedirs(folder, exist_ok=True)
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
        # Directory keys are stored absolute; a file path is stored as its folder
        if key in _DIR_KEYS and isinstance(value, str) and value:
            value = abs_dir_str(value)
        self._settings[key] = value
        self.save()

    @property
    def data(self) -> dict[str, Any]:
        return self._settings

    def _existing_dir(self, key: str) -> str | None:
        val = self.get(key)
        return val if isinstance(val, str) and os.path.isdir(val) else None

    @property
    def last_input_dir(self) -> str | None:
        return self._existing_dir("last_input_dir")

    @property
    def last_output_dir(self) -> str | None:
        return self._existing_dir("last_output_dir")

    @property
    def last_target_format(self) -> ImageFormat | None:
        val = self.get("last_target_format")
        if not isinstance(val, str):
            return None
        try:
            return parse_target(val)
        except ValueError:
            _logger.warning("saved last_target_format invalid: %s", val)
            return None
