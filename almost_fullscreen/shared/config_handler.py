import dataclasses
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import orjson

from almost_fullscreen.fit.geometry import Padding, round_half_up
from almost_fullscreen.fit.policy import (
    DEFAULT_KEYBINDING,
    DEFAULT_PADDING,
    FitConfig,
    WorkaroundPolicy,
)
from almost_fullscreen.shared.path_handler import PathHandler

CONFIG_FILE_NAME = "config.json"

PADDING_SIDES = {"t": "top", "b": "bottom", "l": "left", "r": "right"}

# config key -> (policy field, accepted type)
WORKAROUND_KEYS = {
    "settleDelay": ("settle_delay_ms", int),
    "pixelShrinkFix": ("pixel_shrink_fix", bool),
    "decorationOffset": ("decoration_offset", bool),
    "animate": ("animate", bool),
    "animationDuration": ("animation_duration_ms", int),
    "animationMode": ("animation_mode", str),
    "retryDelays": ("retry_delays_ms", list),
    "minSize": ("min_size", int),
    "requireActor": ("require_actor", bool),
}


class ConfigError(ValueError):
    """A configuration value that cannot be used."""


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _pixels(value: Any, name: str) -> int:
    if not _is_number(value) or value < 0:
        raise ConfigError(f"{name} must be a non-negative number, got {value!r}")
    return round_half_up(value)


class ConfigHandler:
    """
    Loads config.json into a FitConfig.

    Every failure, from a missing file to a wrongly typed field, falls back
    to the built-in default for the affected setting and is logged. Loading
    never raises.
    """

    def __init__(self, config_file: Optional[Union[str, Path]] = None, logger=None):
        """
        Args:
            config_file: Explicit configuration file. When omitted, the user's
                XDG config directory is searched first, then the directory the
                package is installed in.
            logger: Logger to report fallbacks on; defaults to this module's.
        """
        self.logger = logger or logging.getLogger(__name__)
        self.path_handler = PathHandler()
        self.config_file = Path(config_file) if config_file else None

    def candidate_paths(self) -> List[Path]:
        if self.config_file is not None:
            return [self.config_file]
        return [
            self.path_handler.get_config_dir() / CONFIG_FILE_NAME,
            self.path_handler.get_install_dir() / CONFIG_FILE_NAME,
        ]

    def find_config_file(self) -> Optional[Path]:
        for path in self.candidate_paths():
            if path.is_file():
                return path
        return None

    def read_raw(self) -> Dict[str, Any]:
        """
        Returns the parsed JSON object, or an empty dict when there is no
        usable file.
        """
        file_path = self.find_config_file()
        if file_path is None:
            self.logger.warning(
                f"No {CONFIG_FILE_NAME} found in {[str(p) for p in self.candidate_paths()]}. "
                "Using default configuration."
            )
            return {}
        try:
            with open(file_path, "rb") as f:
                data = orjson.loads(f.read())
        except (OSError, orjson.JSONDecodeError) as e:
            self.logger.error(
                f"Failed to load {file_path}: {e}. Using default configuration."
            )
            return {}
        if not isinstance(data, dict):
            self.logger.error(
                f"{file_path} must contain a JSON object, got {type(data).__name__}. "
                "Using default configuration."
            )
            return {}
        self.logger.debug(f"Loaded configuration from {file_path}")
        return data

    def load_config(self) -> FitConfig:
        try:
            raw = self.read_raw()
        except Exception as e:
            self.logger.error(f"Unexpected error reading configuration: {e}")
            raw = {}
        return FitConfig(
            padding=self._setting(
                raw, "padding", self.parse_padding, Padding.uniform(DEFAULT_PADDING)
            ),
            keybinding=self._setting(
                raw, "keybinding", self.parse_keybinding, DEFAULT_KEYBINDING
            ),
            ignore_windows=FitConfig.normalize_ignore_list(
                self._setting(raw, "ignoreWindows", self.parse_ignore_windows, [])
            ),
            policy=self.parse_workarounds(raw.get("workarounds")),
        )

    def _setting(self, raw: Dict[str, Any], key: str, parse, default):
        if key not in raw:
            return default
        try:
            return parse(raw[key])
        except ConfigError as e:
            self.logger.error(f"Invalid '{key}' setting: {e}. Using default.")
            return default

    @staticmethod
    def parse_padding(value: Any) -> Padding:
        """
        Accepts a number for equal padding on every side, or an object with
        any of the keys "t", "b", "l" and "r". Omitted sides get the default.
        """
        if _is_number(value):
            return Padding.uniform(_pixels(value, "padding"))
        if not isinstance(value, dict):
            raise ConfigError(f"padding must be a number or an object, got {value!r}")
        sides = {}
        for key, side in PADDING_SIDES.items():
            sides[side] = _pixels(value.get(key, DEFAULT_PADDING), f"padding.{key}")
        return Padding(**sides)

    @staticmethod
    def parse_keybinding(value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ConfigError(f"keybinding must be a non-empty string, got {value!r}")
        return value.strip()

    def parse_ignore_windows(self, value: Any) -> List[str]:
        if not isinstance(value, list):
            raise ConfigError(f"ignoreWindows must be a list, got {value!r}")
        classes = []
        for item in value:
            if isinstance(item, str) and item:
                classes.append(item)
            else:
                self.logger.warning(f"Skipping invalid ignoreWindows entry: {item!r}")
        return classes

    def parse_workarounds(self, value: Any) -> WorkaroundPolicy:
        policy = WorkaroundPolicy()
        if value is None:
            return policy
        if not isinstance(value, dict):
            self.logger.error(
                f"Invalid 'workarounds' setting: expected an object, got {value!r}. "
                "Using defaults."
            )
            return policy
        overrides: Dict[str, Any] = {}
        for key, item in value.items():
            if key not in WORKAROUND_KEYS:
                self.logger.warning(f"Unknown workaround '{key}' ignored.")
                continue
            field_name, expected = WORKAROUND_KEYS[key]
            try:
                overrides[field_name] = self._workaround_value(key, item, expected)
            except ConfigError as e:
                self.logger.error(f"Invalid workaround '{key}': {e}. Using default.")
        if overrides.get("min_size") == 0:
            self.logger.error("Invalid workaround 'minSize': must be positive.")
            del overrides["min_size"]
        return dataclasses.replace(policy, **overrides)

    @staticmethod
    def _workaround_value(key: str, value: Any, expected: type) -> Any:
        if expected is bool:
            if not isinstance(value, bool):
                raise ConfigError(f"expected true or false, got {value!r}")
            return value
        if expected is int:
            return _pixels(value, key)
        if expected is list:
            if not isinstance(value, list):
                raise ConfigError(f"expected a list of delays, got {value!r}")
            delays: Tuple[int, ...] = tuple(_pixels(v, key) for v in value)
            return delays
        if not isinstance(value, str) or not value:
            raise ConfigError(f"expected a string, got {value!r}")
        return value
