# src/headmap_shell/core/managers/config_manager.py
import json
import logging
from typing import Any, Dict, Optional

from headmap_shell.core.utils.path_utils import PathUtils

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off"}


class ConfigManager:
    """
    A singleton class to manage the application's configuration.
    It loads settings from settings.json and allows for in-memory modifications.
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(ConfigManager, cls).__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        self._config: Dict[str, Any] = {}
        self.reset()
        logger.debug("ConfigManager initialized.")

    def get_all(self) -> Dict[str, Any]:
        """Returns the entire current configuration dictionary."""
        return self._config

    def get_nested(self, key_path: str, default: Optional[Any] = None) -> Any:
        """
        Safely retrieves a nested value from the configuration.
        e.g., 'batch.concurrency'.
        """
        value = self._config
        for key in key_path.split('.'):
            if isinstance(value, dict):
                value = value.get(key)
            else:
                return default
        return value if value is not None else default

    def set_nested(self, key_path: str, value: Any) -> bool:
        """
        Sets a nested value in the in-memory configuration. The new value is
        cast to the type of the value it replaces.
        e.g., 'batch.concurrency', '5'
        """
        keys = key_path.split('.')
        d = self._config
        for key in keys[:-1]:
            d = d.setdefault(key, {})
            if not isinstance(d, dict):
                logger.error("Cannot set value: '%s' is not a dictionary.", key)
                return False

        original_value = d.get(keys[-1])
        if isinstance(original_value, dict):
            logger.error("Cannot overwrite section '%s' with a single value.", key_path)
            return False
        if original_value is not None:
            try:
                value = self._cast_like(original_value, value)
            except (ValueError, TypeError):
                logger.warning(
                    "Could not cast new value for '%s' to type %s. Storing as string.",
                    key_path, type(original_value).__name__
                )

        d[keys[-1]] = value
        logger.info("Configuration updated: %s = %s", key_path, value)
        return True

    @staticmethod
    def _cast_like(original: Any, value: Any) -> Any:
        # bool("false") is True, so booleans are parsed explicitly.
        if isinstance(original, bool):
            text = str(value).strip().lower()
            if text in _TRUE_STRINGS:
                return True
            if text in _FALSE_STRINGS:
                return False
            raise ValueError(f"Not a boolean: {value!r}")
        return type(original)(value)

    def reset(self):
        """Resets the in-memory configuration from the settings.json file."""
        config_path = PathUtils.get_settings_file()
        if not config_path.exists():
            logger.warning("settings.json not found at %s. Using empty config.", config_path)
            self._config = {}
            return
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                self._config = json.load(f)
            logger.debug("Configuration has been (re)loaded from settings.json.")
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to load settings.json: %s", e, exc_info=True)
            self._config = {}


# The global singleton instance that the entire application will use.
config_manager = ConfigManager()
