"""
Configuration management for AmbientNoiseLoop.

Settings live in an INI file with four sections:

    [DEFAULT]   sample_rate, duration_seconds
    [NOISE]     frequencies (comma separated), seed (empty for a random one)
    [CACHE]     cache_file, cache_key, publish_dir
    [PLAYBACK]  loop, autoplay, yield_interval

Anything missing from the file keeps its built-in default.
"""

import os
import configparser
import logging
from typing import Any, Callable, List, Optional

from models.constants import Constants, CacheConstants, PerformanceConstants

logger = logging.getLogger(Constants.LOGGER_NAME)

_TRUE_STRINGS = ('true', 'yes', '1', 'y', 'on')


class ConfigManager:
    """INI-backed settings with typed accessors that fall back to defaults."""

    _instance = None

    @classmethod
    def get_instance(cls, config_file: Optional[str] = None) -> "ConfigManager":
        """Return the shared configuration, loading config_file into it if given."""
        if cls._instance is None:
            cls._instance = cls(config_file)
        elif config_file:
            cls._instance.load_config(config_file)
        return cls._instance

    @classmethod
    def reset_instance(cls):
        """Drop the shared configuration so the next access starts from defaults."""
        cls._instance = None

    def __init__(self, config_file: Optional[str] = None):
        self.config = configparser.ConfigParser()
        self._set_defaults()

        if config_file:
            self.load_config(config_file)

    def _set_defaults(self):
        self.config.read_dict({
            "DEFAULT": {
                "sample_rate": str(Constants.DEFAULT_SAMPLE_RATE),
                "duration_seconds": str(Constants.DEFAULT_DURATION_SECONDS),
            },
            "NOISE": {
                "frequencies": ", ".join(str(f) for f in Constants.DEFAULT_FREQUENCIES_HZ),
                "seed": "",
            },
            "CACHE": {
                "cache_file": CacheConstants.DEFAULT_CACHE_FILE,
                "cache_key": CacheConstants.CACHE_KEY,
                "publish_dir": CacheConstants.DEFAULT_PUBLISH_DIR,
            },
            "PLAYBACK": {
                "loop": "true",
                "autoplay": "true",
                "yield_interval": str(PerformanceConstants.DEFAULT_YIELD_INTERVAL_SECONDS),
            },
        })

    def load_config(self, config_file: str) -> bool:
        """
        Merge settings from an INI file over the current ones.

        Returns:
            True if the file was read
        """
        if not os.path.exists(config_file):
            logger.warning(f"Configuration file {config_file} not found. Using defaults.")
            return False

        logger.info(f"Loading configuration from {config_file}")
        try:
            self.config.read(config_file)
        except configparser.Error as e:
            logger.error(f"Error loading configuration: {e}")
            return False
        return True

    def _get(self, section: str, key: str, default: Any, convert: Callable[[str], Any]) -> Any:
        try:
            value = self.config.get(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError):
            return default
        if value.strip() == "":
            return default
        try:
            return convert(value)
        except ValueError:
            logger.warning(f"Invalid value for [{section}] {key}: {value!r}, using {default!r}")
            return default

    def get_int(self, section, key, default=None):
        return self._get(section, key, default, int)

    def get_float(self, section, key, default=None):
        return self._get(section, key, default, float)

    def get_bool(self, section, key, default=None):
        return self._get(section, key, default, lambda v: v.strip().lower() in _TRUE_STRINGS)

    def get_str(self, section, key, default=None):
        return self._get(section, key, default, str.strip)

    def get_path(self, section, key, default=None):
        """Get a filesystem path with the user directory expanded."""
        value = self.get_str(section, key, default)
        return os.path.expanduser(value) if value else value

    def get_list(self, section, key, default=None, item_type=str) -> List[Any]:
        """Get a comma-separated list; empty items are skipped."""
        def convert(value):
            return [item_type(item.strip()) for item in value.split(',') if item.strip()]

        result = self._get(section, key, None, convert)
        if result is None:
            return list(default) if default is not None else []
        return result

    def set(self, section, key, value):
        """Set a value, creating the section if needed."""
        if section != 'DEFAULT' and not self.config.has_section(section):
            self.config.add_section(section)
        self.config.set(section, key, str(value))

    def save(self, config_file):
        """Write the current settings to an INI file."""
        os.makedirs(os.path.dirname(config_file) or '.', exist_ok=True)
        with open(config_file, 'w') as f:
            self.config.write(f)
        logger.info(f"Configuration saved to {config_file}")
