"""
Manages locating the storage directory and loading the optional INI configuration.
"""

import configparser
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ppkgmgr.exceptions import ConfigurationError
from ppkgmgr.models.config import AppConfig

log = logging.getLogger(__name__)

STORAGE_ENV = "PPKGMGR_HOME"


def get_storage_dir() -> Path:
    """Returns ``$PPKGMGR_HOME`` if set, otherwise ``~/.ppkgmgr``."""
    if override := os.environ.get(STORAGE_ENV):
        return Path(override)
    try:
        home = Path.home()
    except RuntimeError as e:
        raise ConfigurationError(f"get user home: {e}") from e
    return home / ".ppkgmgr"


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, storage_dir: Path | None = None):
        self.storage_dir = storage_dir if storage_dir is not None else get_storage_dir()
        self.config_file_path = self.storage_dir / "config.ini"
        self._parser = configparser.ConfigParser()

    def load_config(self, overrides: dict[str, Any] | None = None) -> AppConfig:
        """
        Loads configuration from the INI file, applies overrides, and validates it.

        A missing config file is not an error; every setting has a default.

        Raises:
            ConfigurationError: If the file cannot be parsed or validation fails.
        """
        settings: dict[str, Any] = {}
        if self.config_file_path.is_file():
            try:
                self._parser.read(self.config_file_path, encoding="utf-8")
            except configparser.Error as e:
                raise ConfigurationError(f"Error parsing configuration file: {e}") from e
            settings = self._get_config_as_dict()
            log.debug(f"Loaded configuration from '{self.config_file_path}'.")

        if overrides:
            settings.update({k: v for k, v in overrides.items() if v is not None})

        try:
            return AppConfig(storage_dir=self.storage_dir, **settings)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads the known keys of the 'DEFAULT' section into a dictionary."""
        section = self._parser["DEFAULT"]
        known = AppConfig.get_ini_keys()
        for key in section:
            if key not in known:
                log.warning(f"Ignoring unknown configuration key '{key}'.")
        return {key: section[key] for key in known if key in section}
