"""
Manages loading, validation, and migration of the INI configuration file.
"""

import configparser
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ah_cli_manager.exceptions import ConfigurationError
from ah_cli_manager.models.config import ManagerConfig

log = logging.getLogger(__name__)

BOOLEAN_KEYS = ("compress_files", "allow_concurrence")


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser(interpolation=None)

    def load_config(self, cli_options: dict[str, Any] | None = None) -> ManagerConfig:
        """
        Loads configuration from the INI file, applies CLI overrides, and validates it.

        Args:
            cli_options: A dictionary of options provided via the command line.

        Returns:
            A validated ManagerConfig object.

        Raises:
            ConfigurationError: If the config file is missing, invalid, or validation
            fails.
        """
        if not self.config_file_path.is_file():
            raise ConfigurationError(
                f"Configuration file not found at '{self.config_file_path}'. "
                "Please run 'ah-cli-manager init' first."
            )

        try:
            self._parser.read(self.config_file_path, encoding="utf-8")
        except configparser.Error as e:
            raise ConfigurationError(f"Error parsing configuration file: {e}") from e

        if self._migrate_if_needed():
            log.info(
                "[yellow]Configuration file was updated with new default values."
                "[/yellow]"
            )

        config_from_file = self.get_config_as_dict()

        if cli_options:
            config_from_file.update(cli_options)

        try:
            return ManagerConfig(**config_from_file)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_new_config(self, settings: dict[str, Any]) -> ManagerConfig:
        """
        Validates the given settings and writes them as a new configuration file.

        Args:
            settings: A dictionary of settings to save. Missing keys take the
                model defaults.

        Returns:
            The validated configuration that was written.
        """
        try:
            config = ManagerConfig(**settings)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

        parser = configparser.ConfigParser(interpolation=None)
        parser["DEFAULT"] = {}
        for key in sorted(ManagerConfig.get_ini_keys()):
            parser["DEFAULT"][key] = self._to_ini_value(getattr(config, key))

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                parser.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e
        return config

    @staticmethod
    def _to_ini_value(value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        if value is None:
            return ""
        return str(value)

    def get_config_as_dict(self) -> dict[str, Any]:
        """Reads the 'DEFAULT' section of the INI file into a dictionary."""
        section = self._parser["DEFAULT"]
        try:
            return {
                "project_folder": section.get("project_folder", "./"),
                "api_version": section.get("api_version", "") or None,
                "namespace_prefix": section.get("namespace_prefix", ""),
                "compress_files": section.getboolean("compress_files", False),
                "sort_order": section.get("sort_order", "") or None,
                "ignore_file": section.get("ignore_file", "") or None,
                "output_path": section.get("output_path", "") or None,
                "allow_concurrence": section.getboolean("allow_concurrence", False),
            }
        except ValueError as e:
            raise ConfigurationError(f"Invalid value in configuration file: {e}") from e

    def _migrate_if_needed(self) -> bool:
        """Adds missing default values to an existing config file."""
        defaults = ManagerConfig()
        needs_saving = False

        config_section = self._parser["DEFAULT"]

        for key in sorted(ManagerConfig.get_ini_keys()):
            if key not in config_section:
                config_section[key] = self._to_ini_value(getattr(defaults, key))
                needs_saving = True
                log.debug(
                    f"Migrating config: added missing key '{key}' with "
                    f"value '{config_section[key]}'."
                )

        if needs_saving:
            try:
                with open(self.config_file_path, "w", encoding="utf-8") as f:
                    self._parser.write(f)
            except OSError as e:
                log.error(f"Could not save migrated configuration file: {e}")
                return False

        return needs_saving
