"""
Configuration manager for consistent config access throughout the application.

This module provides a centralized way to access configuration values
with type safety and default handling.
"""

import copy
import os
from pathlib import Path
from typing import Any, Optional

import yaml

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "default_config.yml"
DEFAULT_API_BASE = "https://panelapp-aus-staging.org/api/v1"
DEFAULT_EXPORT_URL_TEMPLATE = (
    "https://panelapp-aus.org/panels/{panel_id}/download/{export_suffix}/"
)
API_BASE_ENV_VAR = "PANELAPP_API_BASE"


class ConfigManager:
    """Manages configuration access with type safety and defaults."""

    def __init__(self, config: dict[str, Any]):
        """
        Initialize with configuration dictionary.

        Args:
            config: Configuration dictionary
        """
        self.config = config

    def get_nested(self, *keys: str, default: Any = None) -> Any:
        """
        Safely get nested configuration values.

        Args:
            *keys: Sequence of keys to traverse
            default: Default value if key path doesn't exist

        Returns:
            Configuration value or default

        Example:
            config.get_nested("panelapp", "page_size", default=100)
        """
        result = self.config
        for key in keys:
            if isinstance(result, dict) and key in result:
                result = result[key]
            else:
                return default
        return result

    def get_api_base(self) -> str:
        """Get the catalog API base URL."""
        return self.get_nested("panelapp", "api_base", default=DEFAULT_API_BASE)

    def get_page_size(self) -> int:
        """Get the number of catalog entries requested per page."""
        return int(self.get_nested("panelapp", "page_size", default=100))

    def get_export_url_template(self) -> str:
        """Get the panel export URL template."""
        return self.get_nested(
            "panelapp", "export_url_template", default=DEFAULT_EXPORT_URL_TEMPLATE
        )

    def get_export_suffix(self) -> str:
        """Get the constant trailing path segment of export URLs."""
        return str(self.get_nested("panelapp", "export_suffix", default="01234"))

    def get_request_delay(self) -> float:
        """Get the pause between two panel downloads, in seconds."""
        return float(self.get_nested("panelapp", "request_delay", default=0.1))

    def get_timeout(self) -> int:
        """Get the HTTP request timeout in seconds."""
        return int(self.get_nested("panelapp", "timeout", default=60))

    def get_count_limit(self) -> int:
        """
        Get the maximum number of panels to download.

        Returns:
            Download limit, 0 means no limit
        """
        return int(self.get_nested("panelapp", "count_limit", default=0))

    def get_manifest_filename(self) -> str:
        return self.get_nested(
            "output", "manifest_filename", default="panel_manifest.tsv"
        )

    def get_panels_dirname(self) -> str:
        return self.get_nested("output", "panels_dirname", default="panels")

    def get_index_filename(self) -> str:
        return self.get_nested("output", "index_filename", default="panel_files.tsv")

    def get_combined_filename(self) -> str:
        return self.get_nested("output", "combined_filename", default="all_panels.tsv")

    def get_log_level(self) -> str:
        """Get the configured log level."""
        return self.get_nested("general", "log_level", default="INFO")

    def apply_environment(self, environ: Optional[dict[str, str]] = None) -> None:
        """
        Apply environment variable overrides.

        Args:
            environ: Environment mapping, defaults to os.environ
        """
        environ = os.environ if environ is None else environ
        api_base = environ.get(API_BASE_ENV_VAR)
        if api_base:
            self._set_nested("panelapp", "api_base", api_base)

    def override_with_cli_args(self, **kwargs: Any) -> None:
        """
        Override configuration with command line arguments.

        Args:
            **kwargs: Keyword arguments from CLI
        """
        if kwargs.get("count_limit") is not None:
            self._set_nested("panelapp", "count_limit", kwargs["count_limit"])

        if kwargs.get("log_level"):
            self._set_nested("general", "log_level", kwargs["log_level"])

    def _set_nested(self, *keys_and_value: Any) -> None:
        """
        Set a nested configuration value.

        Args:
            *keys_and_value: Keys to traverse and final value to set
        """
        *keys, value = keys_and_value
        target = self.config

        # Navigate to the parent of the target key
        for key in keys[:-1]:
            if key not in target:
                target[key] = {}
            target = target[key]

        target[keys[-1]] = value

    @classmethod
    def from_files(
        cls,
        default_path: Path = DEFAULT_CONFIG_PATH,
        override_path: Optional[Path] = None,
        local_path: Optional[Path] = None,
    ) -> "ConfigManager":
        """Load configuration from files and create a ConfigManager instance."""
        if not default_path.exists():
            raise FileNotFoundError(
                "Default configuration file not found. Installation may be corrupted."
            )

        with open(default_path) as f:
            config = yaml.safe_load(f) or {}

        if override_path:
            if not override_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {override_path}")
            with open(override_path) as f:
                override_config = yaml.safe_load(f) or {}
            config = cls._merge_configs(config, override_config)
        elif local_path and local_path.exists():
            with open(local_path) as f:
                local_config = yaml.safe_load(f) or {}
            config = cls._merge_configs(config, local_config)

        return cls(config)

    @staticmethod
    def _merge_configs(
        base_config: dict[str, Any], override_config: dict[str, Any]
    ) -> dict[str, Any]:
        """Recursively merge override configuration into base configuration."""
        result = copy.deepcopy(base_config)
        for key, value in override_config.items():
            if (
                key in result
                and isinstance(result.get(key), dict)
                and isinstance(value, dict)
            ):
                result[key] = ConfigManager._merge_configs(result[key], value)
            else:
                result[key] = value
        return result

    def to_dict(self) -> dict[str, Any]:
        """
        Get the full configuration as a dictionary.

        Returns:
            Complete configuration dictionary
        """
        return self.config.copy()
