"""
Configuration Module for the Invoice Parser.

Every tunable threshold of the pipeline (classifier bands, validation
tolerances, recovery cut-offs) lives in settings.yaml and is read through
this module. Components call get_config() with a hard-coded default, so a
key missing from the file never breaks the pipeline.

The settings file can be replaced without code changes by pointing the
INVOICE_PARSER_CONFIG environment variable at another YAML file.
"""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, Optional

# Environment variable naming an alternative settings file
CONFIG_ENV_VAR = "INVOICE_PARSER_CONFIG"

DEFAULT_CONFIG_PATH = Path(__file__).parent / "settings.yaml"


class ConfigurationManager:
    """
    Singleton access to the invoice parser settings.

    Values are looked up with dot notation. Tests and embedding
    applications may layer overrides on top of the file values; overrides
    survive reload() and are dropped by clear_overrides() or reset().

    Attributes:
        config_path (Path): Settings file in use.

    Example:
        >>> config = ConfigurationManager()
        >>> config.get("classification.ambiguity_threshold")
        25
        >>> config.override({"validation": {"price_sanity": {"high": 500}}})
        >>> config.get("validation.price_sanity.high")
        500
    """

    _instance: Optional['ConfigurationManager'] = None

    def __new__(cls, config_path: Optional[str] = None) -> 'ConfigurationManager':
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._initialized = False
            cls._instance = instance
        return cls._instance

    def __init__(self, config_path: Optional[str] = None) -> None:
        """
        Load the settings file on first construction.

        Args:
            config_path: Settings file. Falls back to $INVOICE_PARSER_CONFIG,
                then to config/settings.yaml.
        """
        if self._initialized:
            return

        self.config_path = self._locate(config_path)
        self._file_values: Dict[str, Any] = {}
        self._overrides: Dict[str, Any] = {}
        self._config: Dict[str, Any] = {}

        self._load_config()
        self._initialized = True

    @staticmethod
    def _locate(config_path: Optional[str]) -> Path:
        """Resolve which settings file to read."""
        candidate = config_path or os.environ.get(CONFIG_ENV_VAR)
        return Path(candidate) if candidate else DEFAULT_CONFIG_PATH

    def _load_config(self) -> None:
        """
        Read the settings file and re-apply overrides.

        Raises:
            FileNotFoundError: If the settings file doesn't exist.
            ValueError: If the file does not hold a YAML mapping.
            yaml.YAMLError: If the file is not valid YAML.
        """
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        with open(self.config_path, 'r', encoding='utf-8') as f:
            loaded = yaml.safe_load(f) or {}

        if not isinstance(loaded, dict):
            raise ValueError(f"Configuration file must hold a mapping: {self.config_path}")

        self._file_values = self._resolve_paths(loaded)
        self._rebuild()

    def _rebuild(self) -> None:
        from invoice_parser.utils.helpers import merge_dicts

        self._config = merge_dicts(self._file_values, self._overrides)

    @staticmethod
    def _resolve_paths(values: Dict[str, Any]) -> Dict[str, Any]:
        """Make relative entries of the paths section absolute to the project root."""
        project_root = Path(__file__).parent.parent
        paths = values.get('paths') or {}

        values['paths'] = {
            key: str(project_root / value) if value and not Path(value).is_absolute() else value
            for key, value in paths.items()
        }
        return values

    def get(self, key: str, default: Any = None) -> Any:
        """
        Look up a value using dot notation.

        Args:
            key: Dotted key, e.g. "recovery.min_overall_confidence".
            default: Returned when any part of the key is missing.

        Returns:
            Configuration value or default.

        Example:
            >>> config.get("extraction.vendor")
            "Amazon"
            >>> config.get("nonexistent.key", "default_value")
            "default_value"
        """
        node: Any = self._config
        for part in key.split('.'):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def get_all(self) -> Dict[str, Any]:
        """Return a copy of the effective configuration."""
        return self._config.copy()

    def override(self, values: Dict[str, Any]) -> None:
        """
        Deep-merge values over the file configuration.

        Args:
            values: Nested dictionary of settings to replace.

        Example:
            >>> config.override({"recovery": {"min_overall_confidence": 0.5}})
        """
        from invoice_parser.utils.helpers import merge_dicts

        self._overrides = merge_dicts(self._overrides, values)
        self._rebuild()

    def clear_overrides(self) -> None:
        """Drop every value applied with override()."""
        self._overrides = {}
        self._rebuild()

    def reload(self) -> None:
        """Re-read the settings file; overrides stay in place."""
        self._load_config()

    @classmethod
    def reset(cls) -> None:
        """Forget the singleton; the next use reads the file again."""
        cls._instance = None


def get_config(key: str, default: Any = None) -> Any:
    """
    Look up one configuration value.

    Args:
        key: Configuration key in dot notation.
        default: Default value if key doesn't exist.

    Returns:
        Configuration value or default.
    """
    return ConfigurationManager().get(key, default)


__all__ = ['ConfigurationManager', 'get_config', 'CONFIG_ENV_VAR']
