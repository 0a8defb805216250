# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Configuration loading and validation for projgraph."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

# Per-project configuration file, looked up under the scanned root
CONFIG_FILENAME = ".projgraph.yml"


class ConfigurationError(Exception):
    """Raised when configuration validation fails critically."""

    pass


class Config:
    """Configuration for dependency graph construction.

    Loads configuration from .projgraph.yml with validation and defaults.
    """

    DEFAULTS = {
        "ignore_patterns": [],
        # Lowest precedence first; a later file in the same directory wins
        "ignore_files": [".gitignore", ".ignore"],
        "manifest_filename": "package.json",
        "read_manifest": True,
        # None scans every recognized file regardless of size
        "max_file_size_kb": None,
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_path: Path to configuration file. If None, uses default location.
        """
        if config_path is None:
            config_path = Path.cwd() / CONFIG_FILENAME

        self.config_path = config_path
        self._config: Dict[str, Any] = {}
        self._load_config()

    @classmethod
    def for_root(cls, root: Path) -> "Config":
        """Load the configuration file that lives under a project root."""
        return cls(config_path=Path(root) / CONFIG_FILENAME)

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "Config":
        """Build a configuration from a mapping instead of a file.

        Raises:
            ConfigurationError: If a key is unknown or a value is invalid.
        """
        config = cls.__new__(cls)
        config.config_path = None
        config._config = cls._fresh_defaults()
        for key, value in values.items():
            if key not in cls.DEFAULTS:
                raise ConfigurationError(f"Unknown configuration parameter '{key}'")
            if not config._validate_parameter(key, value):
                raise ConfigurationError(f"Invalid value for '{key}': {value!r}")
            config._config[key] = value
        return config

    @classmethod
    def _fresh_defaults(cls) -> Dict[str, Any]:
        # Lists are copied so instances never share mutable defaults
        return {
            key: list(value) if isinstance(value, list) else value
            for key, value in cls.DEFAULTS.items()
        }

    def _load_config(self) -> None:
        """Load and validate configuration from file.

        A missing, unreadable or non-mapping file leaves every parameter at
        its default; it never fails a scan.
        """
        self._config = self._fresh_defaults()
        loaded_config = self._read_file()
        if loaded_config:
            self._validate_and_merge(loaded_config)

    def _read_file(self) -> Optional[Dict[str, Any]]:
        """Parse the YAML file, or None if there is nothing usable in it."""
        if not self.config_path.exists():
            logger.debug(f"No configuration file at {self.config_path}, using defaults")
            return None

        try:
            with open(self.config_path, encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.warning(f"Error parsing {self.config_path}: {e}, using defaults")
            return None
        except OSError as e:
            logger.warning(f"Could not read {self.config_path}: {e}, using defaults")
            return None

        if loaded is None:
            logger.warning(f"{self.config_path} is empty, using defaults")
            return None
        if not isinstance(loaded, dict):
            logger.warning(
                f"{self.config_path} must contain a YAML mapping, "
                f"got {type(loaded).__name__}, using defaults"
            )
            return None
        return loaded

    def _validate_and_merge(self, loaded_config: Dict[str, Any]) -> None:
        """Validate loaded configuration and merge with defaults.

        Invalid parameters are logged as warnings and defaults are used.
        """
        for key, value in loaded_config.items():
            if key not in self.DEFAULTS:
                logger.warning(f"Unknown configuration parameter '{key}', ignoring")
                continue

            if not self._validate_parameter(key, value):
                logger.warning(
                    f"Invalid value for '{key}': {value}, using default {self.DEFAULTS[key]}"
                )
                continue

            self._config[key] = value

    def _validate_parameter(self, key: str, value: Any) -> bool:
        """Validate a configuration parameter.

        Returns:
            True if valid, False if invalid
        """
        if key == "max_file_size_kb":
            if value is None:
                return True
            # bool is a subclass of int
            return isinstance(value, int) and not isinstance(value, bool) and value > 0

        expected_type = type(self.DEFAULTS[key])
        if not isinstance(value, expected_type):
            return False

        if key in ("ignore_patterns", "ignore_files"):
            return all(isinstance(item, str) and item for item in value)
        elif key == "manifest_filename":
            return bool(value.strip())

        return True

    @property
    def ignore_patterns(self) -> List[str]:
        """Extra gitignore-style patterns applied at the project root."""
        value = self._config["ignore_patterns"]
        assert isinstance(value, list)
        return value

    @property
    def ignore_files(self) -> List[str]:
        """Names of per-directory ignore files, lowest precedence first."""
        value = self._config["ignore_files"]
        assert isinstance(value, list)
        return value

    @property
    def manifest_filename(self) -> str:
        """Manifest path relative to the project root."""
        value = self._config["manifest_filename"]
        assert isinstance(value, str)
        return value

    @property
    def read_manifest(self) -> bool:
        """Whether the manifest is loaded into the project context."""
        value = self._config["read_manifest"]
        assert isinstance(value, bool)
        return value

    @property
    def max_file_size_kb(self) -> Optional[int]:
        """Files larger than this are not scanned for imports; None means no limit."""
        value = self._config["max_file_size_kb"]
        assert value is None or isinstance(value, int)
        return value

    @property
    def max_file_size_bytes(self) -> Optional[int]:
        """max_file_size_kb in bytes, or None when unlimited."""
        size_kb = self.max_file_size_kb
        return size_kb * 1024 if size_kb is not None else None
