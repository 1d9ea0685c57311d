"""
Configuration management for the quantization tool.
Handles loading defaults from an optional JSON file and validating them.
"""

import copy
import json
import os
from typing import Any, Dict, List, Optional

__all__ = [
    'ConfigManager',
    'ConfigValidationError',
]


class ConfigValidationError(Exception):
    """Raised when config validation fails."""
    pass


class ConfigManager:
    """Manages tool configuration defaults."""

    DEFAULT_CONFIG = {
        # Defaults used when a command-line flag is omitted
        "defaults": {
            "output": "out.png",
            "threshold": 0.5,
            "seed": None  # None means a fresh random seed on every run
        }
    }

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize config manager.

        Args:
            config_file: Optional path to a JSON config file

        Raises:
            ConfigValidationError: If the file is not valid JSON or holds bad values
        """
        self.config_file = config_file
        self.config = self._load_config()
        self._validate()

    def _load_config(self) -> Dict:
        """Load config from file merged over defaults, or plain defaults."""
        default = copy.deepcopy(self.DEFAULT_CONFIG)
        if not self.config_file:
            return default
        if not os.path.exists(self.config_file):
            raise ConfigValidationError(f"Configuration file not found: {self.config_file}")
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid JSON in config file:\n  Line {e.lineno}: {e.msg}")
        except OSError as e:
            raise ConfigValidationError(f"Failed to load config file: {e}")
        if not isinstance(loaded, dict):
            raise ConfigValidationError("Config file must contain a JSON object")
        # Merge with defaults to handle missing settings
        return self._merge_configs(default, loaded)

    def _merge_configs(self, default: Dict, loaded: Dict) -> Dict:
        """
        Recursively merge loaded config with defaults.
        Ensures all default keys exist even if not in loaded config.
        """
        for key, value in default.items():
            if key in loaded:
                if isinstance(value, dict) and isinstance(loaded[key], dict):
                    default[key] = self._merge_configs(value, loaded[key])
                else:
                    default[key] = loaded[key]
        return default

    def _validate(self):
        errors: List[str] = []
        defaults = self.config.get("defaults")
        if not isinstance(defaults, dict):
            raise ConfigValidationError("'defaults' must be an object/dictionary")

        output = defaults.get("output")
        if not isinstance(output, str) or not output:
            errors.append("'defaults.output' must be a non-empty string")

        threshold = defaults.get("threshold")
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
            errors.append("'defaults.threshold' must be a number")

        seed = defaults.get("seed")
        if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
            errors.append("'defaults.seed' must be an integer or null")

        if errors:
            error_msg = "Configuration validation failed:\n" + "\n".join(f"  • {e}" for e in errors)
            raise ConfigValidationError(error_msg)

    def get(self, *keys: str, default: Any = None) -> Any:
        """
        Get config value by nested keys.

        Args:
            *keys: Nested keys (e.g., "defaults", "threshold")
            default: Default value if key not found

        Returns:
            Config value or default

        Example:
            config.get("defaults", "threshold")  # Returns 0.5
        """
        value = self.config
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value
