import copy
import os
import yaml
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .exceptions import ConfigParseError, ConfigurationError, InitError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "QA_RUNNER_CONFIG"
GREP_ENV_VAR = "QA_RUNNER_GREP"
PROFILE_ENV_VAR = "QA_RUNNER_PROFILE"

DEFAULT_CONFIG: Dict[str, Any] = {
    "gherkin": {
        "features": "features/**/*.feature",
        "steps": [],
    },
    "output": "output",
    "reports": ["json"],
    "plugins": {},
}


def merge_config(base: Dict[str, Any], override: Union[str, Dict[str, Any], None] = None) -> Dict[str, Any]:
    """
    Deep-merge an override onto a base configuration.

    Args:
        base: Loaded configuration
        override: JSON object text, an already parsed dict, or None

    Returns:
        A new dict; neither input is mutated. Override wins on conflicts,
        nested dicts are merged key by key.
    """
    if override is None:
        return copy.deepcopy(base)

    if isinstance(override, str):
        try:
            override = json.loads(override)
        except json.JSONDecodeError as e:
            raise ConfigParseError(f"Config override is not valid JSON: {e}")

    if not isinstance(override, dict):
        raise ConfigParseError(
            f"Config override must be a JSON object, got {type(override).__name__}"
        )

    return _deep_merge(base, override)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def resolve_option(flag_value: Optional[str], env_var: str) -> Optional[str]:
    """Flag values take precedence over the environment"""
    if flag_value:
        return flag_value
    return os.getenv(env_var) or None


def get_test_root(config_path: Optional[Union[str, Path]] = None) -> Path:
    """Directory holding the config file, or the working directory"""
    if not config_path:
        return Path.cwd()
    config_path = Path(config_path)
    if config_path.is_dir():
        return config_path.resolve()
    return config_path.resolve().parent


class ConfigManager:
    """Manages configuration for QA Runner"""

    def __init__(self, config_path: Optional[Path] = None):
        self.explicit = config_path is not None
        self.config_path = Path(config_path) if config_path else self._get_default_config_path()
        self._config = self._load_config()

    def _get_default_config_path(self) -> Path:
        """Get default configuration path"""
        # Check environment variable first
        if env_path := os.getenv(CONFIG_ENV_VAR):
            self.explicit = True
            return Path(env_path)

        locations = [
            Path.cwd() / "qa-runner.yaml",
            Path.cwd() / "qa-runner.yml",
            Path.cwd() / "qa-runner.json",
        ]

        for location in locations:
            if location.exists():
                return location

        return Path.cwd() / "qa-runner.yaml"

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file, layered over the defaults"""
        if self.config_path.is_dir():
            self.config_path = self.config_path / "qa-runner.yaml"

        if not self.config_path.exists():
            if self.explicit:
                raise InitError(f"Config file not found: {self.config_path}")
            logger.warning(f"Config file not found, using defaults: {self.config_path}")
            return copy.deepcopy(DEFAULT_CONFIG)

        with open(self.config_path, 'r') as f:
            if self.config_path.suffix in ('.yaml', '.yml'):
                loaded = yaml.safe_load(f)
            elif self.config_path.suffix == '.json':
                loaded = json.load(f)
            else:
                raise ConfigurationError(f"Unsupported config format: {self.config_path.suffix}")

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise InitError(f"Config file must contain a mapping: {self.config_path}")

        logger.debug(f"Loaded config from {self.config_path}")
        return _deep_merge(DEFAULT_CONFIG, loaded)

    @property
    def test_root(self) -> Path:
        return get_test_root(self.config_path)

    @property
    def data(self) -> Dict[str, Any]:
        return self._config

    def merged(self, override: Union[str, Dict[str, Any], None] = None) -> Dict[str, Any]:
        """Effective configuration with the override applied"""
        return merge_config(self._config, override)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation"""
        keys = key.split('.')
        value = self._config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

