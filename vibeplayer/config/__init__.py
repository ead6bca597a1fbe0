"""Simple YAML configuration loader for vibeplayer."""

import os
import copy
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)


DEFAULT_CONFIG: Dict[str, Any] = {
    'agent': {
        'model': 'claude-sonnet-4-5-20250929',
        'api_key_env': 'ANTHROPIC_API_KEY',
        'max_tokens': 1024,
    },
    'storage': {
        'home_directory': '~/.vibeplayer',
        'cache_directory': 'cache',
        'library_file': 'library.json',
    },
    'player': {
        'default_volume': 70,
        'tick_ms': 50,
        'frames_per_buffer': 1024,
    },
    'logging': {
        'level': 'INFO',
        'file_path': 'vibeplayer.log',
        'console_output': False,
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively overlay ``override`` onto ``base`` in place."""
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


class VibePlayerConfig:
    """vibeplayer configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, built-in defaults are used.
        """
        self.config_file = Path(config_path) if config_path else None
        self.config = copy.deepcopy(DEFAULT_CONFIG)

        if self.config_file is None:
            logger.info("No configuration file given, using defaults")
            return

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        _merge(self.config, self._load_config())

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")
        except OSError as e:
            raise ValueError(f"Failed to load configuration: {e}")

        if not config:
            raise ValueError("Configuration file is empty")
        if not isinstance(config, dict):
            raise ValueError("Configuration file must contain a mapping")

        logger.info("Configuration loaded successfully")
        return config

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'player.default_volume').

        Args:
            key_path: Dot-separated key path (e.g., 'agent.model')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'player.default_volume')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_api_key(self) -> str:
        """Get the Anthropic API key from the environment - CRASHES if not set."""
        env_name = self.get('agent.api_key_env', 'ANTHROPIC_API_KEY')
        api_key = os.environ.get(env_name)
        if not api_key:
            raise ValueError(f"{env_name} environment variable not set")
        return api_key

    def get_home_directory(self) -> Path:
        return Path(self.get('storage.home_directory', '~/.vibeplayer')).expanduser()

    def _home_relative(self, key_path: str, default: str) -> Path:
        path = Path(self.get(key_path, default)).expanduser()
        if path.is_absolute():
            return path
        return self.get_home_directory() / path

    def get_cache_directory(self) -> Path:
        """Directory holding downloaded audio files."""
        return self._home_relative('storage.cache_directory', 'cache')

    def get_library_path(self) -> Path:
        return self._home_relative('storage.library_file', 'library.json')

    def get_log_path(self) -> Path:
        return self._home_relative('logging.file_path', 'vibeplayer.log')
