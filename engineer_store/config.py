"""Configuration management module for centralized settings."""
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, Union

# Singleton pattern for configuration
_config = None
_config_path = None

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"
CONFIG_ENV_VAR = "ENGINEER_STORE_CONFIG"


class Config:
    """Configuration manager that loads settings from YAML file."""

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """
        Initialize configuration from YAML file.

        Args:
            config_path: Path to config file. If None, uses $ENGINEER_STORE_CONFIG
                         or the config.yaml bundled with the package.
        """
        if config_path is None:
            config_path = os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH

        self.config_path = Path(config_path)
        self._data = {}
        self._load_config()

    def _load_config(self):
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        with open(self.config_path, 'r', encoding='utf-8') as f:
            self._data = yaml.safe_load(f) or {}

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., "validation.note_max_length")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self._data

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def get_section(self, section: str) -> Dict[str, Any]:
        """
        Get entire configuration section.

        Args:
            section: Section name (e.g., "locking", "validation")

        Returns:
            Dictionary containing section configuration
        """
        return self._data.get(section) or {}

    def set(self, key_path: str, value: Any) -> None:
        """Override a value in memory (used by the CLI and tests)."""
        keys = key_path.split('.')
        node = self._data
        for key in keys[:-1]:
            if not isinstance(node.get(key), dict):
                node[key] = {}
            node = node[key]
        node[keys[-1]] = value

    def reload(self):
        """Reload configuration from file."""
        self._load_config()


def get_config(config_path: Optional[Union[str, Path]] = None) -> Config:
    """
    Get singleton configuration instance.

    Args:
        config_path: Path to config file (only used on first call or when it changes)

    Returns:
        Configuration instance
    """
    global _config, _config_path

    if _config is None or (config_path and str(config_path) != _config_path):
        _config = Config(config_path)
        _config_path = str(config_path) if config_path else None

    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() reloads it."""
    global _config, _config_path
    _config = None
    _config_path = None


def get_timeout(timeout_type: str = "default") -> Optional[float]:
    """
    Get timeout value.

    Args:
        timeout_type: Type of timeout (default, lock_wait, file_lock)

    Returns:
        Timeout value in seconds, None meaning wait forever
    """
    return get_config().get(f"timeouts.{timeout_type}", 30.0)


def ensure_parent_dir(file_path: Union[str, Path]) -> Path:
    """
    Ensure parent directory of a file exists.

    Args:
        file_path: Path to file

    Returns:
        The file path as a Path object

    Raises:
        OSError: If the directory cannot be created
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    return file_path
