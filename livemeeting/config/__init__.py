"""Simple YAML configuration loader for LiveMeeting."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from .preferences import PreferencesStore, UserPreferences

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "livemeeting.yaml"

DEFAULT_CONFIG: Dict[str, Any] = {
    "storage": {
        "data_directory": "data",
        "sessions_file": "meetings.json",
    },
    "preferences": {
        "file_path": None,
    },
    "engine": {
        "command_timeout_seconds": 10.0,
        "replay_interval_seconds": 1.0,
    },
    "overlay": {
        "capacity": 3,
    },
    "logging": {
        "level": "INFO",
        "file_path": None,
        "console_output": True,
    },
}


def find_config_file(start_dir: Optional[Path] = None) -> Optional[Path]:
    """Look for livemeeting.yaml in ``start_dir`` and its parents."""
    current = Path(start_dir or Path.cwd()).absolute()
    for directory in [current, *current.parents]:
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class LiveMeetingConfig:
    """LiveMeeting configuration loader."""
    
    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.
        
        Args:
            config_path: Path to YAML config file. If None, looks for livemeeting.yaml
                        in current directory and parent directories, and falls back
                        to built-in defaults when there is none.
        """
        if config_path is None:
            self.config_file = find_config_file()
        else:
            self.config_file = Path(config_path)
            if not self.config_file.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_file}")
        
        if self.config_file is None:
            logger.info("No configuration file found, using defaults")
            self.config = copy.deepcopy(DEFAULT_CONFIG)
            self._resolve_paths(self.config, Path.cwd())
        else:
            logger.info(f"Loading configuration from: {self.config_file}")
            self.config = self._load_config()
    
    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")
        except OSError as e:
            raise ValueError(f"Failed to load configuration: {e}")
        
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ValueError("Configuration file must contain a mapping")
        
        config = _merge(DEFAULT_CONFIG, loaded)
        # Resolve relative paths
        self._resolve_paths(config, self.config_file.parent)
        
        logger.info("Configuration loaded successfully")
        return config
    
    def _resolve_paths(self, config: Dict[str, Any], base_dir: Path) -> None:
        """Resolve relative paths in configuration relative to ``base_dir``."""
        data_dir = config['storage']['data_directory']
        if not os.path.isabs(data_dir):
            data_dir = str(base_dir / data_dir)
            config['storage']['data_directory'] = data_dir
        
        prefs_path = config['preferences'].get('file_path')
        if not prefs_path:
            config['preferences']['file_path'] = str(Path(data_dir) / "preferences.yaml")
        elif not os.path.isabs(prefs_path):
            config['preferences']['file_path'] = str(base_dir / prefs_path)
        
        log_path = config['logging'].get('file_path')
        if not log_path:
            config['logging']['file_path'] = str(Path(data_dir) / "logs" / "livemeeting.log")
        elif not os.path.isabs(log_path):
            config['logging']['file_path'] = str(base_dir / log_path)
    
    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'engine.command_timeout_seconds').
        
        Args:
            key_path: Dot-separated key path (e.g., 'storage.data_directory')
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
            key_path: Dot-separated path to config value (e.g., 'logging.level')
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
    
    def get_data_directory(self) -> str:
        """Get data directory path."""
        data_dir = self.get('storage.data_directory', 'data')
        return str(Path(data_dir).absolute())

    def get_preferences_path(self) -> str:
        return str(Path(self.get('preferences.file_path')).absolute())

    def get_command_timeout(self) -> float:
        return float(self.get('engine.command_timeout_seconds', 10.0))


__all__ = [
    "CONFIG_FILENAME",
    "LiveMeetingConfig",
    "PreferencesStore",
    "UserPreferences",
    "find_config_file",
]
