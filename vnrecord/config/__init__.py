"""Simple YAML configuration loader for VNRecord."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional
import logging

from ..errors import ConfigError
from ..storage.file_manager import default_output_dir

logger = logging.getLogger(__name__)


DEFAULT_CONFIG: Dict[str, Any] = {
    "output": {
        "directory": None,  # None resolves to default_output_dir()
    },
    "audio": {
        "device": "auto",
        "extension": "mp3",
        "capture_command": None,  # None uses the pw-record default
        "encode_command": None,  # None uses the lame default
        "stop_timeout_seconds": 10.0,
        "min_file_size_bytes": 500,
    },
    "trim": {
        "enabled": True,
        "sox_binary": "sox",
        "threshold": "1%",
        "min_silence_seconds": 0.1,
        "timeout_seconds": 60.0,
    },
    "probe": {
        "soxi_binary": "soxi",
        "timeout_seconds": 30.0,
    },
    "logging": {
        "level": "INFO",
        "file_path": None,  # None puts vnrecord.log in the output directory
        "console_output": True,
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class VNRecordConfig:
    """VNRecord configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, built-in defaults are used.
        """
        self.config_file = Path(config_path) if config_path else None

        if self.config_file is None:
            logger.info("No configuration file given, using defaults")
            self.config = copy.deepcopy(DEFAULT_CONFIG)
            return

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in configuration file: {e}") from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError("Configuration file must contain a mapping")

        config = _merge(DEFAULT_CONFIG, loaded)
        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        output_dir = config['output'].get('directory')
        if output_dir and not os.path.isabs(output_dir):
            config['output']['directory'] = str(config_dir / output_dir)

        log_path = config['logging'].get('file_path')
        if log_path and not os.path.isabs(log_path):
            config['logging']['file_path'] = str(config_dir / log_path)

    def _walk(self, keys: List[str], create: bool = False) -> Optional[Dict[str, Any]]:
        """Return the mapping that holds ``keys[-1]``, or None if a section is missing."""
        section = self.config
        for key in keys[:-1]:
            child = section.get(key)
            if child is None and create:
                child = section[key] = {}
            if not isinstance(child, dict):
                return None
            section = child
        return section

    def get(self, key_path: str, default: Any = None) -> Any:
        """Look up ``key_path`` such as ``'trim.sox_binary'``; ``default`` if any part is missing."""
        keys = key_path.split('.')
        section = self._walk(keys)
        if section is None:
            return default
        return section.get(keys[-1], default)

    def set(self, key_path: str, value: Any) -> None:
        """Override ``key_path`` in memory, creating missing sections.

        Raises:
            ConfigError: If a section on the path holds a plain value
        """
        keys = key_path.split('.')
        section = self._walk(keys, create=True)
        if section is None:
            raise ConfigError(f"Cannot set '{key_path}': a parent key is not a section")
        section[keys[-1]] = value
        logger.debug(f"{key_path} = {value!r}")

    def get_output_directory(self) -> Path:
        """Get the directory recordings are written to."""
        output_dir = self.get('output.directory')
        if not output_dir:
            return default_output_dir()
        return Path(output_dir).expanduser().absolute()

    def get_log_file_path(self) -> Path:
        """Get the log file path."""
        log_path = self.get('logging.file_path')
        if not log_path:
            return self.get_output_directory() / "vnrecord.log"
        return Path(log_path).expanduser().absolute()

    def get_command(self, key_path: str) -> Optional[List[str]]:
        """Get an argv template; a single string is split on whitespace."""
        command = self.get(key_path)
        if command is None:
            return None
        if isinstance(command, str):
            command = command.split()
        if not isinstance(command, list) or not command or not all(isinstance(a, str) for a in command):
            raise ConfigError(f"'{key_path}' must be a non-empty list of strings")
        return command

    def get_float(self, key_path: str) -> float:
        """Get a positive number."""
        value = self.get(key_path)
        try:
            number = float(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"'{key_path}' must be a number, got {value!r}") from e
        if number <= 0:
            raise ConfigError(f"'{key_path}' must be positive, got {value!r}")
        return number
