"""Simple YAML configuration loader for Manuscript."""

import os
import copy
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from ..models.audio import AudioFormat

logger = logging.getLogger(__name__)


DEFAULT_CONFIG: Dict[str, Any] = {
    "storage": {
        "data_directory": str(Path.home() / ".manuscript" / "data"),
    },
    "audio": {
        "sample_rate": 16000,
        "channels": 1,
        "bit_depth": 16,
        "chunk_size": 1024,
        "device_index": None,
        "device_open_timeout": 5.0,
    },
    "recorder": {
        "stop_timeout": None,
    },
    "events": {
        "topic": "recorder.state",
    },
    "logging": {
        "level": "INFO",
        "console_output": True,
    },
}

# Environment variable -> (key path, type)
ENV_OVERRIDES = {
    "DATA_DIR": ("storage.data_directory", str),
    "AUDIO_SAMPLE_RATE": ("audio.sample_rate", int),
    "AUDIO_CHANNELS": ("audio.channels", int),
    "AUDIO_BIT_DEPTH": ("audio.bit_depth", int),
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


class ManuscriptConfig:
    """Manuscript configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, built-in defaults
                        are used (still subject to environment overrides).
        """
        self.config_file = Path(config_path) if config_path else None

        if self.config_file is not None and not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        self.config = copy.deepcopy(DEFAULT_CONFIG)
        if self.config_file is not None:
            logger.info(f"Loading configuration from: {self.config_file}")
            _merge(self.config, self._load_config())
        self._apply_env_overrides()

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

        # Resolve relative paths
        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        # Resolve data directory
        if 'storage' in config and 'data_directory' in config['storage']:
            data_dir = config['storage']['data_directory']
            if not os.path.isabs(data_dir):
                config['storage']['data_directory'] = str(config_dir / data_dir)

        # Resolve log file path
        if 'logging' in config and 'file_path' in config['logging']:
            log_path = config['logging']['file_path']
            if not os.path.isabs(log_path):
                config['logging']['file_path'] = str(config_dir / log_path)

    def _apply_env_overrides(self) -> None:
        for env_name, (key_path, cast) in ENV_OVERRIDES.items():
            raw = os.environ.get(env_name)
            if not raw:
                continue
            try:
                self.set(key_path, cast(raw))
            except ValueError:
                logger.warning(f"Ignoring invalid value for {env_name}: {raw!r}")

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'audio.sample_rate').

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
            key_path: Dot-separated path to config value (e.g., 'audio.channels')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        # Set the final value
        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_data_directory(self) -> str:
        """Get data directory path, creating it if needed."""
        data_dir = Path(self.get('storage.data_directory')).expanduser().absolute()
        data_dir.mkdir(parents=True, exist_ok=True)
        return str(data_dir)

    def get_log_file_path(self) -> str:
        """Get log file path, defaulting to logs/ under the data directory."""
        log_path = self.get('logging.file_path')
        if log_path:
            return str(Path(log_path).expanduser())
        return str(Path(self.get_data_directory()) / "logs" / "manuscript.log")

    def get_audio_format(self) -> AudioFormat:
        """Build the capture format from the audio section."""
        return AudioFormat(
            sample_rate=int(self.get('audio.sample_rate')),
            channels=int(self.get('audio.channels')),
            bit_depth=int(self.get('audio.bit_depth')),
        )
