"""
Configuration manager for API Tester
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
import logging

from apitester.client import DEFAULT_TIMEOUT
from apitester.composer import DEFAULT_METHOD, DEFAULT_HEADERS
from apitester.models import HTTP_METHODS
from apitester.storage import get_db_path, get_local_dir
from apitester.utils import expand_env_vars

logger = logging.getLogger(__name__)

# Environment variable overriding the database location
DATABASE_ENV_VAR = 'APITESTER_DATABASE'


def _default_config_dir() -> Path:
    return Path.home() / '.apitester'


@dataclass
class AppConfig:
    """Resolved configuration"""
    database_enabled: bool = True
    database_path: Path = field(default_factory=get_db_path)
    local_dir: Path = field(default_factory=get_local_dir)
    timeout: int = DEFAULT_TIMEOUT
    default_method: str = DEFAULT_METHOD
    default_headers: str = DEFAULT_HEADERS
    sources: List[Path] = field(default_factory=list)

    def database_location(self) -> Optional[Path]:
        """Database path, or None when the database is switched off"""
        if not self.database_enabled:
            return None
        return self.database_path


class ConfigManager:
    """Load configuration from YAML files and the environment"""

    PROJECT_CONFIG_FILE = Path('.apitester.yaml')  # Project-level config

    def __init__(self, config_file: Optional[Path] = None):
        """
        Initialize config manager

        Args:
            config_file: Optional path to config file. If None, uses default locations.
        """
        self.config_file = config_file
        self.config = AppConfig()
        self._load_config()

    @classmethod
    def default_config_file(cls) -> Path:
        return _default_config_dir() / 'config.yaml'

    def _load_config(self):
        """Load user config, then project config on top of it, then the environment"""
        config_paths = []

        if self.config_file:
            if self.config_file.exists():
                config_paths.append(self.config_file)
            else:
                logger.debug(f"Config file {self.config_file} not found, using defaults")
        elif self.default_config_file().exists():
            config_paths.append(self.default_config_file())

        if self.PROJECT_CONFIG_FILE.exists():
            config_paths.append(self.PROJECT_CONFIG_FILE)

        for config_path in config_paths:
            try:
                with open(config_path, 'r') as f:
                    config_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in config file {config_path}: {e}") from e
            self._apply(config_data, config_path)
            self.config.sources.append(config_path)

        env_database = os.getenv(DATABASE_ENV_VAR)
        if env_database:
            self.config.database_path = Path(env_database).expanduser()
            self.config.database_enabled = True

    def _apply(self, config_data: Dict[str, Any], config_path: Path):
        """
        Apply one config file on top of the current configuration

        Args:
            config_data: Parsed YAML data
            config_path: Path to config file (for error messages)

        Raises:
            ValueError: If a value is invalid
        """
        if not isinstance(config_data, dict):
            raise ValueError(f"Config file {config_path} must contain a mapping")

        database = config_data.get('database')
        if database is not None:
            if not isinstance(database, dict):
                raise ValueError(
                    f"Invalid 'database' section at {config_path}.\n"
                    f"Expected a mapping with 'path' and/or 'enabled'."
                )
            if 'enabled' in database:
                self.config.database_enabled = bool(database['enabled'])
            if database.get('path'):
                self.config.database_path = self._resolve_path(database['path'], config_path)

        if config_data.get('local_dir'):
            self.config.local_dir = self._resolve_path(config_data['local_dir'], config_path)

        if 'timeout' in config_data:
            timeout = config_data['timeout']
            if not isinstance(timeout, int) or isinstance(timeout, bool) or timeout < 1:
                raise ValueError(
                    f"Invalid timeout '{timeout}' at {config_path}.\n"
                    f"timeout must be a positive integer (seconds)"
                )
            self.config.timeout = timeout

        if 'default_method' in config_data:
            method = str(config_data['default_method']).upper()
            if method not in HTTP_METHODS:
                raise ValueError(
                    f"Invalid default_method '{method}' at {config_path}.\n"
                    f"Supported methods: {', '.join(HTTP_METHODS)}"
                )
            self.config.default_method = method

        if 'default_headers' in config_data:
            headers = config_data['default_headers']
            if isinstance(headers, dict):
                headers = "\n".join(f"{k}: {expand_env_vars(str(v))}" for k, v in headers.items())
            self.config.default_headers = expand_env_vars(str(headers or ""))

    def _resolve_path(self, value: Any, config_path: Path) -> Path:
        """Expand env vars and ~, and make relative paths relative to the config file"""
        path = Path(expand_env_vars(str(value))).expanduser()
        if not path.is_absolute():
            path = config_path.parent / path
        return path

    def create_default_config(self) -> Path:
        """
        Create a default config file

        Returns:
            Path to created config file
        """
        config_file = self.default_config_file()
        config_file.parent.mkdir(parents=True, exist_ok=True)

        example_config = {
            'database': {
                'enabled': True,
                'path': str(config_file.parent / 'data.db'),
            },
            'local_dir': str(config_file.parent / 'local'),
            'timeout': DEFAULT_TIMEOUT,
            'default_method': DEFAULT_METHOD,
            'default_headers': {
                'Content-Type': 'application/json; charset=utf-8'
            }
        }

        with open(config_file, 'w') as f:
            yaml.dump(example_config, f, default_flow_style=False, sort_keys=False)

        return config_file
