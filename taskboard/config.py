"""
Configuration management for taskboard.

Loads settings from settings.ini with environment variable overrides.
Provides centralized configuration for the backend, the REST client and the
completion animation.
"""

import configparser
import os
from pathlib import Path
from typing import Optional, Dict, Any

from taskboard.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class Config:
    """Application configuration manager."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config file, defaults to config/settings.ini
        """
        self.config_path = config_path or self._default_config_path()
        self._config = configparser.ConfigParser()
        self._load()

    def _default_config_path(self) -> Path:
        """Get default config path."""
        project_root = Path(__file__).parent.parent
        return project_root / "config" / "settings.ini"

    def _load(self):
        """Load configuration from file."""
        if self.config_path.exists():
            try:
                self._config.read(self.config_path)
                logger.info(f"Loaded configuration from {self.config_path}")
            except configparser.Error as e:
                logger.warning(f"Failed to read config file: {e}. Using defaults.")
        else:
            logger.debug(f"Config file not found at {self.config_path}. Using defaults.")

    def get_api_config(self) -> Dict[str, Any]:
        """
        Get REST API configuration with environment overrides.

        Environment variables take precedence over config file:
        - TASKBOARD_API_URL
        - TASKBOARD_API_TIMEOUT
        - TASKBOARD_API_TOKEN

        Returns:
            Dictionary with api configuration
        """
        config = {
            'base_url': os.getenv('TASKBOARD_API_URL') or
                        self._config.get('api', 'base_url', fallback='http://localhost:3000/api'),
            'timeout': int(os.getenv('TASKBOARD_API_TIMEOUT') or
                           self._config.get('api', 'timeout', fallback='30')),
            'token': os.getenv('TASKBOARD_API_TOKEN') or
                     self._config.get('api', 'token', fallback=None),
        }

        token_status = "set" if config['token'] else "unset"
        logger.debug(f"API config: base_url={config['base_url']}, "
                     f"timeout={config['timeout']}, token={token_status}")

        return config

    def get_backend_config(self) -> Dict[str, Any]:
        """
        Get backend selection with environment overrides.

        Environment variables take precedence over config file:
        - TASKBOARD_BACKEND (rest/local)
        - TASKBOARD_DATABASE_URL

        Returns:
            Dictionary with backend configuration
        """
        config = {
            'mode': (os.getenv('TASKBOARD_BACKEND') or
                     self._config.get('backend', 'mode', fallback='rest')).lower(),
            'database_url': os.getenv('TASKBOARD_DATABASE_URL') or
                            self._config.get('backend', 'database_url', fallback=DEFAULT_DATABASE_URL),
        }

        logger.debug(f"Backend config: mode={config['mode']}")

        return config

    def get_animation_config(self) -> Dict[str, float]:
        """
        Get completion animation durations in seconds.

        Returns:
            Dictionary with ``task`` and ``project`` durations
        """
        config = {
            'task': self._config.getfloat('animation', 'task_seconds', fallback=2.0),
            'project': self._config.getfloat('animation', 'project_seconds', fallback=4.0),
        }

        logger.debug(f"Animation config: task={config['task']}s, project={config['project']}s")

        return config

    def get_session_config(self) -> Dict[str, Any]:
        """
        Get session configuration with environment overrides.

        Environment variables take precedence over config file:
        - TASKBOARD_PROVIDER_ID

        Returns:
            Dictionary with session configuration
        """
        return {
            'provider_id': os.getenv('TASKBOARD_PROVIDER_ID') or
                           self._config.get('session', 'provider_id', fallback=None),
        }

    def get(self, section: str, key: str, fallback: Any = None) -> Any:
        """
        Get configuration value with fallback.

        Args:
            section: Config section name
            key: Config key name
            fallback: Default value if not found

        Returns:
            Configuration value or fallback
        """
        return self._config.get(section, key, fallback=fallback)

    def get_bool(self, section: str, key: str, fallback: bool = False) -> bool:
        """Get boolean configuration value."""
        return self._config.getboolean(section, key, fallback=fallback)

    def get_int(self, section: str, key: str, fallback: int = 0) -> int:
        """Get integer configuration value."""
        return self._config.getint(section, key, fallback=fallback)

    def has_section(self, section: str) -> bool:
        """Check if config section exists."""
        return self._config.has_section(section)

    def sections(self) -> list:
        """Get list of all configuration sections."""
        return self._config.sections()
