"""
Configuration manager for MineBot settings.

Values come from the environment (a ``.env`` file is loaded first) and
optionally from a ``config.json`` file; environment variables win.
"""
import json
import logging
import os
from dataclasses import dataclass
from datetime import time as dtime
from pathlib import Path
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv


PLACEHOLDER_TOKEN = 'YOUR_BOT_TOKEN'
PLACEHOLDER_UPDATE_CHANNEL_ID = 'YOUR_UPDATE_CHANNEL_ID'
PLACEHOLDER_ADMIN_ROLE_ID = 'YOUR_ADMIN_ROLE_ID'


@dataclass
class BotConfig:
    """Resolved bot configuration."""
    token: str = PLACEHOLDER_TOKEN
    admin_password: Optional[str] = None
    update_channel_id: str = PLACEHOLDER_UPDATE_CHANNEL_ID
    admin_role_id: str = PLACEHOLDER_ADMIN_ROLE_ID
    port: int = 3000
    prefix: str = '!'
    catalog_file: Optional[str] = None
    auto_update_timezone: str = 'Asia/Dhaka'
    auto_update_start: dtime = dtime(15, 0)
    auto_update_finish: dtime = dtime(15, 5)
    log_level: str = 'INFO'
    log_directory: str = './logs/'


class ConfigManager:
    """Builds a BotConfig from config.json and the environment."""

    DEFAULT_PORT = 3000
    DEFAULT_TIMEZONE = 'Asia/Dhaka'

    # config.json key -> environment variable
    ENV_KEYS = {
        'token': ('BOT_TOKEN', 'DISCORD_TOKEN'),
        'admin_password': ('ADMIN_PASSWORD',),
        'update_channel_id': ('UPDATE_CHANNEL_ID', 'CHANNEL_ID'),
        'admin_role_id': ('ADMIN_ROLE_ID',),
        'port': ('PORT',),
        'prefix': ('BOT_PREFIX',),
        'catalog_file': ('CATALOG_FILE',),
        'auto_update_timezone': ('AUTO_UPDATE_TIMEZONE',),
        'log_level': ('LOG_LEVEL',),
        'log_directory': ('LOG_DIRECTORY',),
    }

    def __init__(self, config_path: str = "config.json", environ: Optional[Dict[str, str]] = None):
        """
        Initialize ConfigManager.

        Args:
            config_path: Optional JSON config file; ignored if it does not exist
            environ: Environment mapping, defaults to os.environ
        """
        self.logger = logging.getLogger(__name__)
        self.config_path = Path(config_path)
        self._environ = environ
        self._config = BotConfig()

    @property
    def config(self) -> BotConfig:
        return self._config

    def load(self, use_dotenv: bool = True) -> BotConfig:
        """
        Resolve configuration. Missing values keep their placeholders.

        Args:
            use_dotenv: Load a .env file into the process environment first

        Returns:
            The resolved BotConfig
        """
        if use_dotenv:
            load_dotenv()
        environ = self._environ if self._environ is not None else os.environ

        values: Dict[str, Any] = self._load_file_values()
        for key, env_names in self.ENV_KEYS.items():
            for env_name in env_names:
                if environ.get(env_name):
                    values[key] = environ[env_name]
                    break

        config = BotConfig()
        for key in ('token', 'admin_password', 'update_channel_id', 'admin_role_id',
                    'prefix', 'catalog_file', 'log_level', 'log_directory'):
            if values.get(key) not in (None, ''):
                setattr(config, key, str(values[key]))

        config.port = self._parse_port(values.get('port'))
        config.auto_update_timezone = self._parse_timezone(values.get('auto_update_timezone'))

        self._config = config
        return config

    def _load_file_values(self) -> Dict[str, Any]:
        if not self.config_path.exists():
            return {}
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            self.logger.error(f"Invalid JSON in {self.config_path}: {e}")
            return {}
        except OSError as e:
            self.logger.error(f"Failed to read {self.config_path}: {e}")
            return {}

        if not isinstance(data, dict):
            self.logger.error(f"{self.config_path} must contain a JSON object")
            return {}
        return {key: value for key, value in data.items() if key in self.ENV_KEYS}

    def _parse_port(self, value: Any) -> int:
        if value in (None, ''):
            return self.DEFAULT_PORT
        try:
            port = int(value)
        except (TypeError, ValueError):
            self.logger.warning(f"Invalid port {value!r}, using {self.DEFAULT_PORT}")
            return self.DEFAULT_PORT
        if not 0 < port < 65536:
            self.logger.warning(f"Port {port} out of range, using {self.DEFAULT_PORT}")
            return self.DEFAULT_PORT
        return port

    def _parse_timezone(self, value: Any) -> str:
        if not value:
            return self.DEFAULT_TIMEZONE
        try:
            ZoneInfo(str(value))
        except (ZoneInfoNotFoundError, ValueError):
            self.logger.warning(f"Unknown timezone {value!r}, using {self.DEFAULT_TIMEZONE}")
            return self.DEFAULT_TIMEZONE
        return str(value)

    def get_update_channel_id(self) -> Optional[int]:
        """The update channel id as an int, or None while it is a placeholder or not numeric."""
        try:
            return int(self._config.update_channel_id)
        except (TypeError, ValueError):
            return None

    def get_configuration_health_check(self) -> Dict[str, Any]:
        """
        Check the configuration for placeholder or missing values.

        Placeholders do not stop the bot from starting; they are reported here
        so the caller can log them.

        Returns:
            Dictionary with health status, warnings and recommendations
        """
        config = self._config
        health_check = {
            'healthy': True,
            'warnings': [],
            'errors': [],
            'recommendations': []
        }

        if config.token == PLACEHOLDER_TOKEN:
            health_check['healthy'] = False
            health_check['errors'].append("❌ Bot token is not configured")
            health_check['recommendations'].append("Set BOT_TOKEN in the environment or .env file.")

        if self.get_update_channel_id() is None:
            health_check['warnings'].append(
                f"⚠️ Update channel id is not numeric: {config.update_channel_id}"
            )
            health_check['recommendations'].append(
                "Set UPDATE_CHANNEL_ID; dashboard actions will answer 404 until then."
            )

        if config.admin_role_id == PLACEHOLDER_ADMIN_ROLE_ID:
            health_check['warnings'].append("⚠️ Admin role id is not configured")

        if not config.admin_password:
            health_check['warnings'].append("⚠️ Admin password is not configured, dashboard login is disabled")
            health_check['recommendations'].append("Set ADMIN_PASSWORD to enable the admin dashboard.")

        return health_check

    def log_health_check(self) -> None:
        """Log the health check results at a matching level."""
        health_check = self.get_configuration_health_check()
        for error in health_check['errors']:
            self.logger.error(error)
        for warning in health_check['warnings']:
            self.logger.warning(warning)
        for recommendation in health_check['recommendations']:
            self.logger.info(recommendation)
        if health_check['healthy'] and not health_check['warnings']:
            self.logger.info("Configuration health check passed")

    def get_settings_summary(self) -> str:
        config = self._config
        return (
            f"Prefix: {config.prefix} | Port: {config.port} | "
            f"Update channel: {config.update_channel_id} | "
            f"Auto update: {config.auto_update_start:%H:%M}-{config.auto_update_finish:%H:%M} "
            f"{config.auto_update_timezone}"
        )
