import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlparse

from dotenv import dotenv_values

from jellyfin_mcp.domain.entities import Credentials


VERSION = "0.1.0"

DEFAULT_TIMEOUT = 10.0
DEFAULT_SPEC_PATH = 'jellyfin-mcp.spec.yaml'


class ConfigError(Exception):
    """Configuration error."""
    pass


@dataclass(frozen=True)
class ServerConfig:
    """Connection settings for the media server."""

    base_url: str
    timeout: float = DEFAULT_TIMEOUT


class ConfigManager:
    """Reads settings from the process environment and an optional .env file.

    The process environment always wins over the file, so a value exported in
    the shell overrides the one written in .env.
    """

    def __init__(self, env_file: Optional[str] = None,
                 environ: Optional[Mapping[str, str]] = None):
        """Initialize config manager."""
        self.env_file = Path(env_file) if env_file else Path.cwd() / '.env'
        self._environ = environ if environ is not None else os.environ

    def load_env_vars(self) -> Dict[str, str]:
        """Load variables from the .env file (if present) overlaid by the environment."""
        env_vars: Dict[str, str] = {}

        if self.env_file.exists():
            try:
                for key, value in dotenv_values(self.env_file).items():
                    if value is not None:
                        env_vars[key] = value
            except (IOError, UnicodeDecodeError) as e:
                raise ConfigError(f"Failed to load .env file {self.env_file}: {e}")

        for key, value in self._environ.items():
            if key.startswith('JELLYFIN_'):
                env_vars[key] = value

        return env_vars

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get a single setting; blank values count as unset."""
        value = self.load_env_vars().get(key)
        if value is None or not str(value).strip():
            return default
        return str(value).strip()

    def get_server_config(self) -> ServerConfig:
        """Get media server connection settings."""
        base_url = self.get('JELLYFIN_BASE_URL')
        if not base_url:
            raise ConfigError("JELLYFIN_BASE_URL not found in environment")

        parsed = urlparse(base_url)
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            raise ConfigError(f"JELLYFIN_BASE_URL must be an http(s) URL, got {base_url!r}")

        raw_timeout = self.get('JELLYFIN_TIMEOUT')
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
        except ValueError:
            raise ConfigError(f"JELLYFIN_TIMEOUT must be a number of seconds, got {raw_timeout!r}")
        if timeout <= 0:
            raise ConfigError("JELLYFIN_TIMEOUT must be positive")

        return ServerConfig(base_url=base_url.rstrip('/'), timeout=timeout)

    def get_credentials(self) -> Credentials:
        """Get out-of-band credentials for the resolver chain."""
        return Credentials(
            access_token=self.get('JELLYFIN_TOKEN'),
            user_id=self.get('JELLYFIN_USER_ID'),
            username=self.get('JELLYFIN_USERNAME'),
            password=self.get('JELLYFIN_PASSWORD'),
        )

    def get_spec_path(self) -> str:
        """Get the path of the YAML tool specification."""
        return self.get('JELLYFIN_SPEC_PATH', DEFAULT_SPEC_PATH)

    def get_log_level(self) -> str:
        level = self.get('JELLYFIN_LOG_LEVEL', 'INFO').upper()
        if level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ConfigError(f"Unsupported JELLYFIN_LOG_LEVEL: {level}")
        return level

    def get_log_file(self) -> Optional[str]:
        return self.get('JELLYFIN_LOG_FILE')

    def validate_configuration(self) -> Dict[str, bool]:
        """Report which settings are present."""
        credentials = self.get_credentials()
        return {
            'base_url': bool(self.get('JELLYFIN_BASE_URL')),
            'token': bool(credentials.access_token),
            'user_id': bool(credentials.user_id),
            'username': bool(credentials.username),
            'password': bool(credentials.password),
        }

    def get_config_summary(self) -> Dict[str, Any]:
        """Get configuration summary (without sensitive data)."""
        validation = self.validate_configuration()
        credentials = self.get_credentials()

        return {
            'env_file': str(self.env_file),
            'env_file_exists': self.env_file.exists(),
            'base_url': self.get('JELLYFIN_BASE_URL'),
            'spec_path': self.get_spec_path(),
            'validation': validation,
            'has_token_credentials': credentials.has_token,
            'has_password_credentials': credentials.has_password,
        }


# Global instance
config_manager = ConfigManager()


def get_config_manager() -> ConfigManager:
    """Get global config manager instance."""
    return config_manager


def setup_config(env_file: Optional[str] = None) -> ConfigManager:
    """Setup configuration with a custom .env file."""
    global config_manager
    config_manager = ConfigManager(env_file)
    return config_manager
