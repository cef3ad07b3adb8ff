"""Configuration loader for the shared calendar service."""

import os
import re
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from pydantic import ValidationError
from dotenv import load_dotenv

from .models import ServiceConfig


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""
    pass


# Environment variable -> (config section or None, field name, converter)
_ENV_FIELDS = {
    'ADMIN_PASSWORD': (None, 'admin_password', str),
    'HOST': (None, 'host', str),
    'PORT': (None, 'port', int),
    'DATA_DIR': (None, 'data_dir', str),
    'SESSION_TTL': (None, 'session_ttl', int),
    'SWEEP_INTERVAL': (None, 'sweep_interval', float),
    'BROADCAST_SEND_TIMEOUT': (None, 'send_timeout', float),
    'LOG_LEVEL': (None, 'log_level', str),
    'LOG_FILE': (None, 'log_file', str),
    'JSON_LOGS': (None, 'json_logs', lambda v: v.lower() == 'true'),
    'CORS_ORIGINS': (None, 'cors_origins', lambda v: [o.strip() for o in v.split(',') if o.strip()]),
    'PAGE_HEADER_NAME': ('display', 'header_name', str),
    'TIMEZONE': ('display', 'timezone', str),
    'PAGE_BANNER_HTML': ('display', 'banner_html', str),
    'HEADER_STYLE': ('display', 'header_style', str),
    'OWNER_NAME': ('display', 'owner_name', str),
}


class ConfigLoader:
    """Loads and validates configuration from multiple sources."""

    def __init__(self, config_file: Optional[str] = None, env_file: Optional[str] = None):
        """Initialize the configuration loader.

        Args:
            config_file: Optional path to YAML configuration file
            env_file: Optional path to .env file (defaults to .env in current directory)
        """
        self.config_file = config_file or "config.yaml"
        self.env_file = env_file or ".env"

        # Load .env file if it exists
        self._load_env_file()

    def _load_env_file(self) -> None:
        """Load environment variables from .env file if it exists."""
        env_path = Path(self.env_file)
        if env_path.exists():
            load_dotenv(env_path)
        elif self.config_file:
            config_dir_env = Path(self.config_file).parent / ".env"
            if config_dir_env.exists():
                load_dotenv(config_dir_env)

    def load_config(self) -> ServiceConfig:
        """Load configuration from the YAML file and environment variables.

        Returns:
            ServiceConfig: Validated service configuration

        Raises:
            ConfigurationError: If configuration loading or validation fails
        """
        try:
            config_data = {}

            yaml_config = self._load_yaml_config()
            if yaml_config:
                config_data.update(yaml_config)

            # Environment takes precedence over the file
            env_config = self._load_env_config()
            config_data = self._merge_configs(config_data, env_config)

            return ServiceConfig(**config_data)

        except ValidationError as e:
            error_details = self._format_validation_errors(e)
            raise ConfigurationError(f"Configuration validation failed:\n{error_details}")
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration: {str(e)}")

    def _load_yaml_config(self) -> Optional[Dict[str, Any]]:
        """Load configuration from YAML file.

        Returns:
            Dict containing YAML configuration or None if file doesn't exist
        """
        config_path = Path(self.config_file)
        if not config_path.exists():
            return None

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = self._substitute_env_vars(f.read())
                data = yaml.safe_load(content) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {self.config_file}: {str(e)}")
        except OSError as e:
            raise ConfigurationError(f"Failed to read {self.config_file}: {str(e)}")

        if not isinstance(data, dict):
            raise ConfigurationError(f"Top level of {self.config_file} must be a mapping")
        return data

    def _load_env_config(self) -> Dict[str, Any]:
        """Load configuration from environment variables.

        Returns:
            Dict containing environment-based configuration
        """
        config: Dict[str, Any] = {}

        for env_name, (section, field, convert) in _ENV_FIELDS.items():
            raw = os.getenv(env_name)
            if raw is None or raw == '':
                continue
            try:
                value = convert(raw)
            except ValueError:
                raise ConfigurationError(f"Invalid value for {env_name}: {raw!r}")

            if section is None:
                config[field] = value
            else:
                config.setdefault(section, {})[field] = value

        return config

    def _merge_configs(self, yaml_config: Dict[str, Any], env_config: Dict[str, Any]) -> Dict[str, Any]:
        """Merge YAML and environment configurations with env taking precedence.

        Args:
            yaml_config: Configuration from YAML file
            env_config: Configuration from environment variables

        Returns:
            Merged configuration dictionary
        """
        merged = yaml_config.copy()

        for key, value in env_config.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = {**merged[key], **value}
            else:
                merged[key] = value

        return merged

    def _format_validation_errors(self, error: ValidationError) -> str:
        """Format Pydantic validation errors into readable messages."""
        error_messages = []
        for err in error.errors():
            field_path = " -> ".join(str(loc) for loc in err['loc'])
            error_messages.append(f"  {field_path}: {err['msg']}")

        return "\n".join(error_messages)

    def load_from_file(self, config_file: str) -> ServiceConfig:
        """Load configuration from a specific YAML file, ignoring the environment.

        Raises:
            FileNotFoundError: If the file does not exist
            ConfigurationError: If configuration loading or validation fails
        """
        config_path = Path(config_file)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_file}")

        original_file = self.config_file
        self.config_file = config_file
        try:
            config_data = self._load_yaml_config() or {}
            return ServiceConfig(**config_data)
        except ValidationError as e:
            error_details = self._format_validation_errors(e)
            raise ConfigurationError(f"Configuration validation failed:\n{error_details}")
        finally:
            self.config_file = original_file

    def _substitute_env_vars(self, content: str) -> str:
        """Substitute ${VAR_NAME} and ${VAR_NAME:-default} references in YAML content."""
        pattern = r'\$\{([^}]+)\}'

        def replace_var(match):
            var_expr = match.group(1)
            if ':-' in var_expr:
                var_name, default_value = var_expr.split(':-', 1)
                return os.getenv(var_name.strip(), default_value.strip())
            value = os.getenv(var_expr.strip())
            return value if value is not None else match.group(0)

        return re.sub(pattern, replace_var, content)


def load_config(config_file: Optional[str] = None, env_file: Optional[str] = None) -> ServiceConfig:
    """Convenience function to load configuration.

    Raises:
        ConfigurationError: If configuration loading or validation fails
    """
    loader = ConfigLoader(config_file, env_file)
    return loader.load_config()


def create_example_config() -> Dict[str, Any]:
    """Create an example configuration dictionary."""
    return {
        "admin_password": "${ADMIN_PASSWORD}",
        "host": "0.0.0.0",
        "port": 80,
        "data_dir": "./data",
        "session_ttl": 28800,
        "sweep_interval": 30,
        "send_timeout": 5,
        "log_level": "INFO",
        "json_logs": False,
        "cors_origins": ["*"],
        "display": {
            "header_name": None,
            "timezone": "UTC",
            "banner_html": None,
            "header_style": "simple",
            "owner_name": ""
        }
    }
