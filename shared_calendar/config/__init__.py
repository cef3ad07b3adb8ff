"""Configuration management for the shared calendar service."""

from .models import (
    DisplayDefaults,
    ServiceConfig
)
from .loader import (
    ConfigLoader,
    ConfigurationError,
    load_config,
    create_example_config
)

__all__ = [
    'DisplayDefaults',
    'ServiceConfig',
    'ConfigLoader',
    'ConfigurationError',
    'load_config',
    'create_example_config'
]
