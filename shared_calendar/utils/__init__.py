"""Utility functions for the shared calendar service."""

from .error_handler import ErrorHandler, handle_error, register_exception_handlers
from .logging_config import JSONFormatter, setup_logging, configure_structlog, get_logger

__all__ = [
    "ErrorHandler",
    "handle_error",
    "register_exception_handlers",
    "JSONFormatter",
    "setup_logging",
    "configure_structlog",
    "get_logger",
]
