"""Self-hosted shared calendar with live multi-client synchronization."""

__version__ = "1.0.0"
