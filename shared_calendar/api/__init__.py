"""HTTP and realtime gateway for the shared calendar service."""

from .app import create_app
from .server import CalendarServer

__all__ = ["create_app", "CalendarServer"]
