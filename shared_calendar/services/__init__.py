"""Session, document, connection and broadcast services."""

from .interface import LiveTransport
from .session_manager import SessionStore
from .document_store import DocumentStore, validate_document, validate_config
from .connection_registry import ConnectionRecord, ConnectionRegistry, ConnectionState, LivenessSweep
from .broadcast import BroadcastHub

__all__ = [
    "LiveTransport",
    "SessionStore",
    "DocumentStore",
    "validate_document",
    "validate_config",
    "ConnectionRecord",
    "ConnectionRegistry",
    "ConnectionState",
    "LivenessSweep",
    "BroadcastHub",
]
