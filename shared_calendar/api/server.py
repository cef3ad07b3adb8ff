"""CalendarServer: coordinates sessions, storage, realtime connections and broadcasts."""

import time
from typing import Any, Dict, Optional

from fastapi import WebSocket

from .. import __version__
from ..config.models import ServiceConfig
from ..models.core import CalendarConfig, empty_document
from ..models.errors import AuthorizationException, PersistenceException
from ..services.broadcast import BroadcastHub
from ..services.connection_registry import ConnectionRegistry, LivenessSweep
from ..services.document_store import DocumentStore, validate_config, validate_document
from ..services.session_manager import SessionStore
from ..utils.logging_config import get_logger
from .transport import WebSocketTransport


class CalendarServer:
    """Owns every stateful component of the service for the lifetime of the app.

    Request handlers hold no state of their own; everything they need is
    reached through this object, which the application lifespan starts and
    stops.
    """

    def __init__(self, config: ServiceConfig):
        self.config = config
        self.logger = get_logger(__name__)
        self.start_time = time.time()

        self.sessions = SessionStore(config.admin_password, session_ttl=config.session_ttl)
        self.documents = DocumentStore(config.data_dir)
        self.registry = ConnectionRegistry(ping_timeout=config.send_timeout)
        self.hub = BroadcastHub(self.registry, send_timeout=config.send_timeout)
        self.sweep = LivenessSweep(self.registry, interval=config.sweep_interval)

    async def startup(self) -> None:
        self.sweep.start()
        self.logger.info(f"Calendar server started, data directory {self.config.data_dir}")

    async def shutdown(self) -> None:
        await self.sweep.stop()
        closed = await self.registry.close_all()
        self.sessions.close()
        self.logger.info(f"Calendar server stopped, closed {closed} realtime connections")

    # --- Authorization ---

    def login(self, password: Optional[str]) -> str:
        """Raises AuthenticationException on a wrong password."""
        return self.sessions.authenticate(password)

    def authorize(self, authorization: Optional[str]) -> str:
        """
        Check an Authorization header value.

        Returns:
            The validated bearer token

        Raises:
            AuthorizationException: MISSING_TOKEN when no token is supplied,
                INVALID_TOKEN when the token is unknown, revoked or expired
        """
        scheme, _, credentials = (authorization or '').strip().partition(' ')
        token = credentials.strip()

        if not scheme or not token:
            raise AuthorizationException(
                error_code=AuthorizationException.MISSING_TOKEN,
                message="Admin token required"
            )

        if scheme.lower() != 'bearer' or not self.sessions.validate(token):
            self.sessions.revoke(token)
            raise AuthorizationException(
                error_code=AuthorizationException.INVALID_TOKEN,
                message="Admin token is invalid or expired"
            )

        return token

    # --- Documents ---

    async def get_document(self, year: Optional[int]) -> Dict[str, Any]:
        if year is None:
            return empty_document()
        document = await self.documents.read(year)
        return document if document is not None else empty_document()

    async def save_document(self, year: int, document: Any) -> int:
        """
        Persist a whole document and push it to every open connection.

        Returns:
            Number of connections the change was delivered to

        Raises:
            ValidationException: If the document shape is invalid
            PersistenceException: If the document could not be stored
        """
        validate_document(year, document)

        if not await self.documents.write(year, document):
            raise PersistenceException(
                error_code="SAVE_FAILED",
                message="Error saving data to file.",
                details={"year": year}
            )

        # Broadcast before answering the writer so both see the same stored state
        return await self.hub.document_changed(year, document)

    # --- Configuration ---

    def default_config(self) -> Dict[str, Any]:
        return CalendarConfig.from_defaults(self.config.display).model_dump()

    async def get_config(self) -> Dict[str, Any]:
        stored = await self.documents.read_config()
        return stored if stored is not None else self.default_config()

    async def save_config(self, config: Any) -> Dict[str, Any]:
        """
        Replace the configuration record and broadcast it.

        Raises:
            ValidationException: If the configuration is malformed
            PersistenceException: If the record could not be stored
        """
        validate_config(config)

        record = await self.documents.write_config(config)
        if record is None:
            raise PersistenceException(
                error_code="CONFIG_SAVE_FAILED",
                message="Error saving configuration."
            )

        await self.hub.config_changed(record)
        return record

    # --- Realtime ---

    async def handle_realtime(self, websocket: WebSocket) -> None:
        """Serve one realtime connection until the client goes away."""
        await websocket.accept()
        record = self.registry.add(WebSocketTransport(websocket))
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                # Clients only send liveness acknowledgements
                self.registry.mark_alive(record)
        finally:
            self.registry.remove(record)

    # --- Health ---

    def health_check(self) -> Dict[str, Any]:
        return {
            "status": "healthy" if self.sweep.running else "degraded",
            "version": __version__,
            "uptime": time.time() - self.start_time,
            "active_sessions": self.sessions.active_count,
            "open_connections": len(self.registry),
            "sweep_running": self.sweep.running,
            "stored_years": self.documents.list_years(),
        }
