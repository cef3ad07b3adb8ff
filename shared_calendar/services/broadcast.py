"""Fan-out of change notifications to realtime clients."""

import asyncio
from typing import Any, Dict

import structlog

from ..models.core import BroadcastEnvelope, EventKind
from ..models.requests import DataUpdatePayload
from .connection_registry import ConnectionRecord, ConnectionRegistry


class BroadcastHub:
    """Pushes full-state envelopes to every open connection.

    Delivery is best effort: a failed or timed out send is logged and does not
    affect the other connections. Nothing is queued for clients that are not
    connected.
    """

    def __init__(self, registry: ConnectionRegistry, send_timeout: float = 5.0):
        self.registry = registry
        self.send_timeout = send_timeout
        self.logger = structlog.get_logger(__name__)

    async def notify(self, kind: EventKind, payload: Any) -> int:
        """
        Send one envelope to all open connections.

        Returns:
            Number of connections the message was handed to
        """
        envelope = BroadcastEnvelope(kind=kind, payload=payload)
        message = envelope.to_wire()

        async def deliver(record: ConnectionRecord) -> None:
            await asyncio.wait_for(record.transport.send_text(message), timeout=self.send_timeout)

        results = await self.registry.for_each_open(deliver)

        delivered = 0
        for record, result in results:
            if isinstance(result, BaseException):
                self.logger.warning("broadcast send failed", kind=envelope.kind,
                                    connection_id=record.connection_id,
                                    error=type(result).__name__)
            else:
                delivered += 1

        self.logger.info("broadcast", kind=envelope.kind, delivered=delivered, targets=len(results))
        return delivered

    async def document_changed(self, year: int, document: Dict[str, Any]) -> int:
        payload = DataUpdatePayload(year=year, data=document).model_dump()
        return await self.notify(EventKind.DATA_UPDATE, payload)

    async def config_changed(self, config: Dict[str, Any]) -> int:
        return await self.notify(EventKind.CONFIG_UPDATE, config)
