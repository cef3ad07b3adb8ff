"""Abstract interface for realtime client transports."""

import asyncio
from abc import ABC, abstractmethod


class LiveTransport(ABC):
    """A persistent connection to one realtime client.

    The registry, sweep and broadcast hub only talk to connections through
    this interface, never to a concrete socket type.
    """

    @property
    def peer(self) -> str:
        """Printable description of the remote end, for logs."""
        return "unknown"

    @abstractmethod
    async def send_text(self, message: str) -> None:
        """Send one text frame.

        Raises:
            Exception: Any transport error; callers treat it as a failed delivery
        """
        pass

    @abstractmethod
    async def ping(self) -> "asyncio.Future[None]":
        """Send a transport-level liveness ping.

        Returns:
            A pong waiter that completes when the peer acknowledges the ping

        Raises:
            Exception: If the ping could not be sent
        """
        pass

    @abstractmethod
    async def terminate(self) -> None:
        """Forcibly close the connection. Must not raise if already closed."""
        pass
