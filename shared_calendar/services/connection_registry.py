"""Registry of live realtime connections and the periodic liveness sweep."""

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import structlog

from .interface import LiveTransport


DEFAULT_PING_TIMEOUT = 5.0


class ConnectionState(str, Enum):
    ALIVE = "alive"
    SUSPECT = "suspect"
    CLOSED = "closed"


@dataclass
class ConnectionRecord:
    """Liveness bookkeeping for one realtime connection."""

    transport: LiveTransport
    connection_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    state: ConnectionState = ConnectionState.ALIVE
    connected_at: float = field(default_factory=time.time)
    last_pong: float = field(default_factory=time.time)
    pong_waiter: Optional["asyncio.Future[None]"] = field(default=None, repr=False)

    @property
    def is_open(self) -> bool:
        return self.state is not ConnectionState.CLOSED


class ConnectionRegistry:
    """Owns the set of open connections.

    Membership only changes through ``add`` and ``remove``; the sweep and the
    broadcast hub work on snapshots taken by ``open_records``.
    """

    def __init__(self, ping_timeout: float = DEFAULT_PING_TIMEOUT):
        self.ping_timeout = ping_timeout
        self._records: Dict[str, ConnectionRecord] = {}
        self.logger = structlog.get_logger(__name__)

    def __len__(self) -> int:
        return len(self._records)

    def add(self, transport: LiveTransport) -> ConnectionRecord:
        record = ConnectionRecord(transport=transport)
        self._records[record.connection_id] = record
        self.logger.info("realtime connection opened", connection_id=record.connection_id,
                         peer=transport.peer, open_connections=len(self._records))
        return record

    def remove(self, record: ConnectionRecord) -> bool:
        """Discard a record. Returns True if it was registered."""
        record.state = ConnectionState.CLOSED
        if record.pong_waiter is not None and not record.pong_waiter.done():
            record.pong_waiter.cancel()
        removed = self._records.pop(record.connection_id, None) is not None
        if removed:
            self.logger.info("realtime connection closed", connection_id=record.connection_id,
                             open_connections=len(self._records))
        return removed

    def mark_alive(self, record: ConnectionRecord) -> None:
        """Liveness acknowledgement received from the client."""
        if record.is_open:
            record.state = ConnectionState.ALIVE
            record.last_pong = time.time()

    def open_records(self) -> List[ConnectionRecord]:
        return [record for record in self._records.values() if record.is_open]

    async def for_each_open(
        self,
        action: Callable[[ConnectionRecord], Awaitable[Any]]
    ) -> List[Tuple[ConnectionRecord, Any]]:
        """
        Run ``action`` concurrently for every open connection.

        Returns:
            (record, result) pairs; a failed action yields its exception as the result
        """
        records = self.open_records()
        results = await asyncio.gather(*(action(record) for record in records), return_exceptions=True)
        return list(zip(records, results))

    async def _drop(self, record: ConnectionRecord) -> None:
        self.remove(record)
        try:
            await asyncio.wait_for(record.transport.terminate(), timeout=self.ping_timeout)
        except Exception as e:
            self.logger.debug("terminate failed", connection_id=record.connection_id, error=str(e))

    def _pong_received(self, record: ConnectionRecord, waiter: "asyncio.Future[None]") -> None:
        # Only the waiter of the latest ping counts
        if record.pong_waiter is not waiter or waiter.cancelled() or waiter.exception() is not None:
            return
        record.pong_waiter = None
        self.mark_alive(record)

    async def _send_ping(self, record: ConnectionRecord) -> None:
        record.state = ConnectionState.SUSPECT
        waiter = await asyncio.wait_for(record.transport.ping(), timeout=self.ping_timeout)
        record.pong_waiter = waiter
        if waiter.done():
            self._pong_received(record, waiter)
        else:
            waiter.add_done_callback(lambda done: self._pong_received(record, done))

    async def sweep(self) -> int:
        """
        One liveness tick.

        Suspect connections (no pong since the previous tick) are terminated
        and removed; alive ones are demoted to suspect and pinged. Pings run
        concurrently and each is bounded by ``ping_timeout``; a ping that
        fails or times out drops its connection.

        Returns:
            Number of connections terminated
        """
        suspects = [record for record in self.open_records() if record.state is ConnectionState.SUSPECT]
        for record in suspects:
            self.logger.info("terminating unresponsive connection", connection_id=record.connection_id)
        await asyncio.gather(*(self._drop(record) for record in suspects))

        results = await self.for_each_open(self._send_ping)
        failed = []
        for record, result in results:
            if isinstance(result, BaseException):
                self.logger.info("liveness ping failed", connection_id=record.connection_id,
                                 error=type(result).__name__)
                failed.append(record)
        await asyncio.gather(*(self._drop(record) for record in failed))

        return len(suspects) + len(failed)

    async def close_all(self) -> int:
        """Terminate every connection, used on shutdown."""
        records = list(self._records.values())
        await asyncio.gather(*(self._drop(record) for record in records))
        return len(records)


class LivenessSweep:
    """Cancellable background task that runs ``registry.sweep`` at a fixed interval."""

    def __init__(self, registry: ConnectionRegistry, interval: float = 30.0):
        if interval <= 0:
            raise ValueError("Sweep interval must be positive")
        self.registry = registry
        self.interval = interval
        self._task: Optional[asyncio.Task] = None
        self.logger = structlog.get_logger(__name__)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the sweep on the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="liveness-sweep")
        self.logger.info("liveness sweep started", interval=self.interval)

    async def stop(self) -> None:
        """Cancel the sweep and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self.logger.info("liveness sweep stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                terminated = await self.registry.sweep()
            except Exception:
                self.logger.exception("liveness sweep failed")
                continue
            if terminated:
                self.logger.info("liveness sweep pruned connections", terminated=terminated,
                                 open_connections=len(self.registry))
