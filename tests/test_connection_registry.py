"""Tests for the connection registry and the liveness sweep."""

import asyncio

import pytest

from shared_calendar.services.connection_registry import (
    ConnectionRegistry,
    ConnectionState,
    LivenessSweep,
)


def test_add_and_remove(make_transport):
    registry = ConnectionRegistry()
    record = registry.add(make_transport("a"))

    assert len(registry) == 1
    assert record.state is ConnectionState.ALIVE
    assert registry.remove(record) is True
    assert record.state is ConnectionState.CLOSED
    assert registry.remove(record) is False
    assert len(registry) == 0


def test_responsive_connection_survives_sweeps(make_transport):
    registry = ConnectionRegistry()
    transport = make_transport("responsive")
    record = registry.add(transport)

    async def scenario():
        for _ in range(3):
            assert await registry.sweep() == 0
            assert record.state is ConnectionState.SUSPECT
            registry.mark_alive(record)

    asyncio.run(scenario())
    assert transport.pings == 3
    assert not transport.terminated
    assert len(registry) == 1


def test_silent_connection_pruned_within_two_sweeps(make_transport):
    registry = ConnectionRegistry()
    silent = make_transport("silent")
    registry.add(silent)

    async def scenario():
        first = await registry.sweep()
        second = await registry.sweep()
        return first, second

    assert asyncio.run(scenario()) == (0, 1)
    assert silent.terminated
    assert len(registry) == 0


def test_failed_ping_drops_connection(make_transport):
    registry = ConnectionRegistry()
    broken = make_transport("broken", fail_ping=True)
    healthy = make_transport("healthy")
    registry.add(broken)
    registry.add(healthy)

    assert asyncio.run(registry.sweep()) == 1
    assert broken.terminated
    assert not healthy.terminated
    assert [r.transport for r in registry.open_records()] == [healthy]


def test_closed_record_cannot_be_revived(make_transport):
    registry = ConnectionRegistry()
    record = registry.add(make_transport())
    registry.remove(record)

    registry.mark_alive(record)
    assert record.state is ConnectionState.CLOSED


def test_for_each_open_collects_failures(make_transport):
    registry = ConnectionRegistry()
    registry.add(make_transport("ok"))
    registry.add(make_transport("bad", fail_send=True))

    async def send(record):
        await record.transport.send_text("hello")
        return record.transport.peer

    results = asyncio.run(registry.for_each_open(send))
    outcome = {record.transport.peer: result for record, result in results}

    assert outcome["ok"] == "ok"
    assert isinstance(outcome["bad"], ConnectionError)


def test_close_all_terminates_everything(make_transport):
    registry = ConnectionRegistry()
    transports = [make_transport(str(i)) for i in range(3)]
    for transport in transports:
        registry.add(transport)

    assert asyncio.run(registry.close_all()) == 3
    assert all(t.terminated for t in transports)
    assert len(registry) == 0


class TestLivenessSweep:

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            LivenessSweep(ConnectionRegistry(), interval=0)

    def test_runs_periodically_and_stops(self, make_transport):
        registry = ConnectionRegistry()
        silent = make_transport("silent")
        registry.add(silent)
        sweep = LivenessSweep(registry, interval=0.02)

        async def scenario():
            sweep.start()
            assert sweep.running
            await asyncio.sleep(0.2)
            await sweep.stop()
            return sweep.running

        assert asyncio.run(scenario()) is False
        assert silent.pings == 1
        assert silent.terminated
        assert len(registry) == 0

    def test_stop_without_start_is_a_no_op(self):
        sweep = LivenessSweep(ConnectionRegistry(), interval=1)
        asyncio.run(sweep.stop())
        assert not sweep.running

    def test_survives_a_failing_tick(self):
        class ExplodingRegistry(ConnectionRegistry):
            calls = 0

            async def sweep(self):
                ExplodingRegistry.calls += 1
                raise RuntimeError("boom")

        sweep = LivenessSweep(ExplodingRegistry(), interval=0.01)

        async def scenario():
            sweep.start()
            await asyncio.sleep(0.1)
            still_running = sweep.running
            await sweep.stop()
            return still_running

        assert asyncio.run(scenario()) is True
        assert ExplodingRegistry.calls >= 2


class TestProtocolPong:

    def test_answered_pings_keep_connection_alive(self, make_transport):
        registry = ConnectionRegistry()
        transport = make_transport("browser", answer_pings=True)
        record = registry.add(transport)

        async def scenario():
            return [await registry.sweep() for _ in range(4)]

        assert asyncio.run(scenario()) == [0, 0, 0, 0]
        assert record.state is ConnectionState.ALIVE
        assert transport.pings == 4
        assert not transport.terminated

    def test_late_pong_restores_alive(self, make_transport):
        registry = ConnectionRegistry()
        transport = make_transport("slow")
        record = registry.add(transport)

        async def scenario():
            await registry.sweep()
            assert record.state is ConnectionState.SUSPECT
            transport.pong_waiters[-1].set_result(None)
            await asyncio.sleep(0)
            assert record.state is ConnectionState.ALIVE
            return await registry.sweep()

        assert asyncio.run(scenario()) == 0
        assert len(registry) == 1

    def test_stale_pong_is_ignored(self, make_transport):
        registry = ConnectionRegistry()
        transport = make_transport("stale")
        record = registry.add(transport)

        async def scenario():
            await registry.sweep()
            first_waiter = transport.pong_waiters[-1]
            registry.mark_alive(record)
            await registry.sweep()
            # Pong for the earlier ping does not answer the current one
            first_waiter.set_result(None)
            await asyncio.sleep(0)
            return record.state

        assert asyncio.run(scenario()) is ConnectionState.SUSPECT

    def test_hung_ping_does_not_block_the_sweep(self, make_transport):
        registry = ConnectionRegistry(ping_timeout=0.05)
        hung = make_transport("hung", hang_ping=True)
        silent = make_transport("silent")
        registry.add(hung)
        registry.add(silent)

        async def scenario():
            first = await asyncio.wait_for(registry.sweep(), timeout=1.0)
            second = await asyncio.wait_for(registry.sweep(), timeout=1.0)
            return first, second

        assert asyncio.run(scenario()) == (1, 1)
        assert hung.terminated
        assert silent.pings == 1
        assert silent.terminated
        assert len(registry) == 0

    def test_removed_connection_cancels_pending_pong(self, make_transport):
        registry = ConnectionRegistry()
        transport = make_transport()
        record = registry.add(transport)

        async def scenario():
            await registry.sweep()
            registry.remove(record)
            return transport.pong_waiters[-1].cancelled()

        assert asyncio.run(scenario()) is True
