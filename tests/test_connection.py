"""
Tests for the connection state machine.
"""

import asyncio

import pytest

from as400_gateway.connection import ConnectionState, ConnectionStateMachine
from as400_gateway.errors import AS400ConnectionError, ErrorKind
from as400_gateway.observability import LogLevel


def make_machine(clock, **kwargs):
    options = dict(connect_latency_ms=1, disconnect_latency_ms=1, failure_rate=0.0,
                   inactivity_timeout_s=900, clock=clock)
    options.update(kwargs)
    return ConnectionStateMachine(**options)


@pytest.mark.asyncio
class TestConnectionStateMachine:
    """Test ConnectionStateMachine functionality."""

    async def test_initially_disconnected(self, clock):
        machine = make_machine(clock)

        assert machine.state is ConnectionState.DISCONNECTED
        assert not machine.is_connected()
        assert machine.seconds_until_expiry() is None

    async def test_connect_and_disconnect(self, clock):
        machine = make_machine(clock)

        assert await machine.connect() is True
        assert machine.is_connected()

        await machine.disconnect()
        assert not machine.is_connected()

    async def test_disconnect_when_disconnected_is_noop(self, clock, logger, log_handler):
        machine = make_machine(clock, logger=logger)

        await machine.disconnect()

        assert not machine.is_connected()
        assert "Already disconnected" in log_handler.messages()

    async def test_injected_connect_failure(self, clock, always_fail_rng):
        machine = make_machine(clock, failure_rate=0.05, fault_rng=always_fail_rng)

        with pytest.raises(AS400ConnectionError) as exc_info:
            await machine.connect()

        assert exc_info.value.kind is ErrorKind.CONNECTION_LOST
        assert exc_info.value.recoverable
        assert "Failed to establish connection" in str(exc_info.value)
        assert not machine.is_connected()

    async def test_inactivity_expiry(self, clock, logger, log_handler):
        machine = make_machine(clock, inactivity_timeout_s=900, logger=logger)
        await machine.connect()

        clock.advance(899)
        assert machine.is_connected()

        clock.advance(2)
        assert not machine.is_connected()
        assert "Connection timed out due to inactivity" in log_handler.messages(LogLevel.WARNING)

    async def test_touch_restarts_window(self, clock):
        machine = make_machine(clock, inactivity_timeout_s=900)
        await machine.connect()

        clock.advance(600)
        machine.touch()
        clock.advance(600)

        assert machine.is_connected()
        assert machine.seconds_until_expiry() == pytest.approx(300)

    async def test_touch_does_not_revive_expired_session(self, clock):
        machine = make_machine(clock, inactivity_timeout_s=10)
        await machine.connect()

        clock.advance(11)
        machine.touch()

        assert not machine.is_connected()

    async def test_reconnect_restarts_window(self, clock):
        machine = make_machine(clock, inactivity_timeout_s=900)
        await machine.connect()
        clock.advance(800)

        await machine.connect()
        clock.advance(800)

        assert machine.is_connected()

    async def test_ensure_connected(self, clock):
        machine = make_machine(clock)

        with pytest.raises(AS400ConnectionError) as exc_info:
            machine.ensure_connected({"correlation_id": "cid-1"})
        assert exc_info.value.correlation_id == "cid-1"
        assert "Not connected" in str(exc_info.value)

        await machine.connect()
        machine.ensure_connected()

    async def test_to_dict(self, clock):
        machine = make_machine(clock)
        await machine.connect()

        data = machine.to_dict()
        assert data["state"] == "CONNECTED"
        assert data["seconds_until_expiry"] == pytest.approx(900)

    async def test_commands_refused_while_disconnecting(self, clock):
        machine = make_machine(clock, disconnect_latency_ms=50)
        await machine.connect()

        closing = asyncio.create_task(machine.disconnect())
        await asyncio.sleep(0.01)

        assert machine.state is ConnectionState.DISCONNECTING
        assert not machine.is_connected()
        with pytest.raises(AS400ConnectionError):
            machine.ensure_connected()

        await closing
        assert machine.state is ConnectionState.DISCONNECTED
