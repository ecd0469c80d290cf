"""
Connection State Machine - Simulated TN5250 session lifecycle.

States: DISCONNECTED (initial) -> CONNECTED -> DISCONNECTING -> DISCONNECTED.
Commands are refused as soon as a disconnect starts.

Inactivity expiry is evaluated lazily: the last activity time is stored and
every state read first checks whether the inactivity window has elapsed,
dropping the session before answering. No background timer is needed.
"""

import asyncio
import random
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .errors import AS400ConnectionError
from .observability import GatewayLogger, null_logger


class ConnectionState(Enum):
    """Session states."""
    DISCONNECTED = "DISCONNECTED"
    CONNECTED = "CONNECTED"
    DISCONNECTING = "DISCONNECTING"


class ConnectionStateMachine:
    """Tracks the simulated AS/400 session.

    Args:
        connect_latency_ms: Simulated handshake time.
        disconnect_latency_ms: Simulated sign-off time.
        failure_rate: Probability that connect() fails.
        inactivity_timeout_s: Idle time after which the session is dropped.
        clock: Monotonic time source in seconds.
        fault_rng: Random source used for injected connect failures.
        logger: Structured logger.
    """

    def __init__(self,
                 connect_latency_ms: int = 800,
                 disconnect_latency_ms: int = 300,
                 failure_rate: float = 0.05,
                 inactivity_timeout_s: float = 15 * 60,
                 clock: Callable[[], float] = time.monotonic,
                 fault_rng: Optional[random.Random] = None,
                 logger: Optional[GatewayLogger] = None):
        self.connect_latency_ms = connect_latency_ms
        self.disconnect_latency_ms = disconnect_latency_ms
        self.failure_rate = failure_rate
        self.inactivity_timeout_s = inactivity_timeout_s
        self._clock = clock
        self._fault_rng = fault_rng or random.Random()
        self._logger = logger or null_logger()

        self._state = ConnectionState.DISCONNECTED
        self._last_activity: Optional[float] = None
        self._connected_since: Optional[float] = None
        self._lock = asyncio.Lock()

    @property
    def state(self) -> ConnectionState:
        self._expire_if_idle()
        return self._state

    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    def _expire_if_idle(self) -> None:
        if self._state is not ConnectionState.CONNECTED or self._last_activity is None:
            return
        idle = self._clock() - self._last_activity
        if idle > self.inactivity_timeout_s:
            self._state = ConnectionState.DISCONNECTED
            self._last_activity = None
            self._connected_since = None
            self._logger.warning("Connection timed out due to inactivity", extra={
                "idle_seconds": round(idle, 3),
                "inactivity_timeout_s": self.inactivity_timeout_s,
            })

    async def connect(self) -> bool:
        """Establish the session.

        Returns:
            True once connected.

        Raises:
            AS400ConnectionError: If the simulated handshake fails.
        """
        async with self._lock:
            self._logger.info("Connecting to AS/400 system...")
            await asyncio.sleep(self.connect_latency_ms / 1000)

            if self._fault_rng.random() < self.failure_rate:
                self._logger.error("Failed to establish connection to AS/400 host")
                raise AS400ConnectionError("Failed to establish connection to AS/400 host")

            now = self._clock()
            self._state = ConnectionState.CONNECTED
            self._connected_since = now
            self._last_activity = now
            self._logger.info("Connected to AS/400 successfully")
            return True

    async def disconnect(self) -> None:
        """Close the session; no-op when already disconnected."""
        async with self._lock:
            if not self.is_connected():
                self._logger.info("Already disconnected")
                return

            self._state = ConnectionState.DISCONNECTING
            self._logger.info("Disconnecting from AS/400...")
            try:
                await asyncio.sleep(self.disconnect_latency_ms / 1000)
            finally:
                self._state = ConnectionState.DISCONNECTED
                self._last_activity = None
                self._connected_since = None
            self._logger.info("Disconnected from AS/400")

    def ensure_connected(self, context: Optional[Dict[str, Any]] = None) -> None:
        """Raise AS400ConnectionError unless the session is live."""
        if not self.is_connected():
            raise AS400ConnectionError(
                "Not connected to AS/400 system. Call connect() first.",
                context=context,
            )

    def touch(self) -> None:
        """Record activity, restarting the inactivity window."""
        if self.is_connected():
            self._last_activity = self._clock()

    def seconds_until_expiry(self) -> Optional[float]:
        if not self.is_connected():
            return None
        return max(0.0, self.inactivity_timeout_s - (self._clock() - self._last_activity))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "state": self.state.value,
            "seconds_until_expiry": self.seconds_until_expiry(),
            "inactivity_timeout_s": self.inactivity_timeout_s,
        }
