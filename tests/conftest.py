import random
from datetime import datetime, timezone
from typing import Any, Dict

import pytest
import pytest_asyncio

from as400_gateway import AS400Gateway, RateLimitConfig
from as400_gateway.observability import GatewayLogger, LogLevel, MemoryLogHandler


REFERENCE_TIME = datetime(2025, 10, 31, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_gateway(**overrides: Any) -> AS400Gateway:
    """Gateway with short simulated delays and no injected connect failures."""
    options: Dict[str, Any] = dict(
        seed="t1",
        default_timeout_ms=5000,
        rate_limit=RateLimitConfig(tokens_per_second=5, capacity=5),
        processing_delay_ms=20,
        connect_latency_ms=5,
        disconnect_latency_ms=5,
        connect_failure_rate=0.0,
        reference_time=REFERENCE_TIME,
    )
    options.update(overrides)
    return AS400Gateway(**options)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def log_handler():
    return MemoryLogHandler()


@pytest.fixture
def logger(log_handler):
    logger = GatewayLogger("test", LogLevel.DEBUG)
    logger.add_handler(log_handler)
    return logger


@pytest.fixture
def gateway(logger):
    return make_gateway(logger=logger)


@pytest_asyncio.fixture
async def connected_gateway(gateway):
    await gateway.connect()
    yield gateway
    await gateway.disconnect()


@pytest.fixture
def always_fail_rng():
    rng = random.Random(0)
    rng.random = lambda: 0.0
    return rng
