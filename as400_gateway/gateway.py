"""
AS/400 Gateway - In-process simulation of a legacy AS/400 host.

This module provides the AS400Gateway class, the entry point callers use:
- connect / disconnect with simulated latency and inactivity expiry
- run_command: connection gate -> rate limiter -> timeout-protected interpreter
- deterministic claims dataset generated once at construction
"""

import random
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from .claims import ClaimGenerator, MockClaim
from .config import DEFAULT_SEED, GatewayConfig
from .connection import ConnectionStateMachine
from .correlation import CorrelationIdGenerator
from .errors import AS400Error
from .executor import TimeoutExecutor
from .interpreter import CommandInterpreter
from .observability import GatewayLogger, create_logger, null_logger
from .rate_limiter import RateLimitConfig, TokenBucketRateLimiter


@dataclass
class LegacyResponse:
    """Result of a successful command."""
    data: List[Dict[str, Any]]
    screen_buffer: str
    execution_time_ms: float
    correlation_id: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "data": self.data,
            "screen_buffer": self.screen_buffer,
            "execution_time_ms": self.execution_time_ms,
            "correlation_id": self.correlation_id,
        }


class AS400Gateway:
    """Simulated AS/400 gateway.

    Commands issued concurrently share one rate limiter and one session.
    Errors are raised to the caller as AS400Error subclasses; the gateway
    never retries on its own.
    """

    def __init__(self,
                 seed: str = DEFAULT_SEED,
                 default_timeout_ms: int = 5000,
                 rate_limit: Optional[RateLimitConfig] = None,
                 dataset_size: int = 100,
                 processing_delay_ms: int = 1500,
                 connect_latency_ms: int = 800,
                 disconnect_latency_ms: int = 300,
                 connect_failure_rate: float = 0.05,
                 inactivity_timeout_s: float = 15 * 60,
                 logger: Optional[GatewayLogger] = None,
                 clock: Callable[[], float] = time.monotonic,
                 fault_rng: Optional[random.Random] = None,
                 reference_time: Optional[datetime] = None):
        """Initialize the gateway.

        Args:
            seed: Seed for the claims dataset.
            default_timeout_ms: Deadline for commands without an override.
            rate_limit: Token bucket settings (5 tokens/s, capacity 5 by default).
            dataset_size: Number of claims generated at construction.
            processing_delay_ms: Simulated host processing time per command.
            connect_latency_ms: Simulated handshake time.
            disconnect_latency_ms: Simulated sign-off time.
            connect_failure_rate: Probability that connect() fails.
            inactivity_timeout_s: Idle time before the session drops.
            logger: Structured logger; records are discarded when omitted.
            clock: Monotonic time source shared by limiter and session.
            fault_rng: Random source for injected connect failures.
            reference_time: Anchor for generated claim ids and dates. Defaults to
                the start of the current UTC day, so the same seed yields a
                different dataset after UTC midnight; pass it explicitly when
                runs must be reproducible across days.
        """
        self._logger = logger or null_logger()
        self.seed = seed
        self.default_timeout_ms = default_timeout_ms

        self._generator = ClaimGenerator(seed, reference_time=reference_time)
        self._claims = tuple(self._generator.generate_claims(dataset_size))

        self._rate_limiter = TokenBucketRateLimiter(
            rate_limit or RateLimitConfig(), clock=clock,
            logger=self._logger.child("rate_limiter"),
        )
        self._connection = ConnectionStateMachine(
            connect_latency_ms=connect_latency_ms,
            disconnect_latency_ms=disconnect_latency_ms,
            failure_rate=connect_failure_rate,
            inactivity_timeout_s=inactivity_timeout_s,
            clock=clock,
            fault_rng=fault_rng,
            logger=self._logger.child("connection"),
        )
        self._interpreter = CommandInterpreter(self._claims, processing_delay_ms=processing_delay_ms)
        self._executor = TimeoutExecutor(default_timeout_ms, logger=self._logger.child("executor"))
        self._correlation_ids = CorrelationIdGenerator()

        self._logger.info("AS/400 gateway initialized", extra={
            "seed": seed,
            "claims": len(self._claims),
            "default_timeout_ms": default_timeout_ms,
        })

    @classmethod
    def from_config(cls, config: GatewayConfig, logger: Optional[GatewayLogger] = None,
                    **kwargs: Any) -> "AS400Gateway":
        """Build a gateway from a GatewayConfig.

        When no logger is given, one is created from the logging section.
        Extra keyword arguments are passed to the constructor.
        """
        if logger is None:
            logger = create_logger(
                "as400_gateway",
                level=config.logging.level,
                use_json=config.logging.format == "json",
                log_file=config.logging.file_path,
            )
        options: Dict[str, Any] = dict(
            seed=config.seed,
            default_timeout_ms=config.default_timeout_ms,
            rate_limit=config.rate_limit,
            dataset_size=config.dataset_size,
            processing_delay_ms=config.simulation.processing_delay_ms,
            connect_latency_ms=config.connection.connect_latency_ms,
            disconnect_latency_ms=config.connection.disconnect_latency_ms,
            connect_failure_rate=config.connection.failure_rate,
            inactivity_timeout_s=config.connection.inactivity_timeout_s,
            logger=logger,
        )
        options.update(kwargs)
        return cls(**options)

    async def __aenter__(self) -> "AS400Gateway":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()

    async def connect(self) -> bool:
        """Establish the session.

        Raises:
            AS400ConnectionError: If the simulated handshake fails.
        """
        correlation_id = self._correlation_ids.next_id()
        with self._logger.correlation_context(correlation_id):
            try:
                return await self._connection.connect()
            except AS400Error as e:
                e.context.setdefault("correlation_id", correlation_id)
                raise

    async def disconnect(self) -> None:
        """Close the session. Never raises."""
        await self._connection.disconnect()

    def is_connected(self) -> bool:
        return self._connection.is_connected()

    async def run_command(self, command: str, timeout_ms: Optional[int] = None,
                          correlation_id: Optional[str] = None) -> LegacyResponse:
        """Execute a command on the simulated host.

        Args:
            command: Command text (SELECT, INSERT, COUNT, SHOW TABLES).
            timeout_ms: Deadline override for this call.
            correlation_id: Caller-supplied id echoed in the response.

        Returns:
            LegacyResponse with rows, screen buffer, timing and correlation id.

        Raises:
            AS400ConnectionError: If not connected.
            AS400RateLimitError: If the rate limiter queue is full.
            AS400TimeoutError: If the deadline elapses.
            AS400InvalidCommandError: If the command is not supported.
            AS400UnknownError: On unexpected internal failures.
        """
        started_at = time.perf_counter()
        correlation_id = self._correlation_ids.resolve(correlation_id)
        context = {"correlation_id": correlation_id, "command": command}

        with self._logger.correlation_context(correlation_id):
            self._logger.debug("Executing command", extra={"command": command})
            try:
                self._connection.ensure_connected(context)
                await self._rate_limiter.acquire()
                result = await self._executor.run(
                    lambda: self._interpreter.execute(command),
                    timeout_ms=timeout_ms,
                    context=context,
                    started_at=started_at,
                )
            except AS400Error as e:
                e.context.setdefault("correlation_id", correlation_id)
                self._logger.error("Command failed", extra={
                    "command": command,
                    "kind": e.kind.value,
                    "recoverable": e.recoverable,
                }, exc_info=e)
                raise

            self._connection.touch()
            self._logger.info("Command completed", extra={
                "command": command,
                "rows": len(result.value.rows),
                "execution_time_ms": round(result.elapsed_ms, 2),
            })

        return LegacyResponse(
            data=result.value.rows,
            screen_buffer=result.value.screen_buffer,
            execution_time_ms=result.elapsed_ms,
            correlation_id=correlation_id,
        )

    def get_mock_claims(self) -> List[MockClaim]:
        """Copy of the claims dataset."""
        return list(self._claims)

    def get_rate_limiter_status(self) -> Dict[str, int]:
        return self._rate_limiter.get_status()

    def get_capabilities(self) -> Dict[str, Any]:
        """Static description of the gateway's behaviour and settings."""
        limiter = self._rate_limiter.config
        return {
            "rate_limiter": {
                "algorithm": "Token Bucket",
                "capacity": limiter.capacity,
                "tokens_per_second": limiter.tokens_per_second,
                "max_queue_size": limiter.max_waiting,
                "fairness": "FIFO",
            },
            "logging": {
                "format": "structured",
                "correlation_ids": True,
            },
            "error_handling": {
                "typed_errors": True,
                "error_types": [
                    "AS400TimeoutError",
                    "AS400RateLimitError",
                    "AS400ConnectionError",
                    "AS400InvalidCommandError",
                    "AS400UnknownError",
                ],
            },
            "mocks": {
                "deterministic": True,
                "seed": self.seed,
                "records": len(self._claims),
                "reference_time": self._generator.reference_time.isoformat(),
            },
            "timeout": {
                "default_ms": self.default_timeout_ms,
                "configurable": True,
            },
            "protocol": {
                "type": "TN5250",
                "translation": "SQL-like to Screen Buffer",
                "supported_commands": ["SELECT", "INSERT", "COUNT", "SHOW TABLES"],
            },
            "connection": self._connection.to_dict(),
            "generated_at": datetime.now(timezone.utc).isoformat(),
        }
