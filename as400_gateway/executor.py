"""
Timeout-Protected Executor

Races a unit of work against a deadline. When the deadline wins, the work
is cancelled and an AS400TimeoutError is raised to the caller.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, TypeVar

from .errors import AS400Error, AS400TimeoutError, AS400UnknownError
from .observability import GatewayLogger, null_logger

T = TypeVar("T")


@dataclass
class TimedResult(Generic[T]):
    """Result of a completed execution."""
    value: T
    elapsed_ms: float


class TimeoutExecutor:
    """Runs coroutines under a deadline."""

    def __init__(self, default_timeout_ms: int = 5000, logger: Optional[GatewayLogger] = None):
        if default_timeout_ms <= 0:
            raise ValueError(f"default_timeout_ms must be positive: {default_timeout_ms}")
        self.default_timeout_ms = default_timeout_ms
        self._logger = logger or null_logger()

    async def run(self, work: Callable[[], Awaitable[T]],
                  timeout_ms: Optional[int] = None,
                  context: Optional[Dict[str, Any]] = None,
                  started_at: Optional[float] = None) -> TimedResult[T]:
        """
        Execute `work()` with a deadline.

        Args:
            work: Factory returning the awaitable to run
            timeout_ms: Deadline override; the default applies when None
            context: Error context (correlation id, command)
            started_at: perf_counter() value the elapsed time is measured from

        Raises:
            AS400TimeoutError: If the deadline elapses first
            AS400Error: Errors raised by the work are propagated unchanged
            AS400UnknownError: Any other exception, chained to the original
        """
        timeout_ms = self.default_timeout_ms if timeout_ms is None else timeout_ms
        started_at = time.perf_counter() if started_at is None else started_at
        context = dict(context or {})

        try:
            value = await asyncio.wait_for(work(), timeout=timeout_ms / 1000)
        except asyncio.TimeoutError:
            self._logger.debug("Command execution timed out", extra={"timeout_ms": timeout_ms})
            raise AS400TimeoutError(
                f"Command execution timed out after {timeout_ms}ms",
                timeout_ms=timeout_ms,
                context=context,
            ) from None
        except AS400Error:
            raise
        except Exception as e:
            raise AS400UnknownError(
                f"Unexpected error during command execution: {e}",
                original_cause=e,
                context=context,
            ) from e

        elapsed_ms = (time.perf_counter() - started_at) * 1000
        return TimedResult(value=value, elapsed_ms=elapsed_ms)
