"""
AS/400 Gateway - A simulated legacy AS/400 host for integration testing.

This package provides an in-process stand-in for a TN5250 session:
- gateway: AS400Gateway facade (connect, run_command, disconnect)
- interpreter: SQL-like command language over mock claims
- rate_limiter: token bucket admission control
- connection: session state machine with inactivity expiry
- executor: timeout-protected command execution
- claims: deterministic mock claims generator
- errors: typed error taxonomy
"""

from .claims import ClaimGenerator, MockClaim, DAMAGE_TYPES
from .config import ConfigValidationError, ConfigValidator, GatewayConfig, load_config
from .connection import ConnectionState, ConnectionStateMachine
from .correlation import CorrelationIdGenerator
from .errors import (
    AS400ConnectionError,
    AS400Error,
    AS400InvalidCommandError,
    AS400RateLimitError,
    AS400TimeoutError,
    AS400UnknownError,
    ErrorKind,
)
from .executor import TimeoutExecutor
from .gateway import AS400Gateway, LegacyResponse
from .interpreter import CommandInterpreter, ParsedCommand
from .rate_limiter import RateLimitConfig, TokenBucketRateLimiter
from .screen import render_screen

__version__ = "0.1.0"

__all__ = [
    # Gateway
    "AS400Gateway",
    "LegacyResponse",
    # Configuration
    "GatewayConfig",
    "ConfigValidator",
    "ConfigValidationError",
    "load_config",
    # Components
    "ClaimGenerator",
    "MockClaim",
    "DAMAGE_TYPES",
    "CommandInterpreter",
    "ParsedCommand",
    "ConnectionState",
    "ConnectionStateMachine",
    "CorrelationIdGenerator",
    "RateLimitConfig",
    "TokenBucketRateLimiter",
    "TimeoutExecutor",
    "render_screen",
    # Errors
    "ErrorKind",
    "AS400Error",
    "AS400TimeoutError",
    "AS400RateLimitError",
    "AS400ConnectionError",
    "AS400InvalidCommandError",
    "AS400UnknownError",
]
