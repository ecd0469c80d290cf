"""
Error taxonomy for the AS/400 gateway.

Every failure raised by the gateway is an AS400Error subclass carrying:
- kind: stable machine-readable category
- recoverable: whether a caller retry has a reasonable chance of succeeding
- context: free-form details, always including the correlation id when one exists
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(Enum):
    """Categories of gateway failures."""
    TIMEOUT = "TIMEOUT"
    RATE_LIMIT = "RATE_LIMIT"
    CONNECTION_LOST = "CONNECTION_LOST"
    INVALID_COMMAND = "INVALID_CMD"
    UNKNOWN = "UNKNOWN"


class AS400Error(Exception):
    """Base class for all gateway errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN
    recoverable: bool = False

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = dict(context or {})

    @property
    def correlation_id(self) -> Optional[str]:
        return self.context.get("correlation_id")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "kind": self.kind.value,
            "error": type(self).__name__,
            "message": self.message,
            "recoverable": self.recoverable,
            "context": dict(self.context),
        }

    def __str__(self) -> str:
        return self.message


class AS400TimeoutError(AS400Error):
    """Command did not complete before its deadline."""

    kind = ErrorKind.TIMEOUT
    recoverable = True

    def __init__(self, message: str, timeout_ms: int, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context)
        self.timeout_ms = timeout_ms
        self.context.setdefault("timeout_ms", timeout_ms)


class AS400RateLimitError(AS400Error):
    """Rate limiter wait queue is full."""

    kind = ErrorKind.RATE_LIMIT
    recoverable = True

    def __init__(self, message: str, retry_after_ms: int, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context)
        self.retry_after_ms = retry_after_ms
        self.context.setdefault("retry_after_ms", retry_after_ms)


class AS400ConnectionError(AS400Error):
    """
    No usable session with the AS/400 host.

    Raised when connect() fails, or when a command is issued while
    disconnected (including after inactivity expiry).
    """

    kind = ErrorKind.CONNECTION_LOST
    recoverable = True


class AS400InvalidCommandError(AS400Error):
    """Command text is not part of the supported grammar."""

    kind = ErrorKind.INVALID_COMMAND
    recoverable = False

    def __init__(self, message: str, command: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context)
        self.command = command
        if command is not None:
            self.context.setdefault("command", command)


class AS400UnknownError(AS400Error):
    """Unexpected failure inside the gateway."""

    kind = ErrorKind.UNKNOWN
    recoverable = False

    def __init__(self, message: str, original_cause: Optional[BaseException] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context)
        self.original_cause = original_cause
        if original_cause is not None:
            self.context.setdefault("original_cause", repr(original_cause))
