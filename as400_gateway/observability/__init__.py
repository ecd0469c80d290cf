"""
Observability - structured logging with correlation IDs.
"""

from .logging import (
    ConsoleLogHandler,
    FileLogHandler,
    GatewayLogger,
    HumanReadableFormatter,
    JSONLogFormatter,
    LogFormatter,
    LogHandler,
    LogLevel,
    MemoryLogHandler,
    create_logger,
    get_correlation_id,
    null_logger,
)

__all__ = [
    "GatewayLogger",
    "LogLevel",
    "LogFormatter",
    "LogHandler",
    "JSONLogFormatter",
    "HumanReadableFormatter",
    "ConsoleLogHandler",
    "FileLogHandler",
    "MemoryLogHandler",
    "create_logger",
    "null_logger",
    "get_correlation_id",
]
