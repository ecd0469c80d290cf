"""
Structured Logging for the AS/400 gateway

Provides structured JSON logging with correlation IDs and pluggable
formatters and handlers. Loggers are plain instances handed to the
components that use them; there is no process-wide registry, so several
gateways can log to different destinations side by side.
"""

import json
import sys
from abc import ABC, abstractmethod
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, TextIO, Union

# Context variable for correlation tracking
correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)


class LogLevel(Enum):
    """Log levels for the gateway logging system"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


_LEVEL_ORDER = {
    LogLevel.DEBUG: 0,
    LogLevel.INFO: 1,
    LogLevel.WARNING: 2,
    LogLevel.ERROR: 3,
    LogLevel.CRITICAL: 4,
}


class LogFormatter(ABC):
    """Abstract base class for log formatters"""

    @abstractmethod
    def format(self, record: Dict[str, Any]) -> str:
        """Format a log record into a string"""
        pass


class JSONLogFormatter(LogFormatter):
    """JSON formatter for structured logging"""

    def format(self, record: Dict[str, Any]) -> str:
        return json.dumps(record, default=str, ensure_ascii=False)


class HumanReadableFormatter(LogFormatter):
    """Single-line formatter for local debugging"""

    def format(self, record: Dict[str, Any]) -> str:
        timestamp = record.get('timestamp', '')
        level = record.get('level', 'INFO')
        logger_name = record.get('logger', 'unknown')
        message = record.get('message', '')
        correlation_id = record.get('correlation_id')

        line = f"[{timestamp}] {level:<8} [{logger_name}] {message}"
        if correlation_id:
            line += f" (cid={correlation_id})"

        extra = record.get('extra')
        if extra:
            details = " ".join(f"{k}={v}" for k, v in extra.items())
            line += f" | {details}"
        return line


class LogHandler(ABC):
    """Abstract base class for log handlers"""

    def __init__(self, formatter: LogFormatter):
        self.formatter = formatter

    @abstractmethod
    def emit(self, record: Dict[str, Any]) -> None:
        """Emit a log record"""
        pass


class ConsoleLogHandler(LogHandler):
    """Console log handler that writes to a text stream"""

    def __init__(self, formatter: LogFormatter, stream: TextIO = sys.stdout):
        super().__init__(formatter)
        self.stream = stream

    def emit(self, record: Dict[str, Any]) -> None:
        self.stream.write(self.formatter.format(record) + '\n')
        self.stream.flush()


class FileLogHandler(LogHandler):
    """File log handler that appends to a file"""

    def __init__(self, formatter: LogFormatter, file_path: Union[str, Path]):
        super().__init__(formatter)
        self.file_path = Path(file_path)
        self.file_path.parent.mkdir(parents=True, exist_ok=True)

    def emit(self, record: Dict[str, Any]) -> None:
        with open(self.file_path, 'a', encoding='utf-8') as f:
            f.write(self.formatter.format(record) + '\n')


class MemoryLogHandler(LogHandler):
    """Keeps raw records in memory; used by tests and embedding callers"""

    def __init__(self, formatter: Optional[LogFormatter] = None):
        super().__init__(formatter or JSONLogFormatter())
        self.records: List[Dict[str, Any]] = []

    def emit(self, record: Dict[str, Any]) -> None:
        self.records.append(record)

    def messages(self, level: Optional[LogLevel] = None) -> List[str]:
        return [
            r['message'] for r in self.records
            if level is None or r['level'] == level.value
        ]

    def clear(self) -> None:
        self.records.clear()


class GatewayLogger:
    """
    Structured logger with correlation ID support.

    Features:
    - Structured records (timestamp, level, logger, message, correlation_id, extra)
    - Correlation ID picked up from the active context
    - Multiple output handlers
    """

    def __init__(self, name: str, level: LogLevel = LogLevel.INFO):
        self.name = name
        self.level = level
        self.handlers: List[LogHandler] = []

    def add_handler(self, handler: LogHandler) -> None:
        self.handlers.append(handler)

    def remove_handler(self, handler: LogHandler) -> None:
        if handler in self.handlers:
            self.handlers.remove(handler)

    def set_level(self, level: Union[LogLevel, str]) -> None:
        if isinstance(level, str):
            level = LogLevel[level.upper()]
        self.level = level

    def child(self, suffix: str) -> "GatewayLogger":
        """Create a logger named `<name>.<suffix>` sharing this logger's handlers."""
        child = GatewayLogger(f"{self.name}.{suffix}", self.level)
        child.handlers = self.handlers
        return child

    def _should_log(self, level: LogLevel) -> bool:
        return _LEVEL_ORDER[level] >= _LEVEL_ORDER[self.level]

    def _create_log_record(self, level: LogLevel, message: str,
                           extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        record = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': level.value,
            'logger': self.name,
            'message': message,
            'correlation_id': correlation_id_var.get(),
        }
        if extra:
            record['extra'] = extra

        # Drop empty fields to keep records compact
        return {k: v for k, v in record.items() if v is not None}

    def _log(self, level: LogLevel, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        if not self._should_log(level):
            return

        record = self._create_log_record(level, message, extra)

        for handler in self.handlers:
            try:
                handler.emit(record)
            except Exception as e:
                # Logging must never break a command
                sys.stderr.write(f"Logging handler failed: {e}\n")

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.DEBUG, message, extra)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.INFO, message, extra)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.WARNING, message, extra)

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None,
              exc_info: Optional[BaseException] = None) -> None:
        """Log error message with optional exception info"""
        if exc_info:
            extra = dict(extra or {})
            extra['exception'] = {
                'type': type(exc_info).__name__,
                'message': str(exc_info),
                'module': type(exc_info).__module__,
            }
        self._log(LogLevel.ERROR, message, extra)

    @contextmanager
    def correlation_context(self, correlation_id: str) -> Iterator[str]:
        """Bind a correlation ID to every record logged inside the block"""
        token = correlation_id_var.set(correlation_id)
        try:
            yield correlation_id
        finally:
            correlation_id_var.reset(token)


def create_logger(
    name: str = "as400_gateway",
    level: Union[LogLevel, str] = LogLevel.INFO,
    use_json: bool = True,
    log_file: Optional[Union[str, Path]] = None,
    stream: Optional[TextIO] = None,
) -> GatewayLogger:
    """Build an independent logger with console and optional file output"""
    logger = GatewayLogger(name)
    logger.set_level(level)

    formatter = JSONLogFormatter() if use_json else HumanReadableFormatter()
    logger.add_handler(ConsoleLogHandler(formatter, stream or sys.stdout))

    if log_file:
        logger.add_handler(FileLogHandler(formatter, log_file))

    return logger


def null_logger(name: str = "as400_gateway") -> GatewayLogger:
    """Logger without handlers; records are discarded"""
    return GatewayLogger(name)


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from context"""
    return correlation_id_var.get()
