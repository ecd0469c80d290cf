"""
Correlation ID generation.

Generated ids combine a process-wide counter with a millisecond time suffix,
so they are unique for the life of the process even across gateways and
concurrent calls.
"""

import itertools
import threading
import time
from typing import Optional

_counter = itertools.count(1)
_counter_lock = threading.Lock()


class CorrelationIdGenerator:
    """Produces `<prefix>-<counter>-<ms-hex>` identifiers."""

    def __init__(self, prefix: str = "as400"):
        self.prefix = prefix

    def next_id(self) -> str:
        with _counter_lock:
            sequence = next(_counter)
        suffix = format(int(time.time() * 1000), "x")
        return f"{self.prefix}-{sequence:06d}-{suffix}"

    def resolve(self, supplied: Optional[str]) -> str:
        """Echo a caller-supplied id, or generate a new one."""
        if supplied is not None:
            return supplied
        return self.next_id()
