"""
Log Buffer

Bounded FIFO of Unity console entries streamed by the Editor.
The oldest record is evicted once capacity is reached.
"""

from __future__ import annotations

import itertools
import logging
from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime

from .config import DEFAULT_LOG_CAPACITY
from .protocol import LogRecord, LogType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogQuery:
    """Conjunctive filter over log records.

    Unset predicates match everything. ``limit`` keeps the most recent
    matches only.
    """

    types: frozenset[LogType] | None = None
    message_contains: str | None = None
    stack_trace_contains: str | None = None
    after: datetime | None = None
    before: datetime | None = None
    limit: int | None = None

    def matches(self, record: LogRecord) -> bool:
        if self.types is not None and record.log_type not in self.types:
            return False
        if self.message_contains and self.message_contains not in record.message:
            return False
        if self.stack_trace_contains and self.stack_trace_contains not in record.stack_trace:
            return False
        if self.after is not None and record.timestamp < self.after:
            return False
        if self.before is not None and record.timestamp > self.before:
            return False
        return True


class LogBuffer:
    """
    Ring buffer of LogRecord.

    Every append bumps a sequence counter; ``mark()``/``since()`` use it to
    isolate records appended during one operation, which stays correct
    after the buffer is full and evicting.
    """

    def __init__(self, capacity: int = DEFAULT_LOG_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self._records: deque[LogRecord] = deque(maxlen=capacity)
        self._total_appended = 0

    @property
    def capacity(self) -> int:
        return self._records.maxlen or 0

    @property
    def total_appended(self) -> int:
        """Number of records ever appended, including evicted ones"""
        return self._total_appended

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[LogRecord]:
        return iter(self._records)

    def append(self, record: LogRecord) -> None:
        self._records.append(record)
        self._total_appended += 1

    def filter(self, query: LogQuery) -> list[LogRecord]:
        """Return the most recent matches of query, oldest first"""
        matched = [record for record in self._records if query.matches(record)]
        if query.limit is not None:
            if query.limit <= 0:
                return []
            matched = matched[-query.limit :]
        return matched

    def mark(self) -> int:
        """Current watermark"""
        return self._total_appended

    def since(self, mark: int) -> list[LogRecord]:
        """Records appended after mark that are still buffered"""
        new_count = self._total_appended - mark
        if new_count <= 0:
            return []
        available = min(new_count, len(self._records))
        start = len(self._records) - available
        return list(itertools.islice(self._records, start, None))

    def snapshot(self) -> tuple[LogRecord, ...]:
        return tuple(self._records)

    def clear(self) -> None:
        self._records.clear()
        logger.debug("Log buffer cleared")
