# mofguard/services/event_log.py
from __future__ import annotations

import uuid
from collections import deque
from datetime import datetime
from typing import Callable, Deque, List, Optional

from loguru import logger

from mofguard.schemas.common import LogCategory
from mofguard.schemas.monitor import LogEntry
from mofguard.services.simulation.utils import clock_label

DEFAULT_MAX_ENTRIES = 100


class EventLog:
    """운영자용 이벤트 로그 (append-only, 최대 max_entries, 오래된 것부터 제거)."""

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self._entries: Deque[LogEntry] = deque(maxlen=max_entries)
        self._clock = clock or datetime.now

    @property
    def max_entries(self) -> int:
        return self._entries.maxlen or 0

    def add(self, message: str, category: LogCategory = LogCategory.INFO) -> LogEntry:
        entry = LogEntry(
            id=uuid.uuid4().hex[:8],
            timestamp=clock_label(self._clock()),
            message=message,
            category=category,
        )
        self._entries.append(entry)
        logger.debug("[{}] {}", category.value, message)
        return entry

    def entries(self) -> List[LogEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
