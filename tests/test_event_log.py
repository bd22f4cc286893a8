# tests/test_event_log.py
from __future__ import annotations

from datetime import datetime

import pytest

from mofguard.schemas.common import LogCategory
from mofguard.services.event_log import EventLog


def test_event_log_evicts_oldest_first():
    log = EventLog(max_entries=3)
    for i in range(5):
        log.add(f"m{i}")
    assert [e.message for e in log.entries()] == ["m2", "m3", "m4"]
    assert log.max_entries == 3
    assert len(log) == 3


def test_event_log_entries_have_ids_and_clock_labels():
    log = EventLog(clock=lambda: datetime(2026, 3, 1, 7, 5, 9))
    a = log.add("a")
    b = log.add("b", LogCategory.ALERT)
    assert a.id != b.id
    assert len(a.id) == 8
    assert a.timestamp == "07:05:09"
    assert a.category == LogCategory.INFO
    assert b.category == LogCategory.ALERT


def test_entries_returns_a_copy():
    log = EventLog()
    log.add("a")
    view = log.entries()
    view.clear()
    assert len(log) == 1


def test_event_log_rejects_zero_capacity():
    with pytest.raises(ValueError):
        EventLog(0)
