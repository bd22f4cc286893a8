# tests/conftest.py
from __future__ import annotations

import random
import sys
from datetime import datetime
from typing import Iterator

import pytest
from loguru import logger

from mofguard.core.config import Settings, get_settings
from mofguard.schemas.common import SystemStatus
from mofguard.services.monitor import IoTMonitor
from mofguard.services.simulation.engine import SimulationEngine
from mofguard.services.simulation.models import ColumnSpec

FIXED_NOW = datetime(2026, 1, 15, 9, 30, 5)


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "slow: tests that wait on the wall clock")


@pytest.fixture(autouse=True)
def _reset_loguru() -> Iterator[None]:
    yield
    # CLI 테스트가 붙인 sink(닫힌 스트림/파일) 제거
    logger.remove()
    logger.add(sys.stderr, level="WARNING")


@pytest.fixture(autouse=True)
def _fresh_settings_cache() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture()
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture()
def deterministic_engine(settings: Settings) -> SimulationEngine:
    """잡음 없는 엔진: 유입 50 mg/L 고정, 효율 0.998 고정."""
    return SimulationEngine(ColumnSpec.from_settings(settings), noisy=False)


@pytest.fixture()
def monitor(settings: Settings, deterministic_engine: SimulationEngine, fixed_clock) -> IoTMonitor:
    return IoTMonitor(settings, engine=deterministic_engine, clock=fixed_clock)


@pytest.fixture()
def noisy_monitor(settings: Settings, fixed_clock) -> IoTMonitor:
    return IoTMonitor(settings, clock=fixed_clock, rng=random.Random(1234))


def run_until(monitor: IoTMonitor, status: SystemStatus, max_ticks: int = 200) -> int:
    """status 에 도달할 때까지 tick. 도달한 tick 번호를 반환."""
    for n in range(1, max_ticks + 1):
        monitor.on_tick()
        if monitor.status == status:
            return n
    raise AssertionError(f"status {status} not reached within {max_ticks} ticks")
