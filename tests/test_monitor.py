# tests/test_monitor.py
from __future__ import annotations

import math
import random

import pytest
from conftest import run_until

from mofguard.core.errors import InvalidFlowRateError
from mofguard.schemas.common import LogCategory, SystemStatus
from mofguard.services.monitor import IoTMonitor
from mofguard.services.scheduler import ManualTickSource
from mofguard.services.simulation.models import SimulationState


# -----------------------------------------------------------------------------
# lifecycle
# -----------------------------------------------------------------------------
def test_initial_snapshot(monitor: IoTMonitor):
    snap = monitor.snapshot()
    assert snap.active is False
    assert snap.status == SystemStatus.OFFLINE
    assert snap.saturation == 0.0
    assert snap.flow_rate == 20.0
    assert snap.history == []
    assert snap.logs == []
    assert snap.latest is None
    assert snap.capacity_threshold == 0.90
    assert monitor.CAPACITY_THRESHOLD == 0.90
    assert snap.max_load_mg == pytest.approx(2_500_000.0)


def test_ticks_ignored_while_offline(monitor: IoTMonitor):
    assert monitor.on_tick() is None
    assert monitor.history == []
    assert monitor.state.accumulated_load_mg == 0.0


def test_start_stop_toggle(monitor: IoTMonitor):
    assert monitor.start() is True
    assert monitor.status == SystemStatus.NORMAL
    n_logs = len(monitor.logs)

    # 이미 동작 중이면 no-op
    assert monitor.start() is True
    assert len(monitor.logs) == n_logs

    assert monitor.toggle() is False
    assert monitor.status == SystemStatus.OFFLINE
    assert monitor.logs[-1].category == LogCategory.ACTION

    assert monitor.toggle() is True
    assert monitor.status == SystemStatus.NORMAL


def test_stop_keeps_accumulated_load(monitor: IoTMonitor):
    monitor.start()
    for _ in range(3):
        monitor.on_tick()
    load = monitor.state.accumulated_load_mg
    assert load > 0

    monitor.stop()
    monitor.on_tick()
    assert monitor.state.accumulated_load_mg == load


# -----------------------------------------------------------------------------
# tick output
# -----------------------------------------------------------------------------
def test_tick_appends_sample(monitor: IoTMonitor):
    monitor.start()
    sample = monitor.on_tick()

    assert sample is not None
    assert monitor.history == [sample]
    assert sample.inlet_concentration == pytest.approx(50.0)
    assert sample.outlet_concentration == pytest.approx(0.1)
    assert sample.saturation == 0.0
    assert sample.time_label == "30:05"
    assert sample.removal_pct == pytest.approx(99.8)


def test_sample_timestamps_strictly_increase_with_frozen_clock(monitor: IoTMonitor):
    monitor.start()
    for _ in range(5):
        monitor.on_tick()
    stamps = [s.timestamp for s in monitor.history]
    assert all(b > a for a, b in zip(stamps, stamps[1:]))


def test_saturation_monotonic_while_active(noisy_monitor: IoTMonitor):
    noisy_monitor.start()
    noisy_monitor.set_flow_rate(60)
    last = 0.0
    for _ in range(60):
        noisy_monitor.on_tick()
        assert 0.0 <= noisy_monitor.saturation <= 1.0
        assert noisy_monitor.saturation >= last
        last = noisy_monitor.saturation
    for s in noisy_monitor.history:
        assert 0.0 <= s.outlet_concentration <= s.inlet_concentration


def test_zero_flow_keeps_load(monitor: IoTMonitor):
    monitor.start()
    monitor.on_tick()
    load = monitor.state.accumulated_load_mg

    monitor.set_flow_rate(0)
    for _ in range(4):
        monitor.on_tick()
    assert monitor.state.accumulated_load_mg == load
    assert len(monitor.history) == 5


# -----------------------------------------------------------------------------
# bounded buffers
# -----------------------------------------------------------------------------
def test_history_is_bounded_fifo(monitor: IoTMonitor):
    monitor.start()
    monitor.set_flow_rate(1)
    samples = [monitor.on_tick() for _ in range(27)]

    history = monitor.history
    assert len(history) == 20
    assert history[0] == samples[7]
    assert history[-1] == samples[-1]


def test_log_is_bounded_fifo(monitor: IoTMonitor):
    for _ in range(60):
        monitor.start()  # ACTION + INFO
        monitor.stop()  # ACTION
    logs = monitor.logs
    assert len(logs) == 100
    # 180 entries written, the first 80 evicted
    assert logs[-1].message.startswith("Stop command")
    assert logs[0].message.startswith("Stop command")
    assert logs[1].message.startswith("IoT system started")


# -----------------------------------------------------------------------------
# scenario: NORMAL -> WARNING -> CRITICAL at 20 L/min, 50 mg/L
# -----------------------------------------------------------------------------
def test_warning_precedes_critical_and_alerts_fire_once(monitor: IoTMonitor):
    monitor.start()
    statuses = []
    for _ in range(40):
        monitor.on_tick()
        statuses.append(monitor.status)

    first_warning = statuses.index(SystemStatus.WARNING)
    first_critical = statuses.index(SystemStatus.CRITICAL)
    assert first_warning < first_critical
    assert all(s == SystemStatus.CRITICAL for s in statuses[first_critical:])
    assert monitor.history[-1].saturation >= 0.90

    alerts = [e for e in monitor.logs if e.category == LogCategory.ALERT]
    assert len(alerts) == 2  # WARNING 진입 1 + CRITICAL 진입 1
    assert sum("EMERGENCY" in e.message for e in monitor.logs) == 1


# -----------------------------------------------------------------------------
# maintenance / reset
# -----------------------------------------------------------------------------
@pytest.mark.parametrize(
    "target",
    [SystemStatus.NORMAL, SystemStatus.WARNING, SystemStatus.CRITICAL],
)
def test_confirm_maintenance_from_any_status(monitor: IoTMonitor, target):
    monitor.start()
    run_until(monitor, target)
    n_history = len(monitor.history)
    n_logs = len(monitor.logs)

    monitor.confirm_maintenance()

    assert monitor.state.accumulated_load_mg == 0.0
    assert monitor.saturation == 0.0
    assert monitor.status == SystemStatus.NORMAL
    assert len(monitor.history) == n_history
    assert len(monitor.logs) == n_logs + 1
    assert monitor.logs[-1].category == LogCategory.ACTION


def test_saturation_climbs_again_after_maintenance(monitor: IoTMonitor):
    monitor.start()
    run_until(monitor, SystemStatus.CRITICAL)
    monitor.confirm_maintenance()

    monitor.on_tick()
    assert monitor.status == SystemStatus.NORMAL
    assert monitor.history[-1].saturation == 0.0
    assert monitor.state.accumulated_load_mg > 0


def test_reset_restores_defaults(monitor: IoTMonitor):
    monitor.start()
    monitor.set_flow_rate(75)
    run_until(monitor, SystemStatus.CRITICAL)

    monitor.reset()

    snap = monitor.snapshot()
    assert snap.history == []
    assert snap.saturation == 0.0
    assert snap.accumulated_load_mg == 0.0
    assert snap.status == SystemStatus.NORMAL
    assert snap.flow_rate == 20.0
    assert snap.active is True
    assert [e.category for e in snap.logs[-3:]] == [
        LogCategory.ACTION,
        LogCategory.INFO,
        LogCategory.INFO,
    ]


def test_reset_while_stopped_sets_normal(monitor: IoTMonitor):
    monitor.reset()
    assert monitor.status == SystemStatus.NORMAL
    assert monitor.active is False
    assert monitor.on_tick() is None


def test_status_follows_reported_saturation(monitor: IoTMonitor):
    monitor.start()
    monitor.set_flow_rate(0)
    # 0.89996 은 샘플에서 0.9 로 반올림된다
    monitor._state = SimulationState(accumulated_load_mg=0.89996 * monitor.engine.max_load_mg)

    sample = monitor.on_tick()
    assert sample.saturation == 0.9
    assert monitor.saturation == sample.saturation
    assert monitor.status == SystemStatus.CRITICAL


# -----------------------------------------------------------------------------
# flow rate boundary
# -----------------------------------------------------------------------------
def test_set_flow_rate_accepts_numeric_strings(monitor: IoTMonitor):
    assert monitor.set_flow_rate("35.5") == 35.5
    assert monitor.flow_rate == 35.5


@pytest.mark.parametrize("bad", [-1, -0.5, "abc", math.nan, math.inf, None])
def test_set_flow_rate_rejects_invalid(monitor: IoTMonitor, bad):
    monitor.set_flow_rate(42)
    with pytest.raises(InvalidFlowRateError) as ei:
        monitor.set_flow_rate(bad)
    assert ei.value.code == "INVALID_INPUT"
    assert monitor.flow_rate == 42


# -----------------------------------------------------------------------------
# tick source wiring
# -----------------------------------------------------------------------------
def test_manual_tick_source_drives_monitor(settings, deterministic_engine, fixed_clock):
    source = ManualTickSource(dt_s=1.5)
    mon = IoTMonitor(settings, engine=deterministic_engine, tick_source=source, clock=fixed_clock)

    source.advance(3)
    assert mon.history == []

    mon.start()
    source.advance(3)
    assert len(mon.history) == 3
    assert mon.state.steps == 3


def test_engine_and_rng_are_exclusive(settings, deterministic_engine):
    with pytest.raises(ValueError):
        IoTMonitor(settings, engine=deterministic_engine, rng=random.Random(1))
