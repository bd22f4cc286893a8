# mofguard/services/simulation/utils.py
# Simulation Utilities
# - 범위 제한 / 시간 환산 / 시계 라벨

from __future__ import annotations

from datetime import datetime

# ============================================================
# Constants
# ============================================================
SECONDS_PER_MINUTE = 60.0


# ============================================================
# Basic helpers
# ============================================================
def clamp(x: float, lo: float, hi: float) -> float:
    """Clamp x to [lo, hi]."""
    return max(lo, min(hi, x))


def simulated_minutes(dt_s: float, acceleration: float) -> float:
    """Wall-clock seconds -> simulated minutes."""
    return (float(dt_s) / SECONDS_PER_MINUTE) * float(acceleration)


# ============================================================
# Clock labels
# ============================================================
def axis_label(now: datetime) -> str:
    """차트 축 라벨 (MM:SS)."""
    return now.strftime("%M:%S")


def clock_label(now: datetime) -> str:
    """로그 타임스탬프 (HH:MM:SS, 24h)."""
    return now.strftime("%H:%M:%S")


def epoch_ms(now: datetime) -> int:
    return int(now.timestamp() * 1000)
