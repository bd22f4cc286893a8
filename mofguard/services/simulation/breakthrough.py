# mofguard/services/simulation/breakthrough.py
# Breakthrough curve: 포화도 -> 순간 제거 효율
# - s < 0.8 : 고효율 구간 (>= 99.8 %)
# - s >= 0.8: 3차 감쇠, 포화 직전 급격히 파과

from __future__ import annotations

import random
from typing import Optional

from mofguard.services.simulation.utils import clamp

KNEE_SATURATION = 0.8
BREAKTHROUGH_BAND = 0.2

PLATEAU_EFFICIENCY = 0.998
PLATEAU_JITTER = 0.001
PEAK_BREAKTHROUGH_EFFICIENCY = 0.99


def breakthrough_progress(saturation: float) -> float:
    """파과 구간 진행도 p in [0, 1]."""
    return clamp((saturation - KNEE_SATURATION) / BREAKTHROUGH_BAND, 0.0, 1.0)


def removal_efficiency(
    saturation: float,
    rng: Optional[random.Random] = None,
    jitter: float = PLATEAU_JITTER,
) -> float:
    """
    포화도 s 에서의 제거 효율 (0~1).

    rng 가 None 이면 고효율 구간의 잡음 없이 0.998 을 반환한다.
    """
    s = clamp(float(saturation), 0.0, 1.0)
    if s < KNEE_SATURATION:
        noise = rng.random() * jitter if rng is not None else 0.0
        return PLATEAU_EFFICIENCY + noise

    p = breakthrough_progress(s)
    return PEAK_BREAKTHROUGH_EFFICIENCY * (1.0 - p**3)
