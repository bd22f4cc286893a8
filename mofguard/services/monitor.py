# mofguard/services/monitor.py
from __future__ import annotations

import random
from collections import deque
from datetime import datetime
from typing import Any, Callable, Deque, List, Optional

from loguru import logger
from pydantic import ValidationError

from mofguard.core.config import Settings, get_settings
from mofguard.core.errors import InvalidFlowRateError
from mofguard.schemas.common import SystemStatus
from mofguard.schemas.monitor import FlowRateIn, LogEntry, MonitorSnapshot, SensorSample
from mofguard.services.controller import StatusController
from mofguard.services.event_log import EventLog
from mofguard.services.scheduler import TickSource
from mofguard.services.simulation.engine import SimulationEngine
from mofguard.services.simulation.models import ColumnSpec, SimulationState
from mofguard.services.simulation.utils import axis_label, epoch_ms


class IoTMonitor:
    """
    MOF 흡착 컬럼 모니터 (presentation layer 가 사용하는 유일한 경계).

    - 상태(SimulationState)/이력/이벤트 로그는 tick 과 명령으로만 바뀐다.
    - 명령은 tick 사이에 원자적으로 적용된다 (단일 스레드 모델).
    - rng 는 engine 을 내부에서 만들 때만 쓰인다. 둘을 같이 넘기면 ValueError.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        engine: Optional[SimulationEngine] = None,
        tick_source: Optional[TickSource] = None,
        clock: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._clock = clock or datetime.now

        if engine is not None and rng is not None:
            raise ValueError("pass either engine or rng, not both")
        self.engine = engine or SimulationEngine(ColumnSpec.from_settings(self.settings), rng)
        self.CAPACITY_THRESHOLD = self.settings.CAPACITY_THRESHOLD

        self.event_log = EventLog(self.settings.MAX_LOG_ENTRIES, clock=self._clock)
        self.controller = StatusController(
            self.event_log,
            warning_threshold=self.settings.WARNING_THRESHOLD,
            capacity_threshold=self.settings.CAPACITY_THRESHOLD,
        )

        self._state = SimulationState()
        self._history: Deque[SensorSample] = deque(maxlen=self.settings.MAX_HISTORY)
        self._saturation = 0.0
        self._flow_rate = float(self.settings.DEFAULT_FLOW_RATE_LPM)
        self._active = False
        self._last_ts = 0

        if tick_source is not None:
            self.attach(tick_source)

    # =========================================================
    # Read-only views
    # =========================================================
    @property
    def active(self) -> bool:
        return self._active

    @property
    def status(self) -> SystemStatus:
        return self.controller.status

    @property
    def saturation(self) -> float:
        return self._saturation

    @property
    def flow_rate(self) -> float:
        return self._flow_rate

    @property
    def state(self) -> SimulationState:
        return self._state

    @property
    def history(self) -> List[SensorSample]:
        return list(self._history)

    @property
    def logs(self) -> List[LogEntry]:
        return self.event_log.entries()

    def snapshot(self) -> MonitorSnapshot:
        return MonitorSnapshot(
            active=self._active,
            status=self.status,
            saturation=self._saturation,
            flow_rate=self._flow_rate,
            accumulated_load_mg=self._state.accumulated_load_mg,
            max_load_mg=self.engine.max_load_mg,
            capacity_threshold=self.settings.CAPACITY_THRESHOLD,
            warning_threshold=self.settings.WARNING_THRESHOLD,
            history=self.history,
            logs=self.logs,
        )

    # =========================================================
    # Commands
    # =========================================================
    def start(self) -> bool:
        if not self._active:
            self.controller.start()
            self._active = True
        return self._active

    def stop(self) -> bool:
        if self._active:
            self.controller.stop()
            self._active = False
        return self._active

    def toggle(self) -> bool:
        return self.stop() if self._active else self.start()

    def reset(self) -> None:
        """부하/이력 초기화, 상태 NORMAL, 유량 기본값 복원 (active 여부와 무관)."""
        self._state = SimulationState()
        self._history.clear()
        self._saturation = 0.0
        self._flow_rate = float(self.settings.DEFAULT_FLOW_RATE_LPM)
        self.controller.reset(self.engine.max_load_mg, self.engine.spec.capacity_mg_per_g)
        logger.info("monitor reset (active={})", self._active)

    def confirm_maintenance(self) -> None:
        """카트리지 교체 확인: 누적 부하 0, 상태 NORMAL (이전 상태 무관)."""
        previous = self.status
        self._state = SimulationState()
        self._saturation = 0.0
        self.controller.confirm_maintenance()
        logger.info("maintenance confirmed (was {})", previous.value)

    def set_flow_rate(self, value: Any) -> float:
        try:
            parsed = FlowRateIn(value=value)
        except ValidationError as exc:
            logger.warning("rejected flow rate {!r}", value)
            raise InvalidFlowRateError(
                "flow rate must be a finite, non-negative number",
                detail=[{"loc": e.get("loc"), "msg": e.get("msg"), "type": e.get("type")} for e in exc.errors()],
            ) from exc
        self._flow_rate = parsed.value
        logger.info("flow rate set to {} L/min", parsed.value)
        return self._flow_rate

    # =========================================================
    # Tick
    # =========================================================
    def attach(self, tick_source: TickSource) -> None:
        tick_source.subscribe(self.on_tick)

    def on_tick(self, dt_s: Optional[float] = None) -> Optional[SensorSample]:
        if not self._active:
            return None

        step = self.settings.TICK_INTERVAL_S if dt_s is None else dt_s
        result = self.engine.tick(self._state, self._flow_rate, step)
        self._state = result.state

        now = self._clock()
        ts = max(epoch_ms(now), self._last_ts + 1)
        self._last_ts = ts
        sample = result.to_sample(ts, axis_label(now))
        self._history.append(sample)
        # 상태 판정은 샘플에 기록된 (반올림된) 포화도 기준
        self._saturation = sample.saturation

        self.controller.evaluate(sample.saturation)
        return sample
