# mofguard/services/scheduler.py
# Tick sources
# - 코어는 전역 타이머 대신 주입된 tick source 에 구독한다.
# - ManualTickSource : 테스트/배치용 합성 tick
# - IntervalTickSource : 실제 시계 기반 고정 주기 (blocking loop, 겹치지 않음)
#   대기 주기(interval_s)와 적분 스텝(step_s)은 분리할 수 있다.

from __future__ import annotations

import threading
from typing import Callable, List, Optional, Protocol

from loguru import logger

TickCallback = Callable[[float], object]


class TickSource(Protocol):
    def subscribe(self, callback: TickCallback) -> None: ...

    def stop(self) -> None: ...


class _BaseTickSource:
    def __init__(self, dt_s: float) -> None:
        if dt_s <= 0:
            raise ValueError(f"tick interval must be positive: {dt_s}")
        self.dt_s = float(dt_s)
        self._callbacks: List[TickCallback] = []
        self.ticks_fired = 0

    def subscribe(self, callback: TickCallback) -> None:
        self._callbacks.append(callback)

    def _fire(self, dt_s: float) -> None:
        self.ticks_fired += 1
        for cb in list(self._callbacks):
            cb(dt_s)


class ManualTickSource(_BaseTickSource):
    """합성 tick: advance() 호출 시 동기적으로 n 번 발생."""

    def __init__(self, dt_s: float = 1.5) -> None:
        super().__init__(dt_s)
        self._stopped = False

    def advance(self, n: int = 1, dt_s: Optional[float] = None) -> int:
        step = self.dt_s if dt_s is None else float(dt_s)
        fired = 0
        for _ in range(max(0, int(n))):
            if self._stopped:
                break
            self._fire(step)
            fired += 1
        return fired

    def stop(self) -> None:
        self._stopped = True


class IntervalTickSource(_BaseTickSource):
    """
    고정 주기 tick. run() 은 호출 스레드를 점유하며
    stop() (시그널 핸들러/다른 스레드) 이 호출되면 다음 대기에서 빠져나온다.
    각 tick 에는 실측 경과 시간이 아니라 step_s (미지정 시 interval_s) 를 dt 로 넘긴다.
    """

    def __init__(
        self,
        interval_s: float,
        max_ticks: Optional[int] = None,
        step_s: Optional[float] = None,
    ) -> None:
        super().__init__(interval_s if step_s is None else step_s)
        if interval_s <= 0:
            raise ValueError(f"tick interval must be positive: {interval_s}")
        self.interval_s = float(interval_s)
        self.max_ticks = max_ticks
        self._stop_event = threading.Event()

    def run(self) -> int:
        logger.info(
            "interval tick source started (every {:.2f}s, dt={:.2f}s)", self.interval_s, self.dt_s
        )
        fired = 0
        while not self._stop_event.wait(self.interval_s):
            self._fire(self.dt_s)
            fired += 1
            if self.max_ticks is not None and fired >= self.max_ticks:
                break
        logger.info("interval tick source stopped after {} ticks", fired)
        return fired

    def stop(self) -> None:
        self._stop_event.set()
