# mofguard/services/controller.py
# Status Controller: OFFLINE / NORMAL / WARNING / CRITICAL
#
#   NORMAL   --(s >= capacity)-------------> CRITICAL  : ALERT + INFO + ACTION
#   NORMAL   --(warning <= s < capacity)---> WARNING   : ALERT
#   WARNING  --(s >= capacity)-------------> CRITICAL  : ALERT + INFO + ACTION
#   WARNING  --(s < warning)---------------> NORMAL
#   CRITICAL --(maintenance)---------------> NORMAL
#   any      --(stop)----------------------> OFFLINE   : ACTION
#   OFFLINE  --(start)---------------------> NORMAL    : ACTION + INFO
#
# 로그는 상태가 바뀌는 tick 에서만 남긴다 (이전 상태와 비교).

from __future__ import annotations

from loguru import logger

from mofguard.schemas.common import LogCategory, SystemStatus
from mofguard.services.event_log import EventLog


class StatusController:
    def __init__(
        self,
        log: EventLog,
        warning_threshold: float = 0.85,
        capacity_threshold: float = 0.90,
    ) -> None:
        if not 0 < warning_threshold < capacity_threshold <= 1:
            raise ValueError(
                f"invalid thresholds: warning={warning_threshold}, capacity={capacity_threshold}"
            )
        self.log = log
        self.warning_threshold = warning_threshold
        self.capacity_threshold = capacity_threshold
        self.status = SystemStatus.OFFLINE

    # ------------------------------------------------------------------
    # tick 평가
    # ------------------------------------------------------------------
    def next_status(self, saturation: float) -> SystemStatus:
        """순수 전이 함수 (부수효과 없음)."""
        current = self.status
        if current in (SystemStatus.OFFLINE, SystemStatus.CRITICAL):
            return current

        if saturation >= self.capacity_threshold:
            return SystemStatus.CRITICAL
        if current == SystemStatus.NORMAL and saturation >= self.warning_threshold:
            return SystemStatus.WARNING
        if current == SystemStatus.WARNING and saturation < self.warning_threshold:
            return SystemStatus.NORMAL
        return current

    def evaluate(self, saturation: float) -> SystemStatus:
        previous = self.status
        nxt = self.next_status(saturation)
        if nxt == previous:
            return previous

        self._transition(nxt)
        pct = saturation * 100.0
        if nxt == SystemStatus.CRITICAL:
            self.log.add(
                f"[EMERGENCY] MOF saturation reached {pct:.1f}%! Breakthrough imminent.",
                LogCategory.ALERT,
            )
            self.log.add(
                "[NOTICE] Maintenance crew notified automatically for cartridge replacement.",
                LogCategory.INFO,
            )
            self.log.add(
                "[ACTION REQUIRED] Please confirm adsorption column replacement.",
                LogCategory.ACTION,
            )
        elif nxt == SystemStatus.WARNING:
            self.log.add(
                f"Saturation approaching threshold (>{pct:.0f}%), removal rate starting to drop.",
                LogCategory.ALERT,
            )
        return nxt

    # ------------------------------------------------------------------
    # 외부 명령
    # ------------------------------------------------------------------
    def start(self) -> None:
        self._transition(SystemStatus.NORMAL)
        self.log.add("IoT system started. Connecting monitoring probes...", LogCategory.ACTION)
        self.log.add("Sensor online: plating shop outfall #1", LogCategory.INFO)

    def stop(self) -> None:
        self._transition(SystemStatus.OFFLINE)
        self.log.add("Stop command received. Shutting down...", LogCategory.ACTION)

    def reset(self, max_load_mg: float, capacity_mg_per_g: float) -> None:
        self._transition(SystemStatus.NORMAL)
        self.log.add("System reset. MOF column regeneration complete.", LogCategory.ACTION)
        self.log.add(
            f"Calibration: max adsorption capacity {max_load_mg / 1000:g} g "
            f"(based on {capacity_mg_per_g:g} mg/g)",
            LogCategory.INFO,
        )
        self.log.add("Valve switched to primary adsorption column A.", LogCategory.INFO)

    def confirm_maintenance(self) -> None:
        self._transition(SystemStatus.NORMAL)
        self.log.add(
            "Operator confirmed: cartridge replaced. System back to normal operation.",
            LogCategory.ACTION,
        )

    def _transition(self, nxt: SystemStatus) -> None:
        if nxt != self.status:
            logger.info("status {} -> {}", self.status.value, nxt.value)
        self.status = nxt
