# mofguard/schemas/monitor.py
# =============================================================================
# MOF Guard Monitor Schemas (Pydantic v2)
#
# - SensorSample / LogEntry: tick 및 명령이 만들어내는 불변 레코드
# - MonitorSnapshot: presentation layer 에 넘기는 read-only 복사본
# - FlowRateIn: 유량 입력 경계 검증 (음수/NaN/문자열 거부)
# =============================================================================

from __future__ import annotations

from typing import List, Optional

from pydantic import ConfigDict, Field, computed_field

from .common import AppBaseModel, CardTone, LogCategory, SystemStatus


# =============================================================================
# Tick output
# =============================================================================
class SensorSample(AppBaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: int = Field(..., description="wall-clock ms, strictly increasing")
    time_label: str = Field(..., description="MM:SS axis label")
    inlet_concentration: float = Field(..., ge=0, description="mg/L")
    outlet_concentration: float = Field(..., ge=0, description="mg/L")
    saturation: float = Field(..., ge=0, le=1, description="fraction of capacity")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def saturation_pct(self) -> float:
        return round(self.saturation * 100.0, 2)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def removal_pct(self) -> float:
        if self.inlet_concentration <= 0:
            return 0.0
        ratio = self.outlet_concentration / self.inlet_concentration
        return round((1.0 - ratio) * 100.0, 3)


class LogEntry(AppBaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: str = Field(..., description="HH:MM:SS")
    message: str
    category: LogCategory = LogCategory.INFO


# =============================================================================
# Boundary input
# =============================================================================
class FlowRateIn(AppBaseModel):
    value: float = Field(..., ge=0, allow_inf_nan=False, description="L/min")


# =============================================================================
# Read-only snapshot
# =============================================================================
class MonitorSnapshot(AppBaseModel):
    model_config = ConfigDict(frozen=True)

    active: bool
    status: SystemStatus
    saturation: float = Field(..., ge=0, le=1)
    flow_rate: float
    accumulated_load_mg: float
    max_load_mg: float
    capacity_threshold: float
    warning_threshold: float
    history: List[SensorSample] = Field(default_factory=list)
    logs: List[LogEntry] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def latest(self) -> Optional[SensorSample]:
        return self.history[-1] if self.history else None


class StatCard(AppBaseModel):
    title: str
    value: str
    unit: Optional[str] = None
    tone: CardTone = CardTone.NORMAL
    description: str = ""
