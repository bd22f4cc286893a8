# mofguard/services/simulation/models.py
from dataclasses import dataclass

from mofguard.schemas.monitor import SensorSample


@dataclass(frozen=True)
class ColumnSpec:
    # 1. 흡착 컬럼 용량
    capacity_mg_per_g: float
    total_mass_g: float

    # 2. 유입수 모델
    inlet_base_mgL: float = 50.0
    inlet_noise_mgL: float = 2.0
    outlet_floor_mgL: float = 0.01

    # 3. 시간 가속 (모의 분 / 실제 분)
    time_acceleration: float = 3600.0

    @property
    def max_load_mg(self) -> float:
        return self.total_mass_g * self.capacity_mg_per_g

    @classmethod
    def from_settings(cls, settings) -> "ColumnSpec":
        return cls(
            capacity_mg_per_g=settings.MOF_CAPACITY_MG_PER_G,
            total_mass_g=settings.MOF_TOTAL_MASS_G,
            inlet_base_mgL=settings.INLET_BASE_MGL,
            inlet_noise_mgL=settings.INLET_NOISE_MGL,
            outlet_floor_mgL=settings.OUTLET_FLOOR_MGL,
            time_acceleration=settings.TIME_ACCELERATION,
        )


@dataclass(frozen=True)
class SimulationState:
    accumulated_load_mg: float = 0.0  # 누적 흡착량 (mg)
    steps: int = 0


@dataclass(frozen=True)
class TickResult:
    inlet_mgL: float
    outlet_mgL: float
    saturation: float  # 적분 전 포화도 (fraction)
    efficiency: float

    # 이번 tick 흡착량 / 갱신된 상태
    adsorbed_mg: float
    state: SimulationState

    def to_sample(self, timestamp: int, time_label: str) -> SensorSample:
        """표시 정밀도로 반올림한 SensorSample (유출 <= 유입 유지)."""
        inlet = round(self.inlet_mgL, 2)
        outlet = min(round(self.outlet_mgL, 3), inlet)
        return SensorSample(
            timestamp=timestamp,
            time_label=time_label,
            inlet_concentration=inlet,
            outlet_concentration=outlet,
            saturation=round(self.saturation, 4),
        )
