# mofguard/services/simulation/engine.py
from __future__ import annotations

import math
import random
from dataclasses import replace
from typing import Optional

from loguru import logger

from mofguard.core.errors import ConfigurationError, InvalidFlowRateError
from mofguard.services.simulation.breakthrough import removal_efficiency
from mofguard.services.simulation.models import ColumnSpec, SimulationState, TickResult
from mofguard.services.simulation.utils import clamp, simulated_minutes


class SimulationEngine:
    """
    [MOF Adsorption Column]
    - 유입 농도: 기준값 ± 균일 잡음
    - 포화도: 누적 흡착량 / 최대 흡착량 (질량 보존 적분, 순간 농도비 아님)
    - 유출 농도: 파과 곡선 효율 적용, 바탕 농도 이상
    - 적분: explicit Euler, dM = (Cin - Cout) * Q * dt
    """

    def __init__(
        self,
        spec: ColumnSpec,
        rng: Optional[random.Random] = None,
        *,
        noisy: bool = True,
    ) -> None:
        if not (spec.max_load_mg > 0 and math.isfinite(spec.max_load_mg)):
            raise ConfigurationError(
                "MOF column capacity must be a positive finite value",
                detail={
                    "capacity_mg_per_g": spec.capacity_mg_per_g,
                    "total_mass_g": spec.total_mass_g,
                },
            )
        self.spec = spec
        self.rng = rng if rng is not None else random.Random()
        self.noisy = noisy

    @property
    def max_load_mg(self) -> float:
        return self.spec.max_load_mg

    def saturation_of(self, state: SimulationState) -> float:
        return clamp(state.accumulated_load_mg / self.spec.max_load_mg, 0.0, 1.0)

    def sample_inlet(self) -> float:
        base = self.spec.inlet_base_mgL
        amp = self.spec.inlet_noise_mgL if self.noisy else 0.0
        if amp <= 0:
            return base
        return max(0.0, base + self.rng.uniform(-amp, amp))

    def tick(self, state: SimulationState, flow_rate: float, dt_s: float) -> TickResult:
        flow = float(flow_rate)
        if not math.isfinite(flow) or flow < 0:
            raise InvalidFlowRateError(
                "flow rate must be a finite, non-negative number",
                detail={"flow_rate": flow_rate},
            )

        # 1. 유입 농도
        inlet = self.sample_inlet()

        # 2. 포화도 (적분 전)
        saturation = self.saturation_of(state)

        # 3. 파과 곡선
        efficiency = removal_efficiency(saturation, self.rng if self.noisy else None)

        # 4. 유출 농도: 바탕 농도 floor, 유입 이하
        outlet = max(self.spec.outlet_floor_mgL, inlet * (1.0 - efficiency))
        outlet = min(outlet, inlet)

        # 5. 질량 수지 적분
        dt_min = simulated_minutes(dt_s, self.spec.time_acceleration)
        adsorbed = (inlet - outlet) * flow * dt_min
        load = min(state.accumulated_load_mg + adsorbed, self.spec.max_load_mg)
        new_state = replace(state, accumulated_load_mg=load, steps=state.steps + 1)

        logger.debug(
            "tick #{} | Cin={:.2f} Cout={:.3f} eff={:.4f} sat={:.4f} dM={:.1f}mg",
            new_state.steps,
            inlet,
            outlet,
            efficiency,
            saturation,
            adsorbed,
        )

        return TickResult(
            inlet_mgL=inlet,
            outlet_mgL=outlet,
            saturation=saturation,
            efficiency=efficiency,
            adsorbed_mg=adsorbed,
            state=new_state,
        )
