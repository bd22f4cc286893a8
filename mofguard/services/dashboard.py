# mofguard/services/dashboard.py
from __future__ import annotations

from typing import List

from mofguard.schemas.common import CardTone, SystemStatus
from mofguard.schemas.monitor import MonitorSnapshot, StatCard

STATUS_LABELS = {
    SystemStatus.CRITICAL: "Critical",
    SystemStatus.WARNING: "Warning",
    SystemStatus.NORMAL: "Normal",
    SystemStatus.OFFLINE: "Offline",
}


def status_tone(status: SystemStatus) -> CardTone:
    if status == SystemStatus.CRITICAL:
        return CardTone.CRITICAL
    if status == SystemStatus.WARNING:
        return CardTone.WARNING
    return CardTone.NORMAL


def build_stat_cards(snapshot: MonitorSnapshot, outlet_warning_mgl: float = 25.0) -> List[StatCard]:
    """대시보드 상단 카드 4종 (유입 / 유출 / 포화도 / 시스템 상태)."""
    latest = snapshot.latest
    inlet = latest.inlet_concentration if latest else 0.0
    outlet = latest.outlet_concentration if latest else 0.0
    tone = status_tone(snapshot.status)

    return [
        StatCard(
            title="Inlet Cu2+",
            value=f"{inlet:.2f}",
            unit="mg/L",
            description="Untreated wastewater",
        ),
        StatCard(
            title="Outlet Cu2+",
            value=f"{outlet:.2f}",
            unit="mg/L",
            tone=CardTone.WARNING if outlet > outlet_warning_mgl else CardTone.NORMAL,
            description="After MOF treatment",
        ),
        StatCard(
            title="MOF saturation",
            value=f"{snapshot.saturation * 100:.1f}",
            unit="%",
            tone=tone,
            description="Model-predicted capacity",
        ),
        StatCard(
            title="System status",
            value=STATUS_LABELS[snapshot.status],
            tone=tone,
            description=(
                "Automatic switchover triggered"
                if snapshot.status == SystemStatus.CRITICAL
                else "Operating optimally"
            ),
        ),
    ]
