# ./mofguard/cli.py

from __future__ import annotations

import json
import random
from collections import defaultdict
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple

import typer
from loguru import logger
from pydantic import ValidationError

from mofguard.core.config import Settings, get_settings
from mofguard.core.errors import ConfigurationError, MonitorError, to_problem
from mofguard.core.logger import setup_logging
from mofguard.schemas.common import CardTone, LogCategory, SystemStatus
from mofguard.schemas.monitor import FlowRateIn
from mofguard.services.dashboard import build_stat_cards, status_tone
from mofguard.services.monitor import IoTMonitor
from mofguard.services.scheduler import IntervalTickSource, ManualTickSource
from mofguard.services.simulation.engine import SimulationEngine
from mofguard.services.simulation.models import ColumnSpec

app = typer.Typer(help="MOF adsorption column IoT monitor (simulated).")

TONE_COLORS = {
    CardTone.NORMAL: typer.colors.GREEN,
    CardTone.WARNING: typer.colors.YELLOW,
    CardTone.CRITICAL: typer.colors.RED,
}
CATEGORY_COLORS = {
    LogCategory.INFO: typer.colors.BLUE,
    LogCategory.ALERT: typer.colors.RED,
    LogCategory.ACTION: typer.colors.MAGENTA,
}


class MaintenanceMode(str, Enum):
    auto = "auto"
    manual = "manual"


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _load_settings() -> Settings:
    try:
        return get_settings()
    except ValidationError as exc:
        raise ConfigurationError(
            "invalid configuration",
            detail=[{"loc": e.get("loc"), "msg": e.get("msg")} for e in exc.errors()],
        ) from exc


def _fail(exc: MonitorError) -> None:
    typer.echo(json.dumps(to_problem(exc), ensure_ascii=False, default=str), err=True)
    raise typer.Exit(code=2)


def _build_monitor(settings: Settings, seed: Optional[int], noisy: bool = True) -> IoTMonitor:
    rng = random.Random(seed)
    engine = SimulationEngine(ColumnSpec.from_settings(settings), rng, noisy=noisy)
    return IoTMonitor(settings, engine=engine)


def _check_flow_bound(
    settings: Settings, flow_rate: Optional[float], param_hint: str = "--flow-rate"
) -> None:
    if flow_rate is not None and flow_rate > settings.FLOW_RATE_MAX_LPM:
        raise typer.BadParameter(
            f"must be <= {settings.FLOW_RATE_MAX_LPM:g} L/min", param_hint=param_hint
        )


# -----------------------------------------------------------------------------
# Operator commands (--at TICK:COMMAND)
#   reset | replace | stop | start | flow=Q
#   TICK 0 = 시작 직후, N = N 번째 tick 직후 적용
# -----------------------------------------------------------------------------
OPERATOR_COMMANDS = ("reset", "replace", "stop", "start", "flow")
Schedule = Dict[int, List[Tuple[str, Optional[float]]]]


def _parse_schedule(settings: Settings, entries: Optional[List[str]]) -> Schedule:
    schedule: Schedule = defaultdict(list)
    for raw in entries or []:
        tick_s, sep, command = raw.partition(":")
        name, _, arg = command.strip().partition("=")
        name = name.lower()
        if not sep or not tick_s.strip().isdigit() or name not in OPERATOR_COMMANDS:
            raise typer.BadParameter(f"expected TICK:COMMAND, got {raw!r}", param_hint="--at")

        value: Optional[float] = None
        if name == "flow":
            try:
                value = FlowRateIn(value=arg).value
            except ValidationError:
                raise typer.BadParameter(
                    f"invalid flow rate in {raw!r}", param_hint="--at"
                ) from None
            _check_flow_bound(settings, value, param_hint="--at")
        elif arg:
            raise typer.BadParameter(f"{name} takes no value: {raw!r}", param_hint="--at")

        schedule[int(tick_s)].append((name, value))
    return schedule


def _apply_command(monitor: IoTMonitor, name: str, value: Optional[float]) -> None:
    if name == "reset":
        monitor.reset()
    elif name == "replace":
        monitor.confirm_maintenance()
    elif name == "stop":
        monitor.stop()
    elif name == "start":
        monitor.start()
    elif name == "flow":
        monitor.set_flow_rate(value)
    logger.debug("operator command {} ({})", name, value)


def _apply_due(monitor: IoTMonitor, schedule: Schedule, tick: int) -> List[str]:
    applied = []
    for name, value in schedule.get(tick, ()):
        _apply_command(monitor, name, value)
        applied.append(name if value is None else f"{name}={value:g}")
    return applied


def _echo_new_logs(monitor: IoTMonitor, seen: Set[str]) -> None:
    for entry in monitor.logs:
        if entry.id in seen:
            continue
        seen.add(entry.id)
        typer.secho(
            f"  {entry.timestamp} [{entry.category.value:<6}] {entry.message}",
            fg=CATEGORY_COLORS[entry.category],
        )


def _echo_cards(monitor: IoTMonitor) -> None:
    cards = build_stat_cards(monitor.snapshot(), monitor.settings.OUTLET_WARNING_MGL)
    typer.echo("-" * 60)
    for card in cards:
        unit = f" {card.unit}" if card.unit else ""
        typer.secho(
            f"{card.title:<16} {card.value:>10}{unit:<6} {card.description}",
            fg=TONE_COLORS[card.tone],
        )


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------
AT_HELP = "Operator command after tick N: N:reset, N:replace, N:stop, N:start, N:flow=Q (repeatable)."


@app.command("run")
def run(
    ticks: int = typer.Option(0, min=0, help="Number of ticks (0 = until Ctrl-C)."),
    flow_rate: Optional[float] = typer.Option(None, min=0.0, help="Flow rate (L/min)."),
    interval: Optional[float] = typer.Option(
        None, min=0.01, help="Wall-clock seconds between ticks (simulated step stays TICK_INTERVAL_S)."
    ),
    seed: Optional[int] = typer.Option(None, help="Random seed for inlet noise."),
    maintenance: MaintenanceMode = typer.Option(
        MaintenanceMode.manual, help="auto: replace column on CRITICAL, manual: ask operator."
    ),
    at: Optional[List[str]] = typer.Option(None, "--at", help=AT_HELP),
    log_level: Optional[str] = typer.Option(None, help="Console log level."),
):
    """Live console dashboard driven by a wall-clock tick source."""
    try:
        settings = _load_settings()
        _check_flow_bound(settings, flow_rate)
        schedule = _parse_schedule(settings, at)
        setup_logging(level=log_level)

        monitor = _build_monitor(settings, seed)
        source = IntervalTickSource(
            interval or settings.TICK_INTERVAL_S,
            max_ticks=ticks or None,
            step_s=settings.TICK_INTERVAL_S,
        )
        monitor.attach(source)

        seen: Set[str] = set()
        last_ts = 0

        def render(_dt_s: float) -> None:
            nonlocal last_ts
            sample = monitor.history[-1] if monitor.history else None
            if sample is not None and sample.timestamp != last_ts:
                last_ts = sample.timestamp
                typer.secho(
                    f"[{sample.time_label}] Cin {sample.inlet_concentration:6.2f} mg/L | "
                    f"Cout {sample.outlet_concentration:7.3f} mg/L | "
                    f"sat {sample.saturation_pct:6.2f}% | {monitor.status.value}",
                    fg=TONE_COLORS[status_tone(monitor.status)],
                )
            _echo_new_logs(monitor, seen)

            if monitor.status == SystemStatus.CRITICAL:
                if maintenance == MaintenanceMode.auto:
                    monitor.confirm_maintenance()
                elif typer.confirm("Column saturated. Confirm cartridge replacement?", default=True):
                    monitor.confirm_maintenance()
                else:
                    monitor.stop()
                    source.stop()

            for applied in _apply_due(monitor, schedule, source.ticks_fired):
                typer.secho(f"> tick {source.ticks_fired}: {applied}", bold=True)
            _echo_new_logs(monitor, seen)

        source.subscribe(render)

        typer.secho(f"== {settings.PROJECT_NAME} ==", bold=True)
        monitor.start()
        if flow_rate is not None:
            monitor.set_flow_rate(flow_rate)
        _apply_due(monitor, schedule, 0)
        _echo_new_logs(monitor, seen)

        try:
            source.run()
        except (KeyboardInterrupt, typer.Abort):
            # typer.confirm 은 Ctrl-C/EOF 를 Abort 로 바꿔 올린다
            source.stop()
            typer.echo()
        monitor.stop()
        _echo_new_logs(monitor, seen)
        _echo_cards(monitor)
    except MonitorError as exc:
        _fail(exc)


@app.command("simulate")
def simulate(
    ticks: int = typer.Option(40, min=1, help="Number of synthetic ticks."),
    flow_rate: Optional[float] = typer.Option(None, min=0.0, help="Flow rate (L/min)."),
    seed: Optional[int] = typer.Option(None, help="Random seed for inlet noise."),
    noise: bool = typer.Option(True, "--noise/--no-noise", help="Inlet/efficiency noise."),
    at: Optional[List[str]] = typer.Option(None, "--at", help=AT_HELP),
    pretty: bool = True,
):
    """Deterministic batch run; prints the final snapshot as JSON."""
    try:
        settings = _load_settings()
        _check_flow_bound(settings, flow_rate)
        schedule = _parse_schedule(settings, at)
        setup_logging(level="WARNING", to_file=False)

        monitor = _build_monitor(settings, seed, noisy=noise)
        source = ManualTickSource(settings.TICK_INTERVAL_S)
        monitor.attach(source)
        source.subscribe(lambda _dt: _apply_due(monitor, schedule, source.ticks_fired))

        monitor.start()
        if flow_rate is not None:
            monitor.set_flow_rate(flow_rate)
        _apply_due(monitor, schedule, 0)
        source.advance(ticks)
        logger.debug("simulate finished: {} ticks, status={}", ticks, monitor.status.value)

        typer.echo(monitor.snapshot().model_dump_json(indent=2 if pretty else None))
    except MonitorError as exc:
        _fail(exc)


@app.command("info")
def info():
    """Print the effective configuration and derived column capacity."""
    try:
        settings = _load_settings()
        payload = settings.model_dump()
        payload["MAX_LOAD_MG"] = settings.MAX_LOAD_MG
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
    except MonitorError as exc:
        _fail(exc)


if __name__ == "__main__":
    app()
