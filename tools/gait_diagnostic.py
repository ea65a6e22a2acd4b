"""Headless gait diagnostic -- steers the head along scripted paths and
checks that the spine constraints hold and the limbs keep stepping.

Usage::

    python -m tools.gait_diagnostic [--paths circle zigzag] [--ticks 400] [--preset salamander]

or from Python::

    from tools.gait_diagnostic import run_gait_diagnostic, format_gait_report
    results = [run_gait_diagnostic("circle")]
    print(format_gait_report(results))
"""

from __future__ import annotations

import argparse
import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np

from critterforge.coordination.simulation import CreatureSimulation
from critterforge.core.config import CreatureConfig
from critterforge.core.events import EventType

logger = logging.getLogger(__name__)


# ── Head paths ────────────────────────────────────────────────────────
# Each maps (tick, origin) -> head position.  Speeds stay a few units per
# tick, roughly what a pointer-following head produces.

def _line(tick: int, origin: tuple[float, float]) -> tuple[float, float]:
    return origin[0], origin[1] - 2.0 * tick


def _circle(tick: int, origin: tuple[float, float]) -> tuple[float, float]:
    radius = 150.0
    a = tick * 0.02
    return origin[0] + radius * (math.cos(a) - 1.0), origin[1] + radius * math.sin(a)


def _zigzag(tick: int, origin: tuple[float, float]) -> tuple[float, float]:
    return origin[0] + 60.0 * math.sin(tick * 0.05), origin[1] - 2.5 * tick


HEAD_PATHS: dict[str, Callable[[int, tuple[float, float]], tuple[float, float]]] = {
    "line": _line,
    "circle": _circle,
    "zigzag": _zigzag,
}


# ── Result dataclass ──────────────────────────────────────────────────

@dataclass
class GaitDiagnosticResult:
    path_name: str
    ticks: int
    max_length_error: float = 0.0      # worst |segment - rest| over all ticks
    final_length_error: float = 0.0
    max_turn_excess_deg: float = 0.0   # worst turn beyond max_angle, degrees
    steps_started: int = 0
    steps_landed: int = 0
    step_reasons: dict[str, int] = field(default_factory=dict)
    head_travel: float = 0.0
    finite: bool = True

    @property
    def passed(self) -> bool:
        return self.finite and self.steps_started > 0


def run_gait_diagnostic(
    path_name: str = "circle",
    ticks: int = 400,
    config: Optional[CreatureConfig] = None,
    sim: Optional[CreatureSimulation] = None,
) -> GaitDiagnosticResult:
    """Run *ticks* steps along a named head path and collect statistics."""
    path = HEAD_PATHS[path_name]
    if sim is None:
        sim = CreatureSimulation(config)
    result = GaitDiagnosticResult(path_name=path_name, ticks=ticks)

    def on_start(limb, reason, start, target):
        result.steps_started += 1
        result.step_reasons[reason] = result.step_reasons.get(reason, 0) + 1

    def on_land(limb, position):
        result.steps_landed += 1

    sim.events.subscribe(EventType.STEP_STARTED, on_start)
    sim.events.subscribe(EventType.STEP_LANDED, on_land)

    origin = (float(sim.head[0]), float(sim.head[1]))
    start_head = sim.head
    max_angle = sim.spine.max_angle
    try:
        for tick in range(1, ticks + 1):
            sim.step(path(tick, origin))
            if not np.all(np.isfinite(sim.spine.positions)):
                result.finite = False
                logger.warning("Non-finite spine positions at tick %d", tick)
                break
            result.max_length_error = max(result.max_length_error, sim.spine.max_length_error())
            excess = float(np.max(sim.spine.turn_angles(), initial=0.0)) - max_angle
            result.max_turn_excess_deg = max(result.max_turn_excess_deg, math.degrees(max(excess, 0.0)))
    finally:
        sim.events.unsubscribe(EventType.STEP_STARTED, on_start)
        sim.events.unsubscribe(EventType.STEP_LANDED, on_land)

    for joints in sim.limb_joint_arrays():
        if not np.all(np.isfinite(joints)):
            result.finite = False
    result.final_length_error = sim.spine.max_length_error()
    result.head_travel = float(np.linalg.norm(sim.head - start_head))
    return result


def format_gait_report(results: list[GaitDiagnosticResult]) -> str:
    """Format diagnostic results as a human-readable report."""
    lines = ["=" * 60, "GAIT DIAGNOSTIC REPORT", "=" * 60, ""]
    for r in results:
        status = "PASS" if r.passed else "FAIL"
        lines.append(f"  {r.path_name:10s} ticks={r.ticks:<5d} [{status}]")
        lines.append(f"    segment error  max={r.max_length_error:.4f}  final={r.final_length_error:.4f}")
        lines.append(f"    turn excess    max={r.max_turn_excess_deg:.3f} deg")
        reasons = ", ".join(f"{k}={v}" for k, v in sorted(r.step_reasons.items())) or "none"
        lines.append(f"    steps          started={r.steps_started} landed={r.steps_landed} ({reasons})")
        lines.append(f"    head travel    {r.head_travel:.1f}")
        lines.append("")
    return "\n".join(lines)


def main():
    parser = argparse.ArgumentParser(description="Headless gait diagnostic")
    parser.add_argument("--paths", nargs="*", choices=sorted(HEAD_PATHS), help="Head paths to run")
    parser.add_argument("--ticks", type=int, default=400, help="Ticks per path")
    parser.add_argument("--preset", type=str, help="Creature preset name")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

    results = []
    for name in args.paths or sorted(HEAD_PATHS):
        if args.preset:
            sim = CreatureSimulation.from_preset(args.preset)
        else:
            sim = CreatureSimulation()
        results.append(run_gait_diagnostic(name, args.ticks, sim=sim))
    print(format_gait_report(results))


if __name__ == "__main__":
    main()
