"""Deterministic multi-cycle simulation against a manual clock."""

from __future__ import annotations

from datetime import timedelta

from scheduling_engine.clock import ManualClock
from scheduling_engine.engine import LearningLoopRunner
from scheduling_engine.learning import CycleResult


def simulate_cycles(
    runner: LearningLoopRunner,
    clock: ManualClock,
    hours: int,
    step: timedelta = timedelta(hours=1),
) -> list[CycleResult]:
    """Advance the clock `hours` steps, ticking the runner after each one."""

    results = []
    for _ in range(hours):
        clock.advance(step)
        result = runner.tick()
        if result is not None:
            results.append(result)
    return results


def summarize_cycles(results: list[CycleResult]) -> dict:
    return {
        "cycles": len(results),
        "opportunities": sum(len(r.opportunities) for r in results),
        "executed": sum(len(r.executed) for r in results),
        "evaluated": sum(len(r.evaluated) for r in results),
        "rolled_back": sum(len(r.rolled_back) for r in results),
    }
