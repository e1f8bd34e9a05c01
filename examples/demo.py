"""Demo script for scheduling-engine."""

import sys
from datetime import datetime, timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from scheduling_engine.catalog import time_blocking_schedule
from scheduling_engine.clock import ManualClock
from scheduling_engine.engine import SchedulingEngine
from scheduling_engine.notifier import describe_recommendation
from scheduling_engine.persistence import InMemorySettingsStore
from scheduling_engine.schema import (
    Complexity,
    DeadlineDrivenModel,
    EisenhowerModel,
    EisenhowerQuadrant,
    EnergyLevel,
    UltradianModel,
)


def main() -> None:
    clock = ManualClock(datetime(2025, 1, 6, 10, 20))
    engine = SchedulingEngine(InMemorySettingsStore(), clock=clock)
    engine.add_task(
        "Ship release notes",
        EisenhowerQuadrant.URGENT_IMPORTANT,
        Complexity.MODERATE,
        EnergyLevel.HIGH,
        40,
        deadline=clock.now() + timedelta(hours=3),
    )
    engine.add_task("Inbox sweep", EisenhowerQuadrant.URGENT_NOT_IMPORTANT, Complexity.SIMPLE, EnergyLevel.LOW, 15)

    models = [
        time_blocking_schedule(),
        EisenhowerModel(id="eisenhower", name="Eisenhower Matrix"),
        UltradianModel(id="ultradian", name="Ultradian Rhythm", work_duration=75, rest_duration=15),
        DeadlineDrivenModel(id="deadline", name="Deadline Driven", time_pressure_threshold=24),
    ]
    for model in models:
        engine.set_scheduling_model(model)
        print(f"{model.name}: {describe_recommendation(engine.get_next_recommended_action())}")


if __name__ == "__main__":
    main()
