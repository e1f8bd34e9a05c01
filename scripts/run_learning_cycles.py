"""Replay energy readings and an analytics report through simulated learning cycles."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from scheduling_engine.adapters import csv_adapter, json_adapter
from scheduling_engine.clock import ManualClock
from scheduling_engine.config import EngineConfig
from scheduling_engine.engine import LearningLoopRunner, SchedulingEngine
from scheduling_engine.learning import AdaptationStatus
from scheduling_engine.logging_config import get_logger, setup_logging
from scheduling_engine.persistence import InMemorySettingsStore, JsonFileSettingsStore
from scheduling_engine.reports import StaticReportProvider
from scheduling_engine.schema import AdaptiveModel
from scheduling_engine.simulation import simulate_cycles, summarize_cycles

logger = get_logger(__name__)


def _load_readings(path: Path):
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return csv_adapter.parse(str(path))
    if suffix == ".json":
        return json_adapter.parse(str(path))
    raise ValueError("Unsupported input format, expected .csv or .json")


def main() -> None:
    parser = argparse.ArgumentParser(description="Run simulated adaptive learning cycles")
    parser.add_argument("--readings", required=True, help="Path to CSV/JSON energy readings")
    parser.add_argument("--report", required=True, help="Path to JSON performance report + insights")
    parser.add_argument("--hours", type=int, default=24 * 8, help="Simulated hours to run")
    parser.add_argument("--config", help="Optional YAML config file")
    parser.add_argument("--state", help="Optional JSON settings file to persist engine state")
    parser.add_argument("--log-level", default=None)
    parser.add_argument("--json-logs", action="store_true", default=None, help="Emit logs as JSON lines")
    args = parser.parse_args()

    setup_logging(args.log_level, args.json_logs)

    readings = sorted(_load_readings(Path(args.readings)), key=lambda r: r.timestamp)
    if not readings:
        raise SystemExit("No readings found")
    report, insights = json_adapter.parse_report(args.report)

    clock = ManualClock(readings[-1].timestamp)
    store = JsonFileSettingsStore(args.state) if args.state else InMemorySettingsStore()
    engine = SchedulingEngine(store, clock=clock, config=EngineConfig.load(args.config))
    for reading in readings:
        engine.record_energy_reading(reading.energy_level, reading.completion_rate, reading.timestamp)
    engine.set_scheduling_model(AdaptiveModel(id="adaptive", name="Adaptive"))

    runner = LearningLoopRunner(engine, StaticReportProvider(report, insights), clock)
    results = simulate_cycles(runner, clock, args.hours)
    engine.dispose()
    summary = summarize_cycles(results)
    logger.info("simulation finished", hours=args.hours, **summary)

    output = {
        "summary": summary,
        "active_model_id": engine.model_selector.get_active_model_id(),
        "adaptations": [a.to_dict() for a in engine.adaptations],
        "adaptation_status": {
            status.value: len(engine.learner.adaptations_by_status(status)) for status in AdaptationStatus
        },
        "recommendation": engine.get_next_recommended_action().to_dict(),
    }
    print(json.dumps(output, indent=2))


if __name__ == "__main__":
    main()
