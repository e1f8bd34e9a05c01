"""JSON adapter for energy readings and analytics reports."""

from __future__ import annotations

import json
from datetime import datetime

from scheduling_engine.reports import ContextualInsights, PerformanceReport
from scheduling_engine.schema import EnergyReading

_REQUIRED_FIELDS = {"timestamp", "energy_level", "completion_rate"}


def _parse_item(item: dict, index: int) -> EnergyReading:
    if not isinstance(item, dict):
        raise ValueError(f"Item {index}: expected an object")

    missing = sorted(field for field in _REQUIRED_FIELDS if item.get(field) is None)
    if missing:
        raise ValueError(f"Item {index}: missing required fields {missing}")

    try:
        timestamp = datetime.fromisoformat(str(item["timestamp"]))
    except ValueError as exc:
        raise ValueError(f"Item {index}: malformed timestamp") from exc

    try:
        return EnergyReading.at(timestamp, float(item["energy_level"]), float(item["completion_rate"]))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Item {index}: {exc}") from exc


def parse(file_path: str) -> list[EnergyReading]:
    """Parse JSON file into energy readings."""

    with open(file_path, encoding="utf-8") as handle:
        payload = json.load(handle)

    if not isinstance(payload, list):
        raise ValueError("JSON payload must be a list of objects")

    return [_parse_item(item, i) for i, item in enumerate(payload, start=1)]


def parse_report(file_path: str) -> tuple[PerformanceReport, ContextualInsights]:
    """Parse a `{"performance_report": ..., "contextual_insights": ...}` document."""

    with open(file_path, encoding="utf-8") as handle:
        payload = json.load(handle)

    if not isinstance(payload, dict):
        raise ValueError("Report payload must be a JSON object")

    try:
        report = PerformanceReport.from_dict(payload.get("performance_report") or {})
        insights = ContextualInsights.from_dict(payload.get("contextual_insights") or {})
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"Malformed report: {exc}") from exc
    return report, insights
