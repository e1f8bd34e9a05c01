"""CSV adapter for energy readings."""

from __future__ import annotations

import csv
from datetime import datetime

from scheduling_engine.schema import EnergyReading

_REQUIRED_FIELDS = {"timestamp", "energy_level", "completion_rate"}


def _parse_row(row: dict, row_number: int) -> EnergyReading:
    missing = sorted(field for field in _REQUIRED_FIELDS if not row.get(field))
    if missing:
        raise ValueError(f"Row {row_number}: missing required fields {missing}")

    try:
        timestamp = datetime.fromisoformat(row["timestamp"].strip())
    except ValueError as exc:
        raise ValueError(f"Row {row_number}: malformed timestamp") from exc

    try:
        energy_level = float(row["energy_level"])
        completion_rate = float(row["completion_rate"])
    except ValueError as exc:
        raise ValueError(f"Row {row_number}: non-numeric energy_level or completion_rate") from exc

    try:
        return EnergyReading.at(timestamp, energy_level, completion_rate)
    except ValueError as exc:
        raise ValueError(f"Row {row_number}: {exc}") from exc


def parse(file_path: str) -> list[EnergyReading]:
    """Parse CSV file into a list of energy readings."""

    with open(file_path, newline="", encoding="utf-8") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            return []

        readings: list[EnergyReading] = []
        for row_number, row in enumerate(reader, start=2):
            readings.append(_parse_row(row, row_number))
        return readings
