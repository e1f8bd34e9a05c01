import json

import pytest

from scheduling_engine.adapters.csv_adapter import parse as parse_csv
from scheduling_engine.adapters.json_adapter import parse as parse_json
from scheduling_engine.adapters.json_adapter import parse_report


def test_csv_parse_success(tmp_path):
    path = tmp_path / "readings.csv"
    path.write_text(
        "timestamp,energy_level,completion_rate\n"
        "2025-01-06T09:15:00,8,0.9\n"
        "2025-01-06T14:30:00,3,0.2\n",
        encoding="utf-8",
    )
    readings = parse_csv(str(path))
    assert len(readings) == 2
    assert readings[0].hour == 9
    assert readings[1].energy_level == 3.0


def test_csv_parse_invalid_row(tmp_path):
    path = tmp_path / "readings.csv"
    path.write_text("timestamp,energy_level,completion_rate\nbad,5,0.5\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Row 2"):
        parse_csv(str(path))


def test_csv_parse_out_of_range_energy(tmp_path):
    path = tmp_path / "readings.csv"
    path.write_text("timestamp,energy_level,completion_rate\n2025-01-06T09:00:00,11,0.5\n", encoding="utf-8")
    with pytest.raises(ValueError):
        parse_csv(str(path))


def test_json_parse_success(tmp_path):
    path = tmp_path / "readings.json"
    payload = [
        {"timestamp": "2025-01-06T09:00:00", "energy_level": 7, "completion_rate": 0.8},
        {"timestamp": "2025-01-06T10:00:00", "energy_level": 6.5, "completion_rate": 0.7},
    ]
    path.write_text(json.dumps(payload), encoding="utf-8")
    readings = parse_json(str(path))
    assert [r.hour for r in readings] == [9, 10]


def test_json_parse_malformed(tmp_path):
    path = tmp_path / "readings.json"
    path.write_text(json.dumps([{"timestamp": "bad", "energy_level": 5, "completion_rate": 0.5}]), encoding="utf-8")
    with pytest.raises(ValueError):
        parse_json(str(path))


def test_parse_report(tmp_path):
    path = tmp_path / "report.json"
    payload = {
        "performance_report": {
            "summary": {"most_effective_model": "pomodoro-classic", "overall_productivity_score": 72},
            "trends": {"productivity_trend": 0.2, "behavioral_shifts": [{"shift": "Later starts", "impact": "neutral"}]},
        },
        "contextual_insights": {
            "time_based_patterns": [
                {"time_slot": "09:00-11:00", "effectiveness": 90, "recommended_model": "ultradian"}
            ],
        },
    }
    path.write_text(json.dumps(payload), encoding="utf-8")
    report, insights = parse_report(str(path))
    assert report.summary.most_effective_model == "pomodoro-classic"
    assert report.summary.overall_productivity_score == 72.0
    assert report.trends.behavioral_shifts[0].shift == "Later starts"
    assert insights.time_based_patterns[0].effectiveness == 90.0
    assert insights.energy_based_patterns == []


def test_parse_report_rejects_list(tmp_path):
    path = tmp_path / "report.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(ValueError):
        parse_report(str(path))
