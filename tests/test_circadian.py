from datetime import datetime, timedelta

import pytest

from scheduling_engine.circadian import (
    build_intelligence,
    circadian_rhythm,
    energy_patterns,
    learn_energy_profile,
    rhythm_confidence,
    task_affinity,
    time_preferences,
)
from scheduling_engine.schema import (
    Complexity,
    EisenhowerQuadrant,
    EnergyLevel,
    EnergyProfile,
    EnergyReading,
    TaskSchedule,
)

NOW = datetime(2025, 1, 31, 12, 0)


def readings_at(hour, count, energy, completion):
    start = datetime(2025, 1, 1, hour, 0)
    return [EnergyReading.at(start + timedelta(days=i), energy, completion) for i in range(count)]


def test_rhythm_confidence_scales_with_reading_count():
    assert rhythm_confidence(0) == 0
    assert rhythm_confidence(50) == 0.5
    assert rhythm_confidence(100) == 1.0
    assert rhythm_confidence(150) == 1.0
    assert circadian_rhythm([], NOW).confidence == 0


def test_peaks_and_dips_are_classified_by_score():
    readings = readings_at(9, 3, 9, 0.9) + readings_at(15, 3, 2, 0.2) + readings_at(12, 3, 5, 0.5)
    rhythm = circadian_rhythm(readings, NOW)
    assert [p.hour for p in rhythm.peak_performances] == [9]
    assert rhythm.peak_performances[0].score == pytest.approx(9.0)
    assert [d.hour for d in rhythm.energy_dips] == [15]
    assert rhythm.last_updated == NOW


def test_weekly_patterns_group_by_weekday_and_hour():
    monday = datetime(2025, 1, 6, 9, 0)
    readings = [EnergyReading.at(monday, 8, 1.0), EnergyReading.at(monday + timedelta(days=1), 4, 0.0)]
    rhythm = circadian_rhythm(readings, NOW)
    assert rhythm.weekly_patterns == {0: {9: pytest.approx(9.0)}, 1: {9: pytest.approx(2.0)}}


def test_intelligence_requires_minimum_readings():
    assert build_intelligence(readings_at(10, 9, 6, 0.6), now=NOW) is None
    intelligence = build_intelligence(readings_at(10, 10, 6, 0.6), now=NOW)
    assert intelligence is not None
    assert intelligence.user_rhythm.confidence == pytest.approx(0.1)


def test_energy_patterns_skip_sparse_slots():
    readings = readings_at(8, 3, 7, 0.8) + readings_at(9, 3, 5, 0.6) + readings_at(14, 5, 3, 0.3)
    patterns = energy_patterns(readings)
    assert len(patterns) == 1
    assert (patterns[0].start_hour, patterns[0].end_hour) == (8, 10)
    assert patterns[0].average_energy == pytest.approx(6.0)
    assert patterns[0].task_completion_rate == pytest.approx(0.7)
    assert patterns[0].reading_count == 6


def test_time_preferences_thresholds():
    readings = readings_at(7, 2, 6, 0.6) + readings_at(8, 3, 6, 0.6) + readings_at(9, 10, 8, 0.8)
    preferences = {p.start_hour: p for p in time_preferences(readings)}
    assert set(preferences) == {8, 9}
    assert preferences[8].supported_by_data is False
    assert preferences[9].supported_by_data is True
    assert preferences[9].preference_score == pytest.approx(8.0)
    assert preferences[9].contains(9)
    assert not preferences[9].contains(10)


def test_task_affinity_summarizes_completed_tasks():
    tasks = [
        TaskSchedule("a", "a", EisenhowerQuadrant.URGENT_IMPORTANT, Complexity.COMPLEX, EnergyLevel.HIGH, 60,
                     actual_duration=30, completed=True, satisfaction=4),
        TaskSchedule("b", "b", EisenhowerQuadrant.URGENT_IMPORTANT, Complexity.COMPLEX, EnergyLevel.HIGH, 60,
                     actual_duration=60, completed=True, satisfaction=2),
        TaskSchedule("c", "c", EisenhowerQuadrant.URGENT_IMPORTANT, Complexity.SIMPLE, EnergyLevel.LOW, 15),
    ]
    affinity = task_affinity(tasks)
    assert len(affinity) == 1
    assert affinity[0].complexity is Complexity.COMPLEX
    assert affinity[0].completed_count == 2
    assert affinity[0].average_satisfaction == pytest.approx(3.0)
    assert affinity[0].duration_accuracy == pytest.approx(1.5)


def test_learn_energy_profile_marks_profile_learned():
    readings = []
    for hour in (7, 8, 9, 10, 11):
        readings += readings_at(hour, 2, 6 + hour % 5, 0.9)
    for hour in (14, 15, 16, 17):
        readings += readings_at(hour, 2, 2, 0.1)
    profile = learn_energy_profile(EnergyProfile(), readings)
    assert profile.learned is True
    assert len(profile.peak_hours) == 4
    assert profile.peak_hours[0] == 9
    assert len(profile.low_energy_hours) == 3
    assert set(profile.low_energy_hours) <= {14, 15, 16, 17}


def test_intelligence_minimum_is_configurable():
    assert build_intelligence(readings_at(10, 3, 6, 0.6), now=NOW, min_readings=3) is not None
    assert build_intelligence(readings_at(10, 2, 6, 0.6), now=NOW, min_readings=3) is None
