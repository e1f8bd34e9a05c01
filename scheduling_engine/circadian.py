"""Circadian rhythm and energy pattern extraction from energy readings."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Iterable, Optional

import numpy as np

from scheduling_engine.schema import (
    CircadianRhythm,
    Complexity,
    EnergyPattern,
    EnergyProfile,
    EnergyReading,
    HourScore,
    SchedulingIntelligence,
    TaskAffinity,
    TaskSchedule,
    TimePreference,
)

MIN_READINGS_FOR_INTELLIGENCE = 10
FULL_CONFIDENCE_READINGS = 100
PEAK_SCORE = 7.0
DIP_SCORE = 4.0
PATTERN_SLOT_HOURS = 2
MIN_PATTERN_READINGS = 5
MIN_PREFERENCE_READINGS = 3
SUPPORTED_PREFERENCE_READINGS = 10


def performance_score(avg_energy: float, avg_completion: float) -> float:
    """Blend 1-10 energy with 0-1 completion on a shared 0-10 scale."""

    return (avg_energy + avg_completion * 10) / 2


def rhythm_confidence(reading_count: int) -> float:
    return min(1.0, reading_count / FULL_CONFIDENCE_READINGS)


def _hourly_readings(readings: Iterable[EnergyReading]) -> dict[int, list[EnergyReading]]:
    by_hour: dict[int, list[EnergyReading]] = defaultdict(list)
    for reading in readings:
        by_hour[reading.hour].append(reading)
    return by_hour


def _score(readings: list[EnergyReading]) -> float:
    energy = np.mean([r.energy_level for r in readings])
    completion = np.mean([r.completion_rate for r in readings])
    return float(performance_score(energy, completion))


def circadian_rhythm(readings: list[EnergyReading], now: Optional[datetime] = None) -> CircadianRhythm:
    """Classify each observed hour as a peak, a dip or neither."""

    by_hour = _hourly_readings(readings)
    peaks: list[HourScore] = []
    dips: list[HourScore] = []

    for hour in range(24):
        hour_readings = by_hour.get(hour)
        if not hour_readings:
            continue
        score = _score(hour_readings)
        if score > PEAK_SCORE:
            peaks.append(HourScore(hour, score))
        elif score < DIP_SCORE:
            dips.append(HourScore(hour, score))

    by_day: dict[int, list[EnergyReading]] = defaultdict(list)
    for reading in readings:
        by_day[reading.timestamp.weekday()].append(reading)
    weekly_patterns = {
        day: {hour: _score(hour_readings) for hour, hour_readings in sorted(_hourly_readings(day_readings).items())}
        for day, day_readings in sorted(by_day.items())
    }

    return CircadianRhythm(
        peak_performances=sorted(peaks, key=lambda p: p.score, reverse=True),
        energy_dips=sorted(dips, key=lambda p: p.score),
        weekly_patterns=weekly_patterns,
        confidence=rhythm_confidence(len(readings)),
        last_updated=now or datetime.now(),
    )


def energy_patterns(readings: list[EnergyReading]) -> list[EnergyPattern]:
    """Aggregate readings into two-hour slots, skipping sparse slots."""

    patterns = []
    for start in range(0, 24, PATTERN_SLOT_HOURS):
        slot = [r for r in readings if start <= r.hour < start + PATTERN_SLOT_HOURS]
        if len(slot) <= MIN_PATTERN_READINGS:
            continue
        patterns.append(
            EnergyPattern(
                start_hour=start,
                end_hour=start + PATTERN_SLOT_HOURS,
                average_energy=float(np.mean([r.energy_level for r in slot])),
                task_completion_rate=float(np.mean([r.completion_rate for r in slot])),
                reading_count=len(slot),
            )
        )
    return patterns


def time_preferences(readings: list[EnergyReading]) -> list[TimePreference]:
    by_hour = _hourly_readings(readings)
    preferences = []
    for hour in range(24):
        hour_readings = by_hour.get(hour, [])
        if len(hour_readings) < MIN_PREFERENCE_READINGS:
            continue
        preferences.append(
            TimePreference(
                start_hour=hour,
                end_hour=hour + 1,
                preference_score=_score(hour_readings),
                supported_by_data=len(hour_readings) >= SUPPORTED_PREFERENCE_READINGS,
            )
        )
    return preferences


def task_affinity(tasks: Iterable[TaskSchedule]) -> list[TaskAffinity]:
    """Summarize completed tasks per complexity: satisfaction and estimate accuracy."""

    by_complexity: dict[Complexity, list[TaskSchedule]] = defaultdict(list)
    for task in tasks:
        if task.completed:
            by_complexity[task.complexity].append(task)

    affinity = []
    for complexity in Complexity:
        done = by_complexity.get(complexity)
        if not done:
            continue
        ratings = [t.satisfaction for t in done if t.satisfaction is not None]
        ratios = [t.estimated_duration / t.actual_duration for t in done if t.actual_duration]
        affinity.append(
            TaskAffinity(
                complexity=complexity,
                completed_count=len(done),
                average_satisfaction=float(np.mean(ratings)) if ratings else None,
                duration_accuracy=float(np.mean(ratios)) if ratios else None,
            )
        )
    return affinity


def build_intelligence(
    readings: list[EnergyReading],
    tasks: Iterable[TaskSchedule] = (),
    now: Optional[datetime] = None,
    min_readings: int = MIN_READINGS_FOR_INTELLIGENCE,
) -> Optional[SchedulingIntelligence]:
    """Rebuild the scheduling intelligence, or None while data is too sparse."""

    if len(readings) < min_readings:
        return None

    return SchedulingIntelligence(
        user_rhythm=circadian_rhythm(readings, now),
        energy_patterns=energy_patterns(readings),
        productivity_zones=time_preferences(readings),
        task_affinity=task_affinity(tasks),
    )


def learn_energy_profile(profile: EnergyProfile, readings: list[EnergyReading]) -> EnergyProfile:
    """Refresh peak and low-energy hours of a profile from the observed rhythm."""

    rhythm = circadian_rhythm(readings)
    profile.peak_hours = [p.hour for p in rhythm.peak_performances[:4]]
    profile.low_energy_hours = [p.hour for p in rhythm.energy_dips[:3]]
    profile.learned = True
    return profile
