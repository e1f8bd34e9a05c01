"""Productivity metric snapshots used as adaptation baselines."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from scheduling_engine.reports import PerformanceReport
from scheduling_engine.schema import TaskSchedule


def average_satisfaction(tasks: Iterable[TaskSchedule]) -> Optional[float]:
    ratings = [t.satisfaction for t in tasks if t.completed and t.satisfaction is not None]
    return sum(ratings) / len(ratings) if ratings else None


def capture_metrics(
    report: PerformanceReport,
    tasks: Iterable[TaskSchedule] = (),
    now: Optional[datetime] = None,
) -> dict:
    """Snapshot productivity, satisfaction and completion for later comparison."""

    satisfaction = report.summary.average_satisfaction
    if satisfaction is None:
        satisfaction = average_satisfaction(tasks)

    return {
        "productivity_score": report.summary.overall_productivity_score,
        "average_satisfaction": float(satisfaction) if satisfaction is not None else 0.0,
        "average_completion_rate": report.summary.average_completion_rate,
        "capture_date": (now or datetime.now()).isoformat(),
    }
