"""Task urgency scoring."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from scheduling_engine.schema import Complexity, EisenhowerQuadrant, TaskSchedule

QUADRANT_WEIGHTS = {
    EisenhowerQuadrant.URGENT_IMPORTANT: 100.0,
    EisenhowerQuadrant.NOT_URGENT_IMPORTANT: 75.0,
    EisenhowerQuadrant.URGENT_NOT_IMPORTANT: 50.0,
    EisenhowerQuadrant.NOT_URGENT_NOT_IMPORTANT: 25.0,
}

COMPLEXITY_MULTIPLIERS = {
    Complexity.VERY_COMPLEX: 1.5,
    Complexity.COMPLEX: 1.2,
    Complexity.MODERATE: 1.0,
    Complexity.SIMPLE: 0.8,
}

DEADLINE_WINDOW_HOURS = 24.0
MAX_DEADLINE_PRESSURE = 50.0


def hours_until(deadline: datetime, now: datetime) -> float:
    return (deadline - now).total_seconds() / 3600.0


def task_priority_score(task: TaskSchedule, now: Optional[datetime] = None) -> float:
    """Return an unbounded urgency score; only meaningful for relative ordering."""

    now = now or datetime.now()
    score = QUADRANT_WEIGHTS.get(task.priority, 0.0)

    if task.deadline is not None:
        remaining = hours_until(task.deadline, now)
        if remaining < DEADLINE_WINDOW_HOURS:
            score += max(0.0, MAX_DEADLINE_PRESSURE - remaining)

    return score * COMPLEXITY_MULTIPLIERS.get(task.complexity, 1.0)


def rank_tasks(tasks: Iterable[TaskSchedule], now: Optional[datetime] = None) -> list[TaskSchedule]:
    """Sort tasks by priority score, highest first."""

    now = now or datetime.now()
    return sorted(tasks, key=lambda task: task_priority_score(task, now), reverse=True)
