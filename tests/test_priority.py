from datetime import datetime, timedelta

import pytest

from scheduling_engine.priority import rank_tasks, task_priority_score
from scheduling_engine.schema import Complexity, EisenhowerQuadrant, EnergyLevel, TaskSchedule

NOW = datetime(2025, 1, 6, 10, 0)


def make_task(task_id, priority, complexity=Complexity.MODERATE, deadline_hours=None):
    deadline = NOW + timedelta(hours=deadline_hours) if deadline_hours is not None else None
    return TaskSchedule(task_id, task_id, priority, complexity, EnergyLevel.MODERATE, 30, deadline=deadline)


def test_quadrant_weights_without_deadline():
    assert task_priority_score(make_task("a", EisenhowerQuadrant.URGENT_IMPORTANT), NOW) == 100
    assert task_priority_score(make_task("b", EisenhowerQuadrant.NOT_URGENT_IMPORTANT), NOW) == 75
    assert task_priority_score(make_task("c", EisenhowerQuadrant.URGENT_NOT_IMPORTANT), NOW) == 50
    assert task_priority_score(make_task("d", EisenhowerQuadrant.NOT_URGENT_NOT_IMPORTANT), NOW) == 25


def test_deadline_pressure_only_inside_window():
    far = make_task("far", EisenhowerQuadrant.URGENT_IMPORTANT, deadline_hours=30)
    near = make_task("near", EisenhowerQuadrant.URGENT_IMPORTANT, deadline_hours=2)
    assert task_priority_score(far, NOW) == 100
    assert task_priority_score(near, NOW) == 148


def test_complexity_multiplier():
    task = make_task("a", EisenhowerQuadrant.NOT_URGENT_IMPORTANT, Complexity.VERY_COMPLEX)
    assert task_priority_score(task, NOW) == 112.5
    simple = make_task("b", EisenhowerQuadrant.NOT_URGENT_IMPORTANT, Complexity.SIMPLE)
    assert task_priority_score(simple, NOW) == pytest.approx(60)


def test_score_monotonic_as_deadline_approaches():
    previous = None
    for quarter_hours in range(95, -1, -1):
        task = make_task("a", EisenhowerQuadrant.URGENT_NOT_IMPORTANT, Complexity.COMPLEX, quarter_hours / 4)
        score = task_priority_score(task, NOW)
        if previous is not None:
            assert score >= previous
        previous = score


def test_rank_tasks_orders_descending():
    tasks = [
        make_task("low", EisenhowerQuadrant.NOT_URGENT_NOT_IMPORTANT),
        make_task("due", EisenhowerQuadrant.URGENT_NOT_IMPORTANT, deadline_hours=1),
        make_task("top", EisenhowerQuadrant.URGENT_IMPORTANT),
    ]
    assert [t.id for t in rank_tasks(tasks, NOW)] == ["top", "due", "low"]
