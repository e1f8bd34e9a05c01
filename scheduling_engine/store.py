"""In-memory tasks, energy readings and adaptation rules, mirrored to settings."""

from __future__ import annotations

import logging
import secrets
import string
from datetime import datetime, timedelta
from typing import Callable, Optional

from scheduling_engine.persistence import (
    ADAPTATION_RULES_KEY,
    ENERGY_READINGS_KEY,
    TASKS_KEY,
    SafeSettings,
)
from scheduling_engine.schema import (
    AdaptationRule,
    Complexity,
    EisenhowerQuadrant,
    EnergyLevel,
    EnergyReading,
    TaskSchedule,
)

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


def new_task_id(now: datetime) -> str:
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"task_{int(now.timestamp() * 1000)}_{suffix}"


def _load_items(settings: SafeSettings, key: str, parse: Callable[[dict], object]) -> list:
    items = []
    for raw in settings.load(key, []) or []:
        try:
            items.append(parse(raw))
        except (KeyError, TypeError, ValueError):
            logger.warning("Skipping malformed %s entry", key, exc_info=True)
    return items


class TaskEnergyStore:
    def __init__(
        self,
        settings: SafeSettings,
        now: Callable[[], datetime] = datetime.now,
        retention_days: int = 30,
    ) -> None:
        self.settings = settings
        self._now = now
        self.retention = timedelta(days=retention_days)
        self.tasks: list[TaskSchedule] = _load_items(settings, TASKS_KEY, TaskSchedule.from_dict)
        self.readings: list[EnergyReading] = _load_items(settings, ENERGY_READINGS_KEY, EnergyReading.from_dict)
        self.rules: list[AdaptationRule] = _load_items(settings, ADAPTATION_RULES_KEY, AdaptationRule.from_dict)

    # Tasks

    def add_task(
        self,
        name: str,
        priority: EisenhowerQuadrant,
        complexity: Complexity,
        energy_required: EnergyLevel,
        estimated_duration: int,
        deadline: Optional[datetime] = None,
    ) -> str:
        if estimated_duration <= 0:
            raise ValueError("estimated_duration must be positive")
        task = TaskSchedule(
            id=new_task_id(self._now()),
            name=name,
            priority=EisenhowerQuadrant(priority),
            complexity=Complexity(complexity),
            energy_required=EnergyLevel(energy_required),
            estimated_duration=estimated_duration,
            deadline=deadline,
        )
        self.tasks.append(task)
        self._persist_tasks()
        return task.id

    def get_task(self, task_id: str) -> Optional[TaskSchedule]:
        return next((t for t in self.tasks if t.id == task_id), None)

    def complete_task(
        self,
        task_id: str,
        actual_duration: Optional[int] = None,
        satisfaction: Optional[int] = None,
    ) -> bool:
        task = self.get_task(task_id)
        if task is None or task.completed:
            return False
        if satisfaction is not None and not 1 <= satisfaction <= 5:
            raise ValueError(f"satisfaction out of range: {satisfaction}")

        task.completed = True
        if actual_duration is not None:
            task.actual_duration = actual_duration
        if satisfaction is not None:
            task.satisfaction = satisfaction
        self._persist_tasks()
        logger.debug("Completed task %s (%s)", task.id, task.name)
        return True

    def incomplete_tasks(self) -> list[TaskSchedule]:
        return [t for t in self.tasks if not t.completed]

    def completed_tasks(self) -> list[TaskSchedule]:
        return [t for t in self.tasks if t.completed]

    # Energy

    def record_energy_reading(
        self,
        energy_level: float,
        completion_rate: float,
        timestamp: Optional[datetime] = None,
    ) -> EnergyReading:
        reading = EnergyReading.at(timestamp or self._now(), energy_level, completion_rate)
        self.readings.append(reading)
        self.prune_readings()
        self.settings.save(ENERGY_READINGS_KEY, [r.to_dict() for r in self.readings])
        return reading

    def prune_readings(self) -> int:
        cutoff = self._now() - self.retention
        kept = [r for r in self.readings if r.timestamp > cutoff]
        dropped = len(self.readings) - len(kept)
        self.readings = kept
        return dropped

    # Rules

    def add_adaptation_rule(self, rule: AdaptationRule) -> None:
        self.rules = [r for r in self.rules if r.id != rule.id] + [rule]
        self.settings.save(ADAPTATION_RULES_KEY, [r.to_dict() for r in self.rules])

    def adaptation_rules(self) -> list[AdaptationRule]:
        return list(self.rules)

    # Stats

    def scheduling_stats(self) -> dict:
        completed = self.completed_tasks()
        total_estimated = sum(t.estimated_duration for t in self.tasks)
        completion_times = [t.actual_duration or t.estimated_duration for t in completed]
        total_actual = sum(completion_times)

        return {
            "total_tasks": len(self.tasks),
            "completed_tasks": len(completed),
            "pending_tasks": len(self.incomplete_tasks()),
            "average_completion_time": total_actual / len(completed) if completed else 0.0,
            "schedule_adherence": min(1.0, total_actual / total_estimated) if total_estimated else 0.0,
        }

    def _persist_tasks(self) -> None:
        self.settings.save(TASKS_KEY, [t.to_dict() for t in self.tasks])
