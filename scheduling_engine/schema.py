"""Core data schema for tasks, energy readings and scheduling models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union


class EisenhowerQuadrant(str, Enum):
    URGENT_IMPORTANT = "urgent-important"
    URGENT_NOT_IMPORTANT = "urgent-not-important"
    NOT_URGENT_IMPORTANT = "not-urgent-important"
    NOT_URGENT_NOT_IMPORTANT = "not-urgent-not-important"


class Complexity(str, Enum):
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"
    VERY_COMPLEX = "very-complex"


class EnergyLevel(str, Enum):
    VERY_LOW = "very-low"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "very-high"


class ActionType(str, Enum):
    WORK = "work"
    BREAK = "break"
    TASK_SWITCH = "task-switch"
    ENERGY_CHECK = "energy-check"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_dt(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


@dataclass(frozen=True)
class EnergyReading:
    """Self-reported energy sample. Immutable once recorded."""

    timestamp: datetime
    hour: int
    energy_level: float
    completion_rate: float

    def __post_init__(self) -> None:
        if not 0 <= self.hour <= 23:
            raise ValueError(f"hour out of range: {self.hour}")
        if self.hour != self.timestamp.hour:
            raise ValueError(f"hour {self.hour} does not match timestamp {self.timestamp.isoformat()}")
        if not 1 <= self.energy_level <= 10:
            raise ValueError(f"energy_level out of range: {self.energy_level}")
        if not 0 <= self.completion_rate <= 1:
            raise ValueError(f"completion_rate out of range: {self.completion_rate}")

    @classmethod
    def at(cls, timestamp: datetime, energy_level: float, completion_rate: float) -> "EnergyReading":
        return cls(timestamp, timestamp.hour, energy_level, completion_rate)

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp.isoformat(),
            "hour": self.hour,
            "energy_level": self.energy_level,
            "completion_rate": self.completion_rate,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EnergyReading":
        return cls(
            timestamp=_parse_dt(data["timestamp"]),
            hour=int(data["hour"]),
            energy_level=float(data["energy_level"]),
            completion_rate=float(data["completion_rate"]),
        )


@dataclass
class TaskSchedule:
    """A schedulable task. Tasks are only ever marked complete, never removed."""

    id: str
    name: str
    priority: EisenhowerQuadrant
    complexity: Complexity
    energy_required: EnergyLevel
    estimated_duration: int
    actual_duration: Optional[int] = None
    deadline: Optional[datetime] = None
    completed: bool = False
    satisfaction: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "priority": self.priority.value,
            "complexity": self.complexity.value,
            "energy_required": self.energy_required.value,
            "estimated_duration": self.estimated_duration,
            "actual_duration": self.actual_duration,
            "deadline": _iso(self.deadline),
            "completed": self.completed,
            "satisfaction": self.satisfaction,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TaskSchedule":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            priority=EisenhowerQuadrant(data["priority"]),
            complexity=Complexity(data["complexity"]),
            energy_required=EnergyLevel(data["energy_required"]),
            estimated_duration=int(data["estimated_duration"]),
            actual_duration=data.get("actual_duration"),
            deadline=_parse_dt(data.get("deadline")),
            completed=bool(data.get("completed", False)),
            satisfaction=data.get("satisfaction"),
        )


@dataclass
class TimeBlock:
    """A block of the day, `start_time` in minutes since midnight.

    `days_of_week` uses `datetime.weekday()` numbering (0 = Monday); an empty
    list means every day.
    """

    name: str
    start_time: int
    duration: int
    type: str = "deep-work"
    priority: int = 3
    recurring: bool = True
    days_of_week: list[int] = field(default_factory=list)

    @property
    def end_time(self) -> int:
        return self.start_time + self.duration

    def is_break(self) -> bool:
        return self.type == "breaks"

    def runs_on(self, weekday: int) -> bool:
        if not self.recurring or not self.days_of_week:
            return True
        return weekday in self.days_of_week

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "start_time": self.start_time,
            "duration": self.duration,
            "type": self.type,
            "priority": self.priority,
            "recurring": self.recurring,
            "days_of_week": list(self.days_of_week),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TimeBlock":
        return cls(
            name=str(data.get("name", "Block")),
            start_time=int(data["start_time"]),
            duration=int(data["duration"]),
            type=str(data.get("type", "deep-work")),
            priority=int(data.get("priority", 3)),
            recurring=bool(data.get("recurring", True)),
            days_of_week=[int(d) for d in data.get("days_of_week", [])],
        )


@dataclass
class EnergyProfile:
    hourly_energy: list[float] = field(default_factory=lambda: [5.0] * 24)
    peak_hours: list[int] = field(default_factory=list)
    low_energy_hours: list[int] = field(default_factory=list)
    learned: bool = False

    def to_dict(self) -> dict:
        return {
            "hourly_energy": list(self.hourly_energy),
            "peak_hours": list(self.peak_hours),
            "low_energy_hours": list(self.low_energy_hours),
            "learned": self.learned,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EnergyProfile":
        return cls(
            hourly_energy=[float(v) for v in data.get("hourly_energy", [5.0] * 24)],
            peak_hours=[int(h) for h in data.get("peak_hours", [])],
            low_energy_hours=[int(h) for h in data.get("low_energy_hours", [])],
            learned=bool(data.get("learned", False)),
        )


@dataclass
class RuleCondition:
    """Hour range is half-open `[start, end)`."""

    time_of_day: Optional[tuple[int, int]] = None
    days_of_week: Optional[list[int]] = None

    def matches(self, now: datetime) -> bool:
        if self.time_of_day is not None:
            start, end = self.time_of_day
            if not start <= now.hour < end:
                return False
        if self.days_of_week and now.weekday() not in self.days_of_week:
            return False
        return True


@dataclass
class RuleAdjustment:
    work_duration_multiplier: float = 1.0
    break_duration_multiplier: float = 1.0


@dataclass
class AdaptationRule:
    id: str
    condition: RuleCondition
    adjustment: RuleAdjustment
    confidence: float

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "condition": {
                "time_of_day": list(self.condition.time_of_day) if self.condition.time_of_day else None,
                "days_of_week": self.condition.days_of_week,
            },
            "adjustment": {
                "work_duration_multiplier": self.adjustment.work_duration_multiplier,
                "break_duration_multiplier": self.adjustment.break_duration_multiplier,
            },
            "confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AdaptationRule":
        condition = data.get("condition") or {}
        adjustment = data.get("adjustment") or {}
        time_of_day = condition.get("time_of_day")
        return cls(
            id=str(data["id"]),
            condition=RuleCondition(
                time_of_day=(int(time_of_day[0]), int(time_of_day[1])) if time_of_day else None,
                days_of_week=condition.get("days_of_week"),
            ),
            adjustment=RuleAdjustment(
                work_duration_multiplier=float(adjustment.get("work_duration_multiplier", 1.0)),
                break_duration_multiplier=float(adjustment.get("break_duration_multiplier", 1.0)),
            ),
            confidence=float(data.get("confidence", 0.0)),
        )


# Scheduling models: one dataclass per strategy, tagged by `type`.


@dataclass
class _ModelBase:
    id: str
    name: str
    description: str = ""
    work_duration: int = 25
    rest_duration: int = 5
    based_on: str = "custom"

    type = "basic"

    def _base_dict(self) -> dict:
        return {
            "type": self.type,
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "work_duration": self.work_duration,
            "rest_duration": self.rest_duration,
            "based_on": self.based_on,
        }

    def to_dict(self) -> dict:
        return self._base_dict()


@dataclass
class TimeBlockingModel(_ModelBase):
    time_blocks: list[TimeBlock] = field(default_factory=list)

    type = "time-blocking"

    def to_dict(self) -> dict:
        return {**self._base_dict(), "time_blocks": [b.to_dict() for b in self.time_blocks]}


@dataclass
class EisenhowerModel(_ModelBase):
    task_queue: Optional[list[TaskSchedule]] = None

    type = "eisenhower"

    def to_dict(self) -> dict:
        queue = [t.to_dict() for t in self.task_queue] if self.task_queue is not None else None
        return {**self._base_dict(), "task_queue": queue}


@dataclass
class UltradianModel(_ModelBase):
    type = "ultradian"


@dataclass
class EnergyBasedModel(_ModelBase):
    energy_profile: Optional[EnergyProfile] = None

    type = "energy-based"

    def to_dict(self) -> dict:
        profile = self.energy_profile.to_dict() if self.energy_profile is not None else None
        return {**self._base_dict(), "energy_profile": profile}


@dataclass
class AdaptiveModel(_ModelBase):
    type = "adaptive"


@dataclass
class DeadlineDrivenModel(_ModelBase):
    time_pressure_threshold: float = 24.0

    type = "deadline-driven"

    def to_dict(self) -> dict:
        return {**self._base_dict(), "time_pressure_threshold": self.time_pressure_threshold}


SchedulingModel = Union[
    TimeBlockingModel,
    EisenhowerModel,
    UltradianModel,
    EnergyBasedModel,
    AdaptiveModel,
    DeadlineDrivenModel,
]

MODEL_TYPES = {
    cls.type: cls
    for cls in (
        TimeBlockingModel,
        EisenhowerModel,
        UltradianModel,
        EnergyBasedModel,
        AdaptiveModel,
        DeadlineDrivenModel,
    )
}


def model_from_dict(data: dict) -> SchedulingModel:
    """Rebuild a scheduling model from its persisted form, dispatching on `type`."""

    model_type = data.get("type")
    cls = MODEL_TYPES.get(model_type)
    if cls is None:
        raise ValueError(f"Unknown scheduling model type '{model_type}'")

    base = {
        "id": str(data["id"]),
        "name": str(data.get("name", data["id"])),
        "description": str(data.get("description", "")),
        "work_duration": int(data.get("work_duration", 25)),
        "rest_duration": int(data.get("rest_duration", 5)),
        "based_on": str(data.get("based_on", "custom")),
    }
    if cls is TimeBlockingModel:
        return cls(**base, time_blocks=[TimeBlock.from_dict(b) for b in data.get("time_blocks", [])])
    if cls is EisenhowerModel:
        queue = data.get("task_queue")
        return cls(**base, task_queue=[TaskSchedule.from_dict(t) for t in queue] if queue is not None else None)
    if cls is EnergyBasedModel:
        profile = data.get("energy_profile")
        return cls(**base, energy_profile=EnergyProfile.from_dict(profile) if profile else None)
    if cls is DeadlineDrivenModel:
        return cls(**base, time_pressure_threshold=float(data.get("time_pressure_threshold", 24.0)))
    return cls(**base)


# Derived intelligence.


@dataclass
class HourScore:
    hour: int
    score: float


@dataclass
class CircadianRhythm:
    peak_performances: list[HourScore]
    energy_dips: list[HourScore]
    weekly_patterns: dict[int, dict[int, float]]
    confidence: float
    last_updated: datetime


@dataclass
class EnergyPattern:
    start_hour: int
    end_hour: int
    average_energy: float
    task_completion_rate: float
    reading_count: int


@dataclass
class TimePreference:
    start_hour: int
    end_hour: int
    preference_score: float
    supported_by_data: bool

    def contains(self, hour: int) -> bool:
        return self.start_hour <= hour < self.end_hour


@dataclass
class TaskAffinity:
    complexity: Complexity
    completed_count: int
    average_satisfaction: Optional[float]
    duration_accuracy: Optional[float]


@dataclass
class SchedulingIntelligence:
    user_rhythm: CircadianRhythm
    energy_patterns: list[EnergyPattern]
    productivity_zones: list[TimePreference]
    task_affinity: list[TaskAffinity]

    def zone_for_hour(self, hour: int) -> Optional[TimePreference]:
        return next((zone for zone in self.productivity_zones if zone.contains(hour)), None)

    def to_dict(self) -> dict:
        rhythm = self.user_rhythm
        return {
            "user_rhythm": {
                "peak_performances": [{"hour": p.hour, "score": p.score} for p in rhythm.peak_performances],
                "energy_dips": [{"hour": p.hour, "score": p.score} for p in rhythm.energy_dips],
                "weekly_patterns": {
                    str(day): {str(hour): score for hour, score in hours.items()}
                    for day, hours in rhythm.weekly_patterns.items()
                },
                "confidence": rhythm.confidence,
                "last_updated": rhythm.last_updated.isoformat(),
            },
            "energy_patterns": [
                {
                    "start_hour": p.start_hour,
                    "end_hour": p.end_hour,
                    "average_energy": p.average_energy,
                    "task_completion_rate": p.task_completion_rate,
                    "reading_count": p.reading_count,
                }
                for p in self.energy_patterns
            ],
            "productivity_zones": [
                {
                    "start_hour": z.start_hour,
                    "end_hour": z.end_hour,
                    "preference_score": z.preference_score,
                    "supported_by_data": z.supported_by_data,
                }
                for z in self.productivity_zones
            ],
            "task_affinity": [
                {
                    "complexity": a.complexity.value,
                    "completed_count": a.completed_count,
                    "average_satisfaction": a.average_satisfaction,
                    "duration_accuracy": a.duration_accuracy,
                }
                for a in self.task_affinity
            ],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SchedulingIntelligence":
        rhythm = data["user_rhythm"]
        return cls(
            user_rhythm=CircadianRhythm(
                peak_performances=[HourScore(int(p["hour"]), float(p["score"])) for p in rhythm["peak_performances"]],
                energy_dips=[HourScore(int(p["hour"]), float(p["score"])) for p in rhythm["energy_dips"]],
                weekly_patterns={
                    int(day): {int(hour): float(score) for hour, score in hours.items()}
                    for day, hours in rhythm.get("weekly_patterns", {}).items()
                },
                confidence=float(rhythm["confidence"]),
                last_updated=_parse_dt(rhythm["last_updated"]),
            ),
            energy_patterns=[EnergyPattern(**p) for p in data.get("energy_patterns", [])],
            productivity_zones=[TimePreference(**z) for z in data.get("productivity_zones", [])],
            task_affinity=[
                TaskAffinity(
                    complexity=Complexity(a["complexity"]),
                    completed_count=int(a["completed_count"]),
                    average_satisfaction=a.get("average_satisfaction"),
                    duration_accuracy=a.get("duration_accuracy"),
                )
                for a in data.get("task_affinity", [])
            ],
        )


@dataclass
class Recommendation:
    """Next action suggested by the active scheduling strategy."""

    type: ActionType
    reason: str
    confidence: float
    duration: Optional[int] = None
    task_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "duration": self.duration,
            "task_id": self.task_id,
            "reason": self.reason,
            "confidence": self.confidence,
        }


@dataclass
class DataSharingPreferences:
    statistical_aggregation: bool = True
    schedule_templates: bool = False
    ml_training_participation: bool = False
    energy_patterns: bool = False
    usage_analytics: bool = False
    geographic_region: bool = False
    public_contributions: bool = False

    def to_dict(self) -> dict:
        return dict(self.__dict__)

    @classmethod
    def from_dict(cls, data: dict) -> "DataSharingPreferences":
        known = {k: bool(v) for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)
