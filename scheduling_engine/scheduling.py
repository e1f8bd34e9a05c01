"""Next-action selection for each scheduling model."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from scheduling_engine.circadian import build_intelligence
from scheduling_engine.priority import hours_until, rank_tasks
from scheduling_engine.schema import (
    ActionType,
    AdaptationRule,
    AdaptiveModel,
    DeadlineDrivenModel,
    EisenhowerModel,
    EisenhowerQuadrant,
    EnergyBasedModel,
    EnergyLevel,
    EnergyReading,
    Recommendation,
    SchedulingIntelligence,
    SchedulingModel,
    TaskSchedule,
    TimeBlockingModel,
    UltradianModel,
)

ULTRADIAN_CYCLE_MINUTES = 90
ULTRADIAN_EDGE_MINUTES = 15
BASELINE_WORK_MINUTES = 25

_HIGH_ENERGY = (EnergyLevel.HIGH, EnergyLevel.VERY_HIGH)
_LOW_ENERGY = (EnergyLevel.LOW, EnergyLevel.VERY_LOW)


def _minutes_since_midnight(now: datetime) -> int:
    return now.hour * 60 + now.minute


def _clamp(confidence: float) -> float:
    return max(0.0, min(1.0, confidence))


def _fmt_minutes(minute_of_day: int) -> str:
    return f"{minute_of_day // 60}:{minute_of_day % 60:02d}"


def time_blocking_recommendation(model: TimeBlockingModel, now: datetime) -> Recommendation:
    current = _minutes_since_midnight(now)
    weekday = now.weekday()

    active = next(
        (b for b in model.time_blocks if b.runs_on(weekday) and b.start_time <= current < b.end_time),
        None,
    )
    if active is not None:
        return Recommendation(
            type=ActionType.BREAK if active.is_break() else ActionType.WORK,
            duration=active.duration,
            reason=f"Active: {active.name}",
            confidence=0.8,
        )

    upcoming = sorted(
        (b for b in model.time_blocks if b.runs_on(weekday) and b.start_time > current),
        key=lambda b: b.start_time,
    )
    if upcoming:
        nxt = upcoming[0]
        return Recommendation(
            type=ActionType.BREAK,
            duration=min(15, nxt.start_time - current),
            reason=f"Next: {nxt.name} at {_fmt_minutes(nxt.start_time)}",
            confidence=0.6,
        )
    return Recommendation(type=ActionType.BREAK, duration=10, reason="No scheduled blocks", confidence=0.6)


def eisenhower_recommendation(model: EisenhowerModel, tasks: Sequence[TaskSchedule]) -> Recommendation:
    queue = model.task_queue if model.task_queue is not None else tasks
    pending = [t for t in queue if not t.completed]

    urgent_important = sorted(
        (t for t in pending if t.priority == EisenhowerQuadrant.URGENT_IMPORTANT),
        key=lambda t: (t.deadline is None, t.deadline or datetime.max),
    )
    if urgent_important:
        task = urgent_important[0]
        return Recommendation(
            type=ActionType.WORK,
            duration=task.estimated_duration,
            task_id=task.id,
            reason=f"Urgent-Important: {task.name}",
            confidence=0.9,
        )

    if any(t.priority == EisenhowerQuadrant.URGENT_NOT_IMPORTANT for t in pending):
        return Recommendation(
            type=ActionType.BREAK,
            duration=5,
            reason="Focus on important tasks, delegate or defer urgent-not-important ones",
            confidence=0.7,
        )

    return Recommendation(
        type=ActionType.WORK,
        duration=BASELINE_WORK_MINUTES,
        reason="Work on planned important tasks",
        confidence=0.6,
    )


def ultradian_recommendation(now: datetime) -> Recommendation:
    """Fixed 90-minute cycles anchored at midnight; the last 15 minutes are rest."""

    minutes = _minutes_since_midnight(now)
    slot = minutes // ULTRADIAN_CYCLE_MINUTES
    remaining = ULTRADIAN_CYCLE_MINUTES - (minutes % ULTRADIAN_CYCLE_MINUTES)

    if remaining > ULTRADIAN_CYCLE_MINUTES - ULTRADIAN_EDGE_MINUTES:
        action, duration = ActionType.WORK, remaining
    elif remaining > ULTRADIAN_EDGE_MINUTES:
        action, duration = ActionType.WORK, remaining - ULTRADIAN_EDGE_MINUTES
    else:
        action, duration = ActionType.BREAK, remaining

    phase = "work" if action is ActionType.WORK else "break"
    return Recommendation(
        type=action,
        duration=duration,
        reason=f"Ultradian {phase} phase (90-min cycle, slot {slot})",
        confidence=0.85,
    )


def energy_based_recommendation(
    model: EnergyBasedModel, tasks: Sequence[TaskSchedule], now: datetime
) -> Recommendation:
    profile = model.energy_profile
    if profile is None:
        return Recommendation(type=ActionType.ENERGY_CHECK, reason="Energy profile not configured", confidence=0.5)

    hour = now.hour
    energy = profile.hourly_energy[hour] if hour < len(profile.hourly_energy) else 0
    energy = energy or 5
    pending = [t for t in tasks if not t.completed]

    if hour in profile.peak_hours and energy >= 7:
        ranked = rank_tasks((t for t in pending if t.energy_required in _HIGH_ENERGY), now)
        if ranked:
            return Recommendation(
                type=ActionType.WORK,
                duration=min(ranked[0].estimated_duration, 60),
                task_id=ranked[0].id,
                reason="Peak energy hour - tackle high-energy task",
                confidence=0.9,
            )

    if hour in profile.low_energy_hours or energy <= 3:
        ranked = rank_tasks((t for t in pending if t.energy_required in _LOW_ENERGY), now)
        if ranked:
            return Recommendation(
                type=ActionType.WORK,
                duration=min(ranked[0].estimated_duration, 30),
                task_id=ranked[0].id,
                reason="Low energy - focus on simple task",
                confidence=0.7,
            )
        return Recommendation(
            type=ActionType.BREAK,
            duration=15 if energy <= 2 else 10,
            reason="Low energy period - take a break",
            confidence=0.8,
        )

    return Recommendation(
        type=ActionType.WORK,
        duration=45,
        reason="Moderate energy - continue focused work",
        confidence=0.6,
    )


def adaptive_recommendation(
    intelligence: Optional[SchedulingIntelligence],
    rules: Sequence[AdaptationRule],
    readings: Sequence[EnergyReading],
    tasks: Sequence[TaskSchedule],
    now: datetime,
) -> Recommendation:
    if intelligence is None:
        # Built on the fly; the learning loop owns the stored copy.
        intelligence = build_intelligence(list(readings), tasks, now)
    if intelligence is None:
        return Recommendation(
            type=ActionType.WORK,
            duration=BASELINE_WORK_MINUTES,
            reason="Learning user patterns",
            confidence=0.5,
        )

    zone = intelligence.zone_for_hour(now.hour)
    if zone is not None and zone.supported_by_data and zone.preference_score > 0.5:
        return Recommendation(
            type=ActionType.WORK,
            duration=45,
            reason="Optimal productive time slot (learned)",
            confidence=0.85,
        )

    rule = next(
        (r for r in sorted(rules, key=lambda r: r.confidence, reverse=True) if r.condition.matches(now)),
        None,
    )
    if rule is not None:
        return Recommendation(
            type=ActionType.WORK,
            duration=round(BASELINE_WORK_MINUTES * rule.adjustment.work_duration_multiplier),
            reason="Adaptive scheduling based on learned patterns",
            confidence=_clamp(rule.confidence),
        )

    return Recommendation(
        type=ActionType.WORK,
        duration=BASELINE_WORK_MINUTES,
        reason="Standard adaptive scheduling",
        confidence=0.6,
    )


def deadline_driven_recommendation(
    model: DeadlineDrivenModel, tasks: Sequence[TaskSchedule], now: datetime
) -> Recommendation:
    pressing = sorted(
        (
            t
            for t in tasks
            if not t.completed
            and t.deadline is not None
            and hours_until(t.deadline, now) <= model.time_pressure_threshold
        ),
        key=lambda t: t.deadline,
    )
    if pressing:
        task = pressing[0]
        return Recommendation(
            type=ActionType.WORK,
            duration=min(task.estimated_duration, 60),
            task_id=task.id,
            reason=f"Urgent deadline: {task.name}",
            confidence=0.95,
        )
    return Recommendation(
        type=ActionType.WORK,
        duration=BASELINE_WORK_MINUTES,
        reason="No urgent deadlines - standard work",
        confidence=0.6,
    )


def basic_recommendation() -> Recommendation:
    return Recommendation(
        type=ActionType.WORK,
        duration=BASELINE_WORK_MINUTES,
        reason="Basic work session",
        confidence=0.5,
    )


def next_recommended_action(
    model: Optional[SchedulingModel],
    tasks: Sequence[TaskSchedule] = (),
    intelligence: Optional[SchedulingIntelligence] = None,
    rules: Sequence[AdaptationRule] = (),
    readings: Sequence[EnergyReading] = (),
    now: Optional[datetime] = None,
) -> Recommendation:
    """Choose the next action for the active model. Pure: no I/O, no mutation."""

    now = now or datetime.now()

    if model is None:
        return Recommendation(type=ActionType.BREAK, duration=5, reason="No scheduling model active", confidence=0.5)
    if isinstance(model, TimeBlockingModel):
        return time_blocking_recommendation(model, now)
    if isinstance(model, EisenhowerModel):
        return eisenhower_recommendation(model, tasks)
    if isinstance(model, UltradianModel):
        return ultradian_recommendation(now)
    if isinstance(model, EnergyBasedModel):
        return energy_based_recommendation(model, tasks, now)
    if isinstance(model, AdaptiveModel):
        return adaptive_recommendation(intelligence, rules, readings, tasks, now)
    if isinstance(model, DeadlineDrivenModel):
        return deadline_driven_recommendation(model, tasks, now)
    return basic_recommendation()
