from datetime import datetime, timedelta

from scheduling_engine.catalog import time_blocking_schedule
from scheduling_engine.scheduling import next_recommended_action, ultradian_recommendation
from scheduling_engine.schema import (
    ActionType,
    AdaptationRule,
    AdaptiveModel,
    Complexity,
    DeadlineDrivenModel,
    EisenhowerModel,
    EisenhowerQuadrant,
    EnergyBasedModel,
    EnergyLevel,
    EnergyProfile,
    EnergyReading,
    RuleAdjustment,
    RuleCondition,
    TaskSchedule,
    TimeBlock,
    TimeBlockingModel,
    UltradianModel,
)

MONDAY = datetime(2025, 1, 6, 10, 0)


def make_task(
    task_id,
    priority=EisenhowerQuadrant.NOT_URGENT_IMPORTANT,
    deadline_hours=None,
    energy=EnergyLevel.MODERATE,
    complexity=Complexity.MODERATE,
    duration=30,
    completed=False,
):
    deadline = MONDAY + timedelta(hours=deadline_hours) if deadline_hours is not None else None
    return TaskSchedule(task_id, task_id, priority, complexity, energy, duration, deadline=deadline, completed=completed)


def readings_at(hour, count, energy=8.0, completion=0.9):
    start = datetime(2024, 12, 20, hour, 0)
    return [EnergyReading.at(start + timedelta(days=i), energy, completion) for i in range(count)]


def test_no_model_recommends_short_break():
    rec = next_recommended_action(None, now=MONDAY)
    assert rec.type is ActionType.BREAK
    assert rec.duration == 5
    assert rec.confidence == 0.5


def test_ultradian_cycle_boundaries():
    start = ultradian_recommendation(datetime(2025, 1, 6, 0, 0))
    assert (start.type, start.duration) == (ActionType.WORK, 90)

    middle = ultradian_recommendation(datetime(2025, 1, 6, 0, 20))
    assert (middle.type, middle.duration) == (ActionType.WORK, 55)

    edge = ultradian_recommendation(datetime(2025, 1, 6, 1, 20))
    assert (edge.type, edge.duration) == (ActionType.BREAK, 10)
    assert edge.confidence == 0.85


def test_time_blocking_active_block():
    model = time_blocking_schedule()
    rec = next_recommended_action(model, now=datetime(2025, 1, 6, 9, 30))
    assert rec.type is ActionType.WORK
    assert rec.duration == 90
    assert rec.reason == "Active: Deep Work"
    assert rec.confidence == 0.8


def test_time_blocking_break_block_and_gap():
    model = time_blocking_schedule()
    lunch = next_recommended_action(model, now=datetime(2025, 1, 6, 12, 30))
    assert lunch.type is ActionType.BREAK

    gap = next_recommended_action(model, now=datetime(2025, 1, 6, 8, 55))
    assert gap.type is ActionType.BREAK
    assert gap.duration == 5
    assert gap.reason == "Next: Deep Work at 9:00"
    assert gap.confidence == 0.6


def test_time_blocking_respects_days_of_week():
    model = time_blocking_schedule()
    saturday = next_recommended_action(model, now=datetime(2025, 1, 11, 9, 30))
    assert saturday.type is ActionType.BREAK
    assert saturday.reason.startswith("Next: Break & Lunch")


def test_time_blocking_without_blocks():
    model = TimeBlockingModel(id="tb", name="Empty")
    rec = next_recommended_action(model, now=MONDAY)
    assert (rec.type, rec.duration, rec.confidence) == (ActionType.BREAK, 10, 0.6)


def test_time_blocking_one_off_block_ignores_weekdays():
    block = TimeBlock("Review", 10 * 60, 30, recurring=False, days_of_week=[5])
    model = TimeBlockingModel(id="tb", name="One-off", time_blocks=[block])
    rec = next_recommended_action(model, now=MONDAY)
    assert rec.reason == "Active: Review"


def test_eisenhower_prefers_urgent_important_with_nearest_deadline():
    tasks = [
        make_task("later", EisenhowerQuadrant.URGENT_IMPORTANT, deadline_hours=10),
        make_task("undated", EisenhowerQuadrant.URGENT_IMPORTANT),
        make_task("soon", EisenhowerQuadrant.URGENT_IMPORTANT, deadline_hours=2, duration=40),
        make_task("noise", EisenhowerQuadrant.URGENT_NOT_IMPORTANT),
    ]
    rec = next_recommended_action(EisenhowerModel(id="e", name="E"), tasks=tasks, now=MONDAY)
    assert rec.task_id == "soon"
    assert rec.duration == 40
    assert rec.confidence == 0.9


def test_eisenhower_defers_urgent_not_important():
    tasks = [make_task("noise", EisenhowerQuadrant.URGENT_NOT_IMPORTANT)]
    rec = next_recommended_action(EisenhowerModel(id="e", name="E"), tasks=tasks, now=MONDAY)
    assert (rec.type, rec.duration, rec.confidence) == (ActionType.BREAK, 5, 0.7)


def test_eisenhower_task_queue_overrides_store_tasks():
    model = EisenhowerModel(id="e", name="E", task_queue=[])
    tasks = [make_task("urgent", EisenhowerQuadrant.URGENT_IMPORTANT)]
    rec = next_recommended_action(model, tasks=tasks, now=MONDAY)
    assert (rec.type, rec.duration, rec.confidence) == (ActionType.WORK, 25, 0.6)


def test_deadline_driven_window():
    model = DeadlineDrivenModel(id="d", name="Deadlines")
    due_soon = make_task("due", deadline_hours=2, duration=90)
    rec = next_recommended_action(model, tasks=[due_soon], now=MONDAY)
    assert rec.task_id == "due"
    assert rec.duration == 60
    assert rec.confidence == 0.95

    far = make_task("far", deadline_hours=48)
    done = make_task("done", deadline_hours=1, completed=True)
    rec = next_recommended_action(model, tasks=[far, done], now=MONDAY)
    assert rec.task_id is None
    assert rec.confidence == 0.6


def test_energy_based_peak_hour_picks_highest_scored_high_energy_task():
    profile = EnergyProfile(hourly_energy=[8.0] * 24, peak_hours=[10])
    model = EnergyBasedModel(id="eb", name="Energy", energy_profile=profile)
    tasks = [
        make_task("plan", EisenhowerQuadrant.NOT_URGENT_IMPORTANT, energy=EnergyLevel.HIGH, duration=90),
        make_task("ship", EisenhowerQuadrant.URGENT_IMPORTANT, energy=EnergyLevel.VERY_HIGH,
                  complexity=Complexity.COMPLEX, duration=45),
        make_task("email", EisenhowerQuadrant.URGENT_IMPORTANT, energy=EnergyLevel.LOW),
    ]
    rec = next_recommended_action(model, tasks=tasks, now=MONDAY)
    assert rec.task_id == "ship"
    assert rec.duration == 45
    assert rec.confidence == 0.9


def test_energy_based_low_energy_paths():
    hourly = [5.0] * 24
    hourly[14] = 2.0
    hourly[15] = 3.0
    profile = EnergyProfile(hourly_energy=hourly, low_energy_hours=[14])
    model = EnergyBasedModel(id="eb", name="Energy", energy_profile=profile)
    afternoon = datetime(2025, 1, 6, 14, 0)

    easy = make_task("file", energy=EnergyLevel.VERY_LOW, duration=50)
    rec = next_recommended_action(model, tasks=[easy], now=afternoon)
    assert (rec.type, rec.duration, rec.confidence) == (ActionType.WORK, 30, 0.7)

    rec = next_recommended_action(model, tasks=[], now=afternoon)
    assert (rec.type, rec.duration, rec.confidence) == (ActionType.BREAK, 15, 0.8)

    rec = next_recommended_action(model, tasks=[], now=datetime(2025, 1, 6, 15, 0))
    assert (rec.type, rec.duration) == (ActionType.BREAK, 10)

    rec = next_recommended_action(model, tasks=[], now=MONDAY)
    assert (rec.type, rec.duration, rec.confidence) == (ActionType.WORK, 45, 0.6)


def test_energy_based_without_profile_asks_for_energy_check():
    rec = next_recommended_action(EnergyBasedModel(id="eb", name="Energy"), now=MONDAY)
    assert rec.type is ActionType.ENERGY_CHECK
    assert rec.confidence == 0.5


def test_adaptive_falls_back_while_learning():
    rec = next_recommended_action(AdaptiveModel(id="a", name="Adaptive"), readings=readings_at(10, 9), now=MONDAY)
    assert (rec.type, rec.duration, rec.confidence) == (ActionType.WORK, 25, 0.5)


def test_adaptive_uses_learned_productive_zone():
    rec = next_recommended_action(AdaptiveModel(id="a", name="Adaptive"), readings=readings_at(10, 10), now=MONDAY)
    assert (rec.duration, rec.confidence) == (45, 0.85)


def test_adaptive_applies_best_matching_rule():
    rules = [
        AdaptationRule("weak", RuleCondition(time_of_day=(9, 12)), RuleAdjustment(0.8), 0.4),
        AdaptationRule("strong", RuleCondition(time_of_day=(9, 12)), RuleAdjustment(1.6), 0.75),
        AdaptationRule("evening", RuleCondition(time_of_day=(18, 22)), RuleAdjustment(2.0), 0.99),
    ]
    model = AdaptiveModel(id="a", name="Adaptive")
    rec = next_recommended_action(model, rules=rules, readings=readings_at(8, 10), now=MONDAY)
    assert rec.duration == 40
    assert rec.confidence == 0.75

    rec = next_recommended_action(model, rules=rules[2:], readings=readings_at(8, 10), now=MONDAY)
    assert (rec.duration, rec.confidence) == (25, 0.6)


def test_every_model_returns_valid_recommendation():
    profile = EnergyProfile(peak_hours=[9, 10], low_energy_hours=[14, 15])
    models = [
        None,
        time_blocking_schedule(),
        EisenhowerModel(id="e", name="E"),
        UltradianModel(id="u", name="U"),
        EnergyBasedModel(id="eb", name="EB", energy_profile=profile),
        EnergyBasedModel(id="eb2", name="EB2"),
        AdaptiveModel(id="a", name="A"),
        DeadlineDrivenModel(id="d", name="D"),
    ]
    tasks = [
        make_task("a", EisenhowerQuadrant.URGENT_IMPORTANT, deadline_hours=3, energy=EnergyLevel.HIGH),
        make_task("b", EisenhowerQuadrant.NOT_URGENT_NOT_IMPORTANT, energy=EnergyLevel.LOW),
    ]
    readings = readings_at(9, 12) + readings_at(15, 12, energy=2.0, completion=0.1)
    for model in models:
        for hour in range(24):
            now = MONDAY.replace(hour=hour, minute=7)
            rec = next_recommended_action(model, tasks=tasks, readings=readings, now=now)
            assert rec.type in ActionType
            assert 0.0 <= rec.confidence <= 1.0
            if rec.duration is not None:
                assert rec.duration > 0
