"""Preset work/rest models and the default time-block template."""

from __future__ import annotations

from typing import Optional

from scheduling_engine.schema import TimeBlock, TimeBlockingModel

WORK_REST_MODELS: dict[str, dict] = {
    "pomodoro-classic": {
        "name": "Classic Pomodoro",
        "work_duration": 25,
        "rest_duration": 5,
        "cycles": 4,
        "long_rest_duration": 15,
        "based_on": "pomodoro",
    },
    "who-1hour-work-30min-rest": {
        "name": "WHO Recommended: 1 Hour Work, 30 Min Rest",
        "work_duration": 60,
        "rest_duration": 30,
        "based_on": "who",
    },
    "who-2hour-work-1hour-rest": {
        "name": "WHO Recommended: 2 Hours Work, 1 Hour Rest",
        "work_duration": 120,
        "rest_duration": 60,
        "based_on": "who",
    },
    "who-45min-work-15min-rest": {
        "name": "WHO Recommended: 45 Min Work, 15 Min Rest",
        "work_duration": 45,
        "rest_duration": 15,
        "based_on": "who",
    },
    "who-90min-work-30min-rest": {
        "name": "WHO Recommended: 90 Min Work, 30 Min Rest",
        "work_duration": 90,
        "rest_duration": 30,
        "based_on": "who",
    },
    "custom-flexible": {
        "name": "Custom Flexible",
        "work_duration": 50,
        "rest_duration": 10,
        "based_on": "custom",
    },
}

DEFAULT_MODEL_ID = "who-45min-work-15min-rest"


def get_work_rest_model(model_id: Optional[str]) -> Optional[dict]:
    if model_id is None or model_id not in WORK_REST_MODELS:
        return None
    return {"id": model_id, **WORK_REST_MODELS[model_id]}


def default_work_rest_model() -> dict:
    return {"id": DEFAULT_MODEL_ID, **WORK_REST_MODELS[DEFAULT_MODEL_ID]}


def default_time_blocks() -> list[TimeBlock]:
    """A weekday template: morning deep work, meetings, lunch, focus, admin."""

    weekdays = [0, 1, 2, 3, 4]
    return [
        TimeBlock("Deep Work", 9 * 60, 90, "deep-work", 5, True, weekdays),
        TimeBlock("Meeting Time", 11 * 60, 60, "meetings", 4, True, weekdays),
        TimeBlock("Break & Lunch", 12 * 60, 60, "breaks", 3, True, list(range(7))),
        TimeBlock("Afternoon Focus", 13 * 60, 120, "deep-work", 4, True, weekdays),
        TimeBlock("Admin & Communication", 16 * 60, 60, "admin", 3, True, weekdays),
    ]


def time_blocking_schedule(blocks: Optional[list[TimeBlock]] = None) -> TimeBlockingModel:
    return TimeBlockingModel(
        id="time-blocking",
        name="Time Blocking Schedule",
        description="Dedicated blocks of the day for each kind of work",
        work_duration=90,
        rest_duration=15,
        based_on="time-blocking",
        time_blocks=blocks if blocks is not None else default_time_blocks(),
    )
