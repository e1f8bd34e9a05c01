"""User-facing adaptation notices and recommendation descriptions."""

from __future__ import annotations

import logging
from typing import Protocol

from scheduling_engine.schema import ActionType, Recommendation

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def info(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...


class LoggingNotifier:
    """Default notifier when no messaging collaborator is attached."""

    def info(self, message: str) -> None:
        logger.info("notice: %s", message)

    def warning(self, message: str) -> None:
        logger.warning("notice: %s", message)


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def warning(self, message: str) -> None:
        self.messages.append(("warning", message))


def model_switch_message(target_model: str) -> str:
    return (
        f"AI Adaptation: Switched to {target_model} based on your performance patterns. "
        "This model showed 15% higher effectiveness for your typical usage."
    )


def trend_response_message(solution_count: int) -> str:
    return (
        f"AI Adaptation: Detected productivity trends and implemented {solution_count} improvements. "
        "Monitoring impact over the next week."
    )


def rollback_message(description: str) -> str:
    return (
        f'AI Adaptation: The recent change "{description}" was reverted because it negatively '
        "impacted your productivity. Returning to previous settings."
    )


def describe_recommendation(recommendation: Recommendation) -> str:
    """Render a recommendation as a short status line."""

    if recommendation.type is ActionType.ENERGY_CHECK:
        head = "Check your energy"
    elif recommendation.duration is not None:
        head = f"{recommendation.type.value.capitalize()} for {recommendation.duration} min"
    else:
        head = recommendation.type.value.capitalize()
    return f"{head}: {recommendation.reason} ({recommendation.confidence:.0%} confidence)"
