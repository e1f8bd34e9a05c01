"""Adaptive learning loop: detect, apply, monitor and roll back self-tuning changes.

Each cycle turns an analytics report into typed adaptation opportunities,
keeps those that are confident enough and not cooling down, applies them in
priority order and records a `ModelAdaptation`. Adaptations are re-evaluated
once their monitoring interval has elapsed; a non-positive impact reverses
exactly the change that was made.
"""

from __future__ import annotations

import json
import logging
import secrets
from dataclasses import dataclass, field, fields
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, Optional, Union

from scheduling_engine.clock import Clock, SystemClock
from scheduling_engine.config import EngineConfig
from scheduling_engine.evaluator import evaluate_impact
from scheduling_engine.metrics import capture_metrics
from scheduling_engine.notifier import (
    LoggingNotifier,
    Notifier,
    model_switch_message,
    rollback_message,
    trend_response_message,
)
from scheduling_engine.persistence import (
    ADAPTATIONS_KEY,
    BEHAVIORAL_ADAPTATIONS_KEY,
    CONTEXTUAL_PREFERENCES_KEY,
    ENERGY_ADAPTATIONS_KEY,
    ModelSelector,
    SafeSettings,
)
from scheduling_engine.reports import ContextualInsights, PerformanceReport, TrendAnalysis
from scheduling_engine.schema import TaskSchedule

logger = logging.getLogger(__name__)


class AdaptationType(str, Enum):
    MODEL_SWITCH = "model_switch"
    CONTEXT_OPTIMIZATION = "context_optimization"
    ENERGY_ADAPTATION = "energy_adaptation"
    TREND_RESPONSE = "trend_response"
    BEHAVIOR_ADAPTATION = "behavior_adaptation"
    ROLLBACK = "rollback"


class AdaptationStatus(str, Enum):
    ACTIVE = "active"
    SUCCESSFUL = "successful"
    NEEDS_ROLLBACK = "needs_rollback"
    ROLLED_BACK = "rolled_back"


class OpportunityPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


PRIORITY_WEIGHTS = {
    OpportunityPriority.HIGH: 3,
    OpportunityPriority.MEDIUM: 2,
    OpportunityPriority.LOW: 1,
}

CONTEXT_EFFECTIVENESS_THRESHOLD = 85
ENERGY_OUTCOME_THRESHOLD = 70
DECLINING_TREND_THRESHOLD = 0.5


# Typed payloads, one per adaptation type.


@dataclass(frozen=True)
class ModelSwitchPayload:
    target_model: str
    current_model: Optional[str]

    kind = AdaptationType.MODEL_SWITCH


@dataclass(frozen=True)
class ContextOptimizationPayload:
    time_slot: str
    recommended_model: str
    effectiveness: float

    kind = AdaptationType.CONTEXT_OPTIMIZATION


@dataclass(frozen=True)
class EnergyAdaptationPayload:
    energy_level: str
    approach: str
    expected_outcome: float

    kind = AdaptationType.ENERGY_ADAPTATION


@dataclass(frozen=True)
class BehaviorAdaptationPayload:
    shift: str
    impact: str

    kind = AdaptationType.BEHAVIOR_ADAPTATION


TrendSolution = Union[ModelSwitchPayload, ContextOptimizationPayload]


@dataclass(frozen=True)
class TrendResponsePayload:
    productivity_trend: float
    completion_rate_trend: float
    satisfaction_trend: float
    potential_causes: tuple[str, ...]
    solutions: tuple[TrendSolution, ...]

    kind = AdaptationType.TREND_RESPONSE


@dataclass(frozen=True)
class RollbackPayload:
    original_adaptation_id: str
    rollback_reason: str = "negative_impact"

    kind = AdaptationType.ROLLBACK


AdaptationPayload = Union[
    ModelSwitchPayload,
    ContextOptimizationPayload,
    EnergyAdaptationPayload,
    BehaviorAdaptationPayload,
    TrendResponsePayload,
    RollbackPayload,
]

_PAYLOAD_TYPES = {
    cls.kind: cls
    for cls in (
        ModelSwitchPayload,
        ContextOptimizationPayload,
        EnergyAdaptationPayload,
        BehaviorAdaptationPayload,
        TrendResponsePayload,
        RollbackPayload,
    )
}


def payload_to_dict(payload: AdaptationPayload) -> dict:
    data = {"kind": payload.kind.value}
    for f in fields(payload):
        value = getattr(payload, f.name)
        if f.name == "solutions":
            value = [payload_to_dict(item) for item in value]
        elif isinstance(value, tuple):
            value = list(value)
        data[f.name] = value
    return data


def payload_from_dict(data: dict) -> AdaptationPayload:
    values = dict(data)
    cls = _PAYLOAD_TYPES.get(AdaptationType(values.pop("kind")))
    if cls is TrendResponsePayload:
        values["potential_causes"] = tuple(values.get("potential_causes", ()))
        values["solutions"] = tuple(payload_from_dict(item) for item in values.get("solutions", ()))
    return cls(**values)


@dataclass
class AdaptationOpportunity:
    """Candidate change. Ephemeral: consumed by the cycle that produced it."""

    priority: OpportunityPriority
    confidence: float
    expected_improvement: str
    description: str
    payload: AdaptationPayload
    trigger_condition: str
    rollback_plan: str

    @property
    def type(self) -> AdaptationType:
        return self.payload.kind

    @property
    def cooldown_key(self) -> str:
        data = {k: v for k, v in payload_to_dict(self.payload).items() if k != "kind"}
        return f"{self.type.value}_{json.dumps(data, sort_keys=True, default=str)}"

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "priority": self.priority.value,
            "confidence": self.confidence,
            "expected_improvement": self.expected_improvement,
            "description": self.description,
            "data": payload_to_dict(self.payload),
            "trigger_condition": self.trigger_condition,
            "rollback_plan": self.rollback_plan,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AdaptationOpportunity":
        return cls(
            priority=OpportunityPriority(data["priority"]),
            confidence=float(data["confidence"]),
            expected_improvement=str(data.get("expected_improvement", "")),
            description=str(data.get("description", "")),
            payload=payload_from_dict(data["data"]),
            trigger_condition=str(data.get("trigger_condition", "")),
            rollback_plan=str(data.get("rollback_plan", "")),
        )


@dataclass
class ModelAdaptation:
    """Persisted record of an executed opportunity."""

    id: str
    opportunity: AdaptationOpportunity
    implementation_date: datetime
    baseline_metrics: dict
    monitoring_interval: timedelta
    status: AdaptationStatus = AdaptationStatus.ACTIVE
    impact_metrics: Optional[dict] = None
    rollback_date: Optional[datetime] = None

    @property
    def type(self) -> AdaptationType:
        return self.opportunity.type

    def monitoring_due(self, now: datetime) -> bool:
        return now - self.implementation_date >= self.monitoring_interval

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "opportunity": self.opportunity.to_dict(),
            "implementation_date": self.implementation_date.isoformat(),
            "status": self.status.value,
            "baseline_metrics": self.baseline_metrics,
            "monitoring_interval": int(self.monitoring_interval.total_seconds() * 1000),
            "impact_metrics": self.impact_metrics,
            "rollback_date": self.rollback_date.isoformat() if self.rollback_date else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ModelAdaptation":
        return cls(
            id=str(data["id"]),
            opportunity=AdaptationOpportunity.from_dict(data["opportunity"]),
            implementation_date=datetime.fromisoformat(data["implementation_date"]),
            baseline_metrics=dict(data.get("baseline_metrics") or {}),
            monitoring_interval=timedelta(milliseconds=int(data["monitoring_interval"])),
            status=AdaptationStatus(data.get("status", "active")),
            impact_metrics=data.get("impact_metrics"),
            rollback_date=datetime.fromisoformat(data["rollback_date"]) if data.get("rollback_date") else None,
        )


@dataclass
class CycleResult:
    opportunities: list[AdaptationOpportunity] = field(default_factory=list)
    selected: list[AdaptationOpportunity] = field(default_factory=list)
    executed: list[ModelAdaptation] = field(default_factory=list)
    evaluated: list[ModelAdaptation] = field(default_factory=list)
    rolled_back: list[ModelAdaptation] = field(default_factory=list)


def _new_adaptation_id(now: datetime) -> str:
    return f"adaptation_{int(now.timestamp() * 1000)}_{secrets.token_hex(5)[:9]}"


# Opportunity generation.


def identify_decline_causes(trends: TrendAnalysis) -> list[str]:
    causes = []
    if trends.productivity_trend < -1:
        causes.append("Productivity declining")
    if trends.completion_rate_trend < 0:
        causes.append("Completion rates dropping")
    if trends.satisfaction_trend < 0:
        causes.append("User satisfaction decreasing")
    return causes or ["Pattern analysis inconclusive"]


def trend_solutions(
    report: PerformanceReport, insights: ContextualInsights, active_model: Optional[str]
) -> list[TrendSolution]:
    """Concrete sub-changes bundled into a trend response."""

    solutions: list[TrendSolution] = []
    best_model = report.summary.most_effective_model
    if best_model and best_model != active_model:
        solutions.append(ModelSwitchPayload(target_model=best_model, current_model=active_model))
    if insights.time_based_patterns:
        best = max(insights.time_based_patterns, key=lambda p: p.effectiveness)
        solutions.append(
            ContextOptimizationPayload(
                time_slot=best.time_slot,
                recommended_model=best.recommended_model,
                effectiveness=best.effectiveness,
            )
        )
    return solutions


def model_switch_opportunities(report: PerformanceReport, active_model: Optional[str]) -> list[AdaptationOpportunity]:
    best_model = report.summary.most_effective_model
    if not best_model or best_model == active_model:
        return []
    return [
        AdaptationOpportunity(
            priority=OpportunityPriority.HIGH,
            confidence=0.87,
            expected_improvement="15%",
            description=f"Switch to {best_model} - shows 15% higher effectiveness than current model",
            payload=ModelSwitchPayload(target_model=best_model, current_model=active_model),
            trigger_condition="consistent_performance_data",
            rollback_plan="Return to previous model if user satisfaction drops below 3.5",
        )
    ]


def context_opportunities(insights: ContextualInsights) -> list[AdaptationOpportunity]:
    return [
        AdaptationOpportunity(
            priority=OpportunityPriority.MEDIUM,
            confidence=0.92,
            expected_improvement=f"{round((pattern.effectiveness - 75) * 0.8)}%",
            description=(
                f"Prioritize {pattern.recommended_model} during {pattern.time_slot} "
                f"(effectiveness: {pattern.effectiveness}%)"
            ),
            payload=ContextOptimizationPayload(
                time_slot=pattern.time_slot,
                recommended_model=pattern.recommended_model,
                effectiveness=pattern.effectiveness,
            ),
            trigger_condition=f"timeOfDay in {pattern.time_slot}",
            rollback_plan="Restore default model if completion rates drop",
        )
        for pattern in insights.time_based_patterns
        if pattern.effectiveness > CONTEXT_EFFECTIVENESS_THRESHOLD
    ]


def energy_opportunities(insights: ContextualInsights) -> list[AdaptationOpportunity]:
    return [
        AdaptationOpportunity(
            priority=OpportunityPriority.HIGH,
            confidence=0.89,
            expected_improvement=f"{round((76 - pattern.expected_outcome) * 1.2)}%",
            description=f"Implement {pattern.recommended_approach} for {pattern.energy_level} energy periods",
            payload=EnergyAdaptationPayload(
                energy_level=pattern.energy_level,
                approach=pattern.recommended_approach,
                expected_outcome=pattern.expected_outcome,
            ),
            trigger_condition=f"energyLevel == '{pattern.energy_level}'",
            rollback_plan="Reverses automatically if satisfaction improves",
        )
        for pattern in insights.energy_based_patterns
        if pattern.expected_outcome < ENERGY_OUTCOME_THRESHOLD
    ]


def trend_opportunities(
    report: PerformanceReport, insights: ContextualInsights, active_model: Optional[str]
) -> list[AdaptationOpportunity]:
    trends = report.trends
    if trends.productivity_trend >= DECLINING_TREND_THRESHOLD:
        return []
    return [
        AdaptationOpportunity(
            priority=OpportunityPriority.HIGH,
            confidence=0.95,
            expected_improvement="10-20%",
            description="Address declining productivity trend through model and timing optimization",
            payload=TrendResponsePayload(
                productivity_trend=trends.productivity_trend,
                completion_rate_trend=trends.completion_rate_trend,
                satisfaction_trend=trends.satisfaction_trend,
                potential_causes=tuple(identify_decline_causes(trends)),
                solutions=tuple(trend_solutions(report, insights, active_model)),
            ),
            trigger_condition="productivity_trend_declining",
            rollback_plan="Conservative rollback with user confirmation",
        )
    ]


def behavior_opportunities(report: PerformanceReport) -> list[AdaptationOpportunity]:
    return [
        AdaptationOpportunity(
            priority=OpportunityPriority.MEDIUM,
            confidence=0.82,
            expected_improvement="5-15%",
            description=f"Adapt to behavioral shift: {shift.shift}",
            payload=BehaviorAdaptationPayload(shift=shift.shift, impact=shift.impact),
            trigger_condition="behavioral_pattern_change",
            rollback_plan="Gradual rollback if user feedback indicates preference for old patterns",
        )
        for shift in report.trends.behavioral_shifts
    ]


class AdaptiveLearner:
    """Owns cooldowns and adaptation records; applies and reverses changes."""

    def __init__(
        self,
        settings: SafeSettings,
        model_selector: ModelSelector,
        notifier: Optional[Notifier] = None,
        clock: Optional[Clock] = None,
        config: Optional[EngineConfig] = None,
    ) -> None:
        self.settings = settings
        self.model_selector = model_selector
        self.notifier = notifier or LoggingNotifier()
        self.clock = clock or SystemClock()
        self.config = config or EngineConfig()
        # cooldown key -> time the cooldown expires
        self.cooldowns: dict[str, datetime] = {}
        self.adaptations: dict[str, ModelAdaptation] = {}
        self._load_adaptations()

    # Opportunity analysis

    def analyze_opportunities(
        self, report: PerformanceReport, insights: ContextualInsights
    ) -> list[AdaptationOpportunity]:
        """Generate every candidate change the report supports, unfiltered."""

        active_model = self.model_selector.get_active_model_id()
        generators = (
            ("model_switch", lambda: model_switch_opportunities(report, active_model)),
            ("context_optimization", lambda: context_opportunities(insights)),
            ("energy_adaptation", lambda: energy_opportunities(insights)),
            ("trend_response", lambda: trend_opportunities(report, insights, active_model)),
            ("behavior_adaptation", lambda: behavior_opportunities(report)),
        )

        opportunities: list[AdaptationOpportunity] = []
        for name, generate in generators:
            try:
                opportunities.extend(generate())
            except Exception:  # noqa: BLE001
                logger.exception("Failed to analyze %s opportunities", name)
        return opportunities

    def select_opportunities(self, opportunities: Iterable[AdaptationOpportunity]) -> list[AdaptationOpportunity]:
        """Drop low-confidence and cooling-down candidates; highest priority first."""

        eligible = [
            opp
            for opp in opportunities
            if opp.confidence > self.config.confidence_cutoff and not self.is_in_cooldown(opp)
        ]
        return sorted(eligible, key=lambda opp: PRIORITY_WEIGHTS[opp.priority], reverse=True)

    # Cooldowns

    def cooldown_period(self, adaptation_type: AdaptationType) -> timedelta:
        hours = self.config.cooldown_hours.get(adaptation_type.value, 24)
        return timedelta(hours=hours)

    def is_in_cooldown(self, opportunity: AdaptationOpportunity) -> bool:
        expires = self.cooldowns.get(opportunity.cooldown_key)
        return expires is not None and self.clock.now() < expires

    def set_cooldown(self, opportunity: AdaptationOpportunity) -> None:
        self.cooldowns[opportunity.cooldown_key] = self.clock.now() + self.cooldown_period(opportunity.type)

    def prune_cooldowns(self) -> int:
        now = self.clock.now()
        expired = [key for key, expires in self.cooldowns.items() if expires <= now]
        for key in expired:
            del self.cooldowns[key]
        return len(expired)

    # Execution

    def execute(
        self,
        opportunities: Iterable[AdaptationOpportunity],
        report: PerformanceReport,
        tasks: Iterable[TaskSchedule] = (),
    ) -> list[ModelAdaptation]:
        tasks = list(tasks)
        executed = []
        for opportunity in opportunities:
            if opportunity.confidence <= self.config.confidence_cutoff or self.is_in_cooldown(opportunity):
                continue
            try:
                self.set_cooldown(opportunity)
                self._apply(opportunity.payload)
                now = self.clock.now()
                adaptation = ModelAdaptation(
                    id=_new_adaptation_id(now),
                    opportunity=opportunity,
                    implementation_date=now,
                    baseline_metrics=capture_metrics(report, tasks, now),
                    monitoring_interval=timedelta(days=self.config.monitoring_interval_days),
                )
            except Exception:  # noqa: BLE001
                logger.exception("Failed to execute adaptation %s", opportunity.type.value)
                continue

            self.adaptations[adaptation.id] = adaptation
            executed.append(adaptation)
            logger.info("Adaptive improvement executed: %s", opportunity.description)

        if executed:
            self.persist()
        return executed

    def _apply(self, payload: AdaptationPayload) -> None:
        now = self.clock.now()
        if isinstance(payload, ModelSwitchPayload):
            self.model_selector.set_active_model_id(payload.target_model)
            self.notifier.info(model_switch_message(payload.target_model))
        elif isinstance(payload, ContextOptimizationPayload):
            self.settings.save(
                CONTEXTUAL_PREFERENCES_KEY,
                {
                    "time_slot": payload.time_slot,
                    "recommended_model": payload.recommended_model,
                    "effectiveness": payload.effectiveness,
                    "last_optimized": now.isoformat(),
                },
            )
            logger.info("Context optimization stored: %s -> %s", payload.time_slot, payload.recommended_model)
        elif isinstance(payload, EnergyAdaptationPayload):
            self.settings.save(
                ENERGY_ADAPTATIONS_KEY,
                {
                    "energy_level": payload.energy_level,
                    "recommended_approach": payload.approach,
                    "activated": now.isoformat(),
                },
            )
            logger.info("Energy adaptation activated: %s energy periods", payload.energy_level)
        elif isinstance(payload, BehaviorAdaptationPayload):
            self.settings.save(
                BEHAVIORAL_ADAPTATIONS_KEY,
                {
                    "shift_detected": payload.shift,
                    "impact": payload.impact,
                    "adaptation_date": now.isoformat(),
                    "confidence": 0.82,
                },
            )
            logger.info("Behavioral adaptation: %s", payload.shift)
        elif isinstance(payload, TrendResponsePayload):
            for solution in payload.solutions:
                self._apply(solution)
            self.notifier.info(trend_response_message(len(payload.solutions)))
        elif isinstance(payload, RollbackPayload):
            self.rollback(self.adaptations[payload.original_adaptation_id])
        else:
            raise TypeError(f"Unsupported adaptation payload {type(payload).__name__}")

    # Monitoring

    def monitor(self, report: PerformanceReport, tasks: Iterable[TaskSchedule] = ()) -> list[ModelAdaptation]:
        """Evaluate adaptations whose monitoring period is over; retry pending rollbacks."""

        now = self.clock.now()
        tasks = list(tasks)
        evaluated = []
        for adaptation in list(self.adaptations.values()):
            try:
                if adaptation.status is AdaptationStatus.ACTIVE and adaptation.monitoring_due(now):
                    self.evaluate(adaptation, capture_metrics(report, tasks, now))
                    evaluated.append(adaptation)
                elif adaptation.status is AdaptationStatus.NEEDS_ROLLBACK:
                    self.schedule_rollback(adaptation)
            except Exception:  # noqa: BLE001
                logger.exception("Failed to monitor adaptation %s", adaptation.id)

        if evaluated:
            self.persist()
        return evaluated

    def evaluate(self, adaptation: ModelAdaptation, current_metrics: dict) -> None:
        impact = evaluate_impact(adaptation.baseline_metrics, current_metrics)
        success = impact["overall_improvement"] > 0
        adaptation.impact_metrics = {
            "productivity_change": impact["productivity_delta"],
            "satisfaction_change": impact["satisfaction_delta"],
            "overall_improvement": impact["overall_improvement"],
            "success": success,
            "evaluation_date": self.clock.now().isoformat(),
        }

        if success:
            adaptation.status = AdaptationStatus.SUCCESSFUL
            logger.info(
                "Adaptation successful: %s (+%.1f%%)",
                adaptation.opportunity.description,
                impact["overall_improvement"],
            )
        else:
            adaptation.status = AdaptationStatus.NEEDS_ROLLBACK
            self.schedule_rollback(adaptation)

    # Rollback

    def schedule_rollback(self, adaptation: ModelAdaptation) -> bool:
        """Route a rollback through the same cooldown gate as other changes."""

        opportunity = AdaptationOpportunity(
            priority=OpportunityPriority.HIGH,
            confidence=0.95,
            expected_improvement="Return to previous performance levels",
            description=f"Rollback unsuccessful adaptation: {adaptation.opportunity.description}",
            payload=RollbackPayload(original_adaptation_id=adaptation.id),
            trigger_condition="adaptation_negative_impact",
            rollback_plan="None - this is the rollback",
        )
        if self.is_in_cooldown(opportunity):
            return False
        self.set_cooldown(opportunity)
        return self.rollback(adaptation)

    def rollback(self, adaptation: ModelAdaptation) -> bool:
        if adaptation.status is AdaptationStatus.ROLLED_BACK:
            return True
        try:
            self._undo(adaptation.opportunity.payload)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to rollback adaptation %s", adaptation.id)
            return False

        adaptation.status = AdaptationStatus.ROLLED_BACK
        adaptation.rollback_date = self.clock.now()
        # The reverted change may not come straight back.
        self.set_cooldown(adaptation.opportunity)
        self.notifier.warning(rollback_message(adaptation.opportunity.description))
        logger.info("Adaptation rolled back: %s", adaptation.opportunity.description)
        self.persist()
        return True

    def _undo(self, payload: AdaptationPayload) -> None:
        if isinstance(payload, ModelSwitchPayload):
            self.model_selector.set_active_model_id(payload.current_model)
        elif isinstance(payload, ContextOptimizationPayload):
            self.settings.save(CONTEXTUAL_PREFERENCES_KEY, None)
        elif isinstance(payload, EnergyAdaptationPayload):
            self.settings.save(ENERGY_ADAPTATIONS_KEY, None)
        elif isinstance(payload, BehaviorAdaptationPayload):
            self.settings.save(BEHAVIORAL_ADAPTATIONS_KEY, None)
        elif isinstance(payload, TrendResponsePayload):
            for solution in reversed(payload.solutions):
                self._undo(solution)
        else:
            raise TypeError(f"Cannot undo adaptation payload {type(payload).__name__}")

    # Cycle

    def run_cycle(
        self,
        report: PerformanceReport,
        insights: ContextualInsights,
        tasks: Iterable[TaskSchedule] = (),
    ) -> CycleResult:
        tasks = list(tasks)
        result = CycleResult()
        self.prune_cooldowns()
        result.opportunities = self.analyze_opportunities(report, insights)
        result.selected = self.select_opportunities(result.opportunities)
        if result.selected:
            result.executed = self.execute(result.selected, report, tasks)

        before = {a.id for a in self.adaptations.values() if a.status is AdaptationStatus.ROLLED_BACK}
        result.evaluated = self.monitor(report, tasks)
        result.rolled_back = [
            a for a in self.adaptations.values() if a.status is AdaptationStatus.ROLLED_BACK and a.id not in before
        ]

        logger.info(
            "Adaptive learning cycle completed. %d potential improvements identified.",
            len(result.opportunities),
        )
        return result

    def adaptations_by_status(self, status: AdaptationStatus) -> list[ModelAdaptation]:
        return [a for a in self.adaptations.values() if a.status is status]

    # Persistence

    def persist(self) -> None:
        self.settings.save(ADAPTATIONS_KEY, [a.to_dict() for a in self.adaptations.values()])

    def _load_adaptations(self) -> None:
        for item in self.settings.load(ADAPTATIONS_KEY, []):
            try:
                adaptation = ModelAdaptation.from_dict(item)
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed adaptation record", exc_info=True)
                continue
            self.adaptations[adaptation.id] = adaptation
