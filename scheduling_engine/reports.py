"""Analytics inputs consumed once per learning cycle.

These are produced by an analytics collaborator outside this package; the
engine only reads them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol


@dataclass
class PerformanceSummary:
    total_sessions: int = 0
    average_completion_rate: float = 0.0
    most_effective_model: Optional[str] = None
    peak_performance_hours: list[int] = field(default_factory=list)
    overall_productivity_score: float = 0.0
    average_satisfaction: Optional[float] = None


@dataclass
class BehavioralShift:
    shift: str
    impact: str
    date_detected: Optional[datetime] = None


@dataclass
class TrendAnalysis:
    productivity_trend: float = 0.0
    completion_rate_trend: float = 0.0
    satisfaction_trend: float = 0.0
    behavioral_shifts: list[BehavioralShift] = field(default_factory=list)


@dataclass
class PerformanceReport:
    summary: PerformanceSummary = field(default_factory=PerformanceSummary)
    trends: TrendAnalysis = field(default_factory=TrendAnalysis)
    time_range: str = "week"

    @classmethod
    def from_dict(cls, data: dict) -> "PerformanceReport":
        summary = data.get("summary") or {}
        trends = data.get("trends") or {}
        shifts = [
            BehavioralShift(
                shift=str(item["shift"]),
                impact=str(item.get("impact", "")),
                date_detected=datetime.fromisoformat(item["date_detected"]) if item.get("date_detected") else None,
            )
            for item in trends.get("behavioral_shifts", [])
        ]
        return cls(
            summary=PerformanceSummary(
                total_sessions=int(summary.get("total_sessions", 0)),
                average_completion_rate=float(summary.get("average_completion_rate", 0.0)),
                most_effective_model=summary.get("most_effective_model"),
                peak_performance_hours=[int(h) for h in summary.get("peak_performance_hours", [])],
                overall_productivity_score=float(summary.get("overall_productivity_score", 0.0)),
                average_satisfaction=summary.get("average_satisfaction"),
            ),
            trends=TrendAnalysis(
                productivity_trend=float(trends.get("productivity_trend", 0.0)),
                completion_rate_trend=float(trends.get("completion_rate_trend", 0.0)),
                satisfaction_trend=float(trends.get("satisfaction_trend", 0.0)),
                behavioral_shifts=shifts,
            ),
            time_range=str(data.get("time_range", "week")),
        )


@dataclass
class TimeBasedPattern:
    time_slot: str
    effectiveness: float
    recommended_model: str


@dataclass
class EnergyBasedPattern:
    energy_level: str
    recommended_approach: str
    expected_outcome: float


@dataclass
class ContextualInsights:
    time_based_patterns: list[TimeBasedPattern] = field(default_factory=list)
    energy_based_patterns: list[EnergyBasedPattern] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "ContextualInsights":
        return cls(
            time_based_patterns=[
                TimeBasedPattern(
                    time_slot=str(p["time_slot"]),
                    effectiveness=float(p["effectiveness"]),
                    recommended_model=str(p["recommended_model"]),
                )
                for p in data.get("time_based_patterns", [])
            ],
            energy_based_patterns=[
                EnergyBasedPattern(
                    energy_level=str(p["energy_level"]),
                    recommended_approach=str(p["recommended_approach"]),
                    expected_outcome=float(p["expected_outcome"]),
                )
                for p in data.get("energy_based_patterns", [])
            ],
        )


class ReportProvider(Protocol):
    def performance_report(self) -> PerformanceReport: ...

    def contextual_insights(self) -> ContextualInsights: ...


@dataclass
class StaticReportProvider:
    """Serves fixed report objects; swap `report`/`insights` between cycles."""

    report: PerformanceReport
    insights: ContextualInsights = field(default_factory=ContextualInsights)

    def performance_report(self) -> PerformanceReport:
        return self.report

    def contextual_insights(self) -> ContextualInsights:
        return self.insights
