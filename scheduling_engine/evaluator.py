"""Baseline vs current impact evaluation for adaptations."""

from __future__ import annotations

PRODUCTIVITY_WEIGHT = 0.6
SATISFACTION_WEIGHT = 0.4
# 1-5 satisfaction points onto the productivity percentage scale.
SATISFACTION_SCALE = 20


def evaluate_impact(baseline_metrics: dict, current_metrics: dict) -> dict:
    """Compare two metric snapshots and blend them into one improvement score."""

    productivity_delta = current_metrics.get("productivity_score", 0.0) - baseline_metrics.get(
        "productivity_score", 0.0
    )
    satisfaction_delta = current_metrics.get("average_satisfaction", 0.0) - baseline_metrics.get(
        "average_satisfaction", 0.0
    )

    overall = productivity_delta * PRODUCTIVITY_WEIGHT + satisfaction_delta * SATISFACTION_SCALE * SATISFACTION_WEIGHT
    return {
        "productivity_delta": productivity_delta,
        "satisfaction_delta": satisfaction_delta,
        "overall_improvement": overall,
    }
