"""
Goal feasibility analysis.

For each goal, read the projected value at the goal's target month and compare it
to the goal amount:

    gap      = amount - projected_value_at_target
    feasible = gap <= 0

When the projection has no point for the target month (goal before the start year or
after the horizon), the projection's final value is used instead.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List

from core.schema import Goal, WealthProjection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GoalAnalysis:
    id: str
    type: str
    amount: float
    target_date: date
    projected_value: float
    gap: float
    feasible: bool

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "amount": self.amount,
            "target_date": self.target_date.isoformat(),
            "projected_value": self.projected_value,
            "gap": self.gap,
            "feasible": self.feasible,
        }


def analyze_goals(goals: Iterable[Goal], projection: WealthProjection) -> List[GoalAnalysis]:
    results = []
    for goal in goals:
        point = projection.point_at(goal.target_at.year, goal.target_at.month)
        if point is None:
            logger.warning(
                "Goal %s targets %s, outside the projection; using final value",
                goal.id, goal.target_at.isoformat(),
            )
            projected = projection.final_value
        else:
            projected = point.projected_value

        gap = float(goal.amount) - projected
        results.append(
            GoalAnalysis(
                id=goal.id,
                type=goal.type,
                amount=float(goal.amount),
                target_date=goal.target_at,
                projected_value=projected,
                gap=gap,
                feasible=gap <= 0,
            )
        )
    return results


def overall_alignment(analyses: List[GoalAnalysis]) -> int:
    """Percentage of goals that are feasible, 0-100. No goals counts as fully aligned."""
    if not analyses:
        return 100
    feasible = sum(1 for a in analyses if a.feasible)
    return int(math.floor(feasible / len(analyses) * 100 + 0.5))


def goals_summary(analyses: List[GoalAnalysis]) -> Dict[str, float]:
    return {
        "total": len(analyses),
        "feasible": sum(1 for a in analyses if a.feasible),
        "total_gap": sum(max(0.0, a.gap) for a in analyses),
    }
