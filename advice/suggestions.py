"""
Suggestion generation: turn goal gaps and portfolio allocation into ranked remediation ideas.

Per infeasible goal (gap > 0):
  increase_contribution  extra monthly amount = ceil(gap / months_until_target),
                         only when the target is still in the future
  extend_timeline        push the target out by ceil(gap / 1000) months
  reduce_goal            lower the target to amount - |gap|

Per portfolio:
  adjust_allocation      one suggestion when any asset class exceeds 60% of the wallet,
                         with an estimated gain of 15% of the projected final value

All of these are heuristics, not the output of an optimizer. The list is sorted
high > medium > low, keeping generation order inside a priority.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional

import pandas as pd

from core.cache import TTLCache
from core.config import PlannerConfig
from core.schema import ClientRecord, ProjectionEvent, WealthProjection
from core.utils import add_months, months_until
from engine.builder import ProjectionBuilder

from .goals import GoalAnalysis, analyze_goals, goals_summary, overall_alignment

logger = logging.getLogger(__name__)


class SuggestionType(str, Enum):
    INCREASE_CONTRIBUTION = "increase_contribution"
    REDUCE_EXPENSES = "reduce_expenses"
    ADJUST_ALLOCATION = "adjust_allocation"
    EXTEND_TIMELINE = "extend_timeline"
    REDUCE_GOAL = "reduce_goal"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


class Category(str, Enum):
    CONTRIBUTION = "contribution"
    ALLOCATION = "allocation"
    TIMELINE = "timeline"
    GOAL = "goal"


_PRIORITY_RANK: Dict[Priority, int] = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}

TYPE_CATEGORY: Dict[SuggestionType, Category] = {
    SuggestionType.INCREASE_CONTRIBUTION: Category.CONTRIBUTION,
    SuggestionType.REDUCE_EXPENSES: Category.CONTRIBUTION,
    SuggestionType.ADJUST_ALLOCATION: Category.ALLOCATION,
    SuggestionType.EXTEND_TIMELINE: Category.TIMELINE,
    SuggestionType.REDUCE_GOAL: Category.GOAL,
}

_unmapped = set(SuggestionType) - set(TYPE_CATEGORY)
if _unmapped:
    raise RuntimeError(f"Suggestion types without a category: {sorted(t.value for t in _unmapped)}")


@dataclass(frozen=True)
class SuggestionImpact:
    monthly_amount: Optional[float] = None
    total_amount: Optional[float] = None
    timeframe: Optional[int] = None  # months
    projected_gain: Optional[float] = None

    def to_dict(self) -> dict:
        return {k: v for k, v in self.__dict__.items() if v is not None}


@dataclass(frozen=True)
class Suggestion:
    id: str
    type: SuggestionType
    title: str
    description: str
    impact: SuggestionImpact
    priority: Priority
    goal_id: Optional[str] = None
    proposed_amount: Optional[float] = None  # reduce_goal
    proposed_date: Optional[date] = None     # extend_timeline

    @property
    def category(self) -> Category:
        return TYPE_CATEGORY[self.type]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "description": self.description,
            "impact": self.impact.to_dict(),
            "priority": self.priority.value,
            "category": self.category.value,
        }


def sort_by_priority(suggestions: List[Suggestion]) -> List[Suggestion]:
    """High first; sorted() is stable so ties keep generation order."""
    return sorted(suggestions, key=lambda s: s.priority.rank, reverse=True)


@dataclass
class SuggestionAnalysis:
    """Everything a caller needs to present a client's plan health."""
    client_id: str
    current_projection: WealthProjection
    goals: List[GoalAnalysis]
    suggestions: List[Suggestion]
    overall_alignment: int

    def by_category(self, category) -> List[Suggestion]:
        wanted = Category(category)
        return [s for s in self.suggestions if s.category is wanted]

    def summary(self) -> dict:
        return {
            "client_id": self.client_id,
            "overall_alignment": self.overall_alignment,
            "total_suggestions": len(self.suggestions),
            "high_priority_suggestions": sum(1 for s in self.suggestions if s.priority is Priority.HIGH),
            "goals_summary": goals_summary(self.goals),
        }

    def to_dataframe(self) -> pd.DataFrame:
        """Convert suggestions to a display-friendly table."""
        rows = [
            {
                "Priority": s.priority.value,
                "Category": s.category.value,
                "Suggestion": s.title,
                "Monthly": s.impact.monthly_amount,
                "Total": s.impact.total_amount,
                "Months": s.impact.timeframe,
                "Gain": s.impact.projected_gain,
                "Details": s.description,
            }
            for s in self.suggestions
        ]
        return pd.DataFrame(
            rows,
            columns=["Priority", "Category", "Suggestion", "Monthly", "Total", "Months", "Gain", "Details"],
        )


@dataclass(frozen=True)
class ImpactComparison:
    suggestion: Suggestion
    baseline: WealthProjection
    impact: WealthProjection
    improvement: float
    improvement_pct: Optional[float]  # None when the baseline final value is 0
    notes: List[str] = field(default_factory=list)

    @property
    def description(self) -> str:
        pct = f" ({abs(self.improvement_pct):.2f}%)" if self.improvement_pct is not None else ""
        if self.improvement > 0:
            return f"Improvement of {self.improvement:,.2f}{pct}"
        return f"Reduction of {abs(self.improvement):,.2f}{pct}"


class SuggestionGenerator:
    """
    Builds suggestions for a client from its projection and goals.

    Stateless between calls: every request reloads the client and recomputes.
    Caching, when wanted, goes through ``cached_analysis`` and the injected TTLCache.
    """

    def __init__(
        self,
        builder: ProjectionBuilder,
        config: Optional[PlannerConfig] = None,
        *,
        cache: Optional[TTLCache] = None,
        today: Optional[date] = None,
    ):
        self.builder = builder
        self.config = config or builder.config
        self.cache = cache
        self._today = today

    @property
    def today(self) -> date:
        return self._today or self.builder.today

    def priority_for_gap(self, gap: float) -> Priority:
        if gap > self.config.high_priority_gap:
            return Priority.HIGH
        if gap > self.config.medium_priority_gap:
            return Priority.MEDIUM
        return Priority.LOW

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------
    def generate(
        self,
        client: ClientRecord,
        analyses: List[GoalAnalysis],
        projection: WealthProjection,
    ) -> List[Suggestion]:
        suggestions: List[Suggestion] = []

        for goal in analyses:
            if goal.feasible or goal.gap <= 0:
                continue
            suggestions.extend(self._goal_suggestions(goal))

        allocation = self._allocation_suggestion(client, projection)
        if allocation is not None:
            suggestions.append(allocation)

        return sort_by_priority(suggestions)

    def _goal_suggestions(self, goal: GoalAnalysis) -> List[Suggestion]:
        out = []
        gap = goal.gap

        months = months_until(goal.target_date, self.today)
        if months > 0:
            monthly = math.ceil(gap / months)
            out.append(
                Suggestion(
                    id=f"increase_contribution_{goal.id}",
                    type=SuggestionType.INCREASE_CONTRIBUTION,
                    title="Increase monthly contribution",
                    description=(
                        f'To reach the "{goal.type}" goal, increase your monthly contribution '
                        f"by {monthly:,} over the next {months} months."
                    ),
                    impact=SuggestionImpact(monthly_amount=monthly, timeframe=months, projected_gain=gap),
                    priority=self.priority_for_gap(gap),
                    goal_id=goal.id,
                )
            )

        extension = math.ceil(gap / self.config.timeline_months_per_unit)
        new_target = add_months(goal.target_date, extension)
        out.append(
            Suggestion(
                id=f"extend_timeline_{goal.id}",
                type=SuggestionType.EXTEND_TIMELINE,
                title="Extend the goal deadline",
                description=(
                    f'Consider moving the "{goal.type}" goal to {new_target.isoformat()} '
                    f"to make it more achievable."
                ),
                impact=SuggestionImpact(timeframe=extension, projected_gain=gap),
                priority=Priority.MEDIUM,
                goal_id=goal.id,
                proposed_date=new_target,
            )
        )

        reduced = goal.amount - abs(gap)
        out.append(
            Suggestion(
                id=f"reduce_goal_{goal.id}",
                type=SuggestionType.REDUCE_GOAL,
                title="Adjust the goal amount",
                description=(
                    f'Consider lowering the "{goal.type}" goal to {reduced:,.2f} '
                    f"to make it more realistic."
                ),
                impact=SuggestionImpact(total_amount=abs(gap)),
                priority=Priority.LOW,
                goal_id=goal.id,
                proposed_amount=reduced,
            )
        )
        return out

    def _allocation_suggestion(
        self, client: ClientRecord, projection: WealthProjection
    ) -> Optional[Suggestion]:
        if client.wallet is None or not client.wallet.allocation:
            return None
        limit = self.config.allocation_concentration_pct
        if not any(pct > limit for pct in client.wallet.allocation.values()):
            return None
        return Suggestion(
            id="optimize_allocation",
            type=SuggestionType.ADJUST_ALLOCATION,
            title="Rebalance asset allocation",
            description=(
                "Your portfolio is concentrated in a single asset class. Consider diversifying "
                "into higher-return assets to accelerate growth."
            ),
            impact=SuggestionImpact(
                projected_gain=projection.final_value * self.config.allocation_gain_ratio
            ),
            priority=Priority.MEDIUM,
        )

    # ------------------------------------------------------------------
    # Whole-client analysis
    # ------------------------------------------------------------------
    def analyze(self, client_id: str) -> SuggestionAnalysis:
        client = self.builder.load_client(client_id)
        projection = self.builder.project_client(client)
        analyses = analyze_goals(client.goals, projection)
        suggestions = self.generate(client, analyses, projection)
        logger.info(
            "Client %s: %d goals, %d suggestions", client_id, len(analyses), len(suggestions)
        )
        return SuggestionAnalysis(
            client_id=client_id,
            current_projection=projection,
            goals=analyses,
            suggestions=suggestions,
            overall_alignment=overall_alignment(analyses),
        )

    def cached_analysis(self, client_id: str) -> SuggestionAnalysis:
        if self.cache is None:
            return self.analyze(client_id)
        return self.cache.get_or_set(
            TTLCache.suggestion_key(client_id),
            lambda: self.analyze(client_id),
            self.config.cache_ttl_seconds,
            tags=[TTLCache.client_tag(client_id)],
        )

    # ------------------------------------------------------------------
    # Impact simulation
    # ------------------------------------------------------------------
    def simulate_impact(
        self,
        client_id: str,
        suggestion: Suggestion,
        annual_rate: Optional[float] = None,
    ) -> WealthProjection:
        """
        Rerun the client's projection as if the suggestion were adopted.

        Only increase_contribution changes the inputs (one extra monthly event
        starting today). Other types rerun the baseline unchanged; their effect is
        described by the suggestion's impact fields alone.
        """
        client = self.builder.load_client(client_id)
        extra: List[ProjectionEvent] = []
        if suggestion.type is SuggestionType.INCREASE_CONTRIBUTION and suggestion.impact.monthly_amount:
            extra.append(
                ProjectionEvent(
                    type="Additional contribution",
                    value=float(suggestion.impact.monthly_amount),
                    frequency="monthly",
                    start_date=self.today,
                    end_date=self.config.horizon_end,
                )
            )
        else:
            logger.debug("Suggestion type %s is not simulated; returning baseline", suggestion.type.value)
        return self.builder.project_client(client, annual_rate, extra_events=extra)

    def compare_impact(self, client_id: str, suggestion: Suggestion) -> ImpactComparison:
        impact = self.simulate_impact(client_id, suggestion)
        baseline = self.builder.build_for_client(client_id)
        improvement = impact.final_value - baseline.final_value
        pct = improvement / baseline.final_value * 100 if baseline.final_value else None
        notes = []
        if suggestion.type is not SuggestionType.INCREASE_CONTRIBUTION:
            notes.append(f"{suggestion.type.value} is not simulated; projection equals the baseline.")
        return ImpactComparison(
            suggestion=suggestion,
            baseline=baseline,
            impact=impact,
            improvement=improvement,
            improvement_pct=pct,
            notes=notes,
        )
