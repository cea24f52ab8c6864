"""
Advice: goal feasibility analysis and heuristic remediation suggestions.
"""

from .goals import GoalAnalysis, analyze_goals, overall_alignment, goals_summary
from .suggestions import (
    Category,
    Priority,
    Suggestion,
    SuggestionAnalysis,
    SuggestionGenerator,
    SuggestionImpact,
    SuggestionType,
)

__all__ = [
    "GoalAnalysis",
    "analyze_goals",
    "overall_alignment",
    "goals_summary",
    "Category",
    "Priority",
    "Suggestion",
    "SuggestionAnalysis",
    "SuggestionGenerator",
    "SuggestionImpact",
    "SuggestionType",
]
