"""
Planner configuration.
Horizon, default growth rate, cache lifetimes and suggestion heuristics live here.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class PlannerConfig:
    default_annual_rate: float = 0.04
    horizon_end_year: int = 2060
    start_year: Optional[int] = None  # None -> current calendar year

    # cache lifetimes, seconds
    cache_ttl_seconds: float = 300.0
    projection_cache_ttl_seconds: float = 120.0

    # suggestion heuristics
    allocation_concentration_pct: float = 60.0
    allocation_gain_ratio: float = 0.15
    high_priority_gap: float = 100_000.0
    medium_priority_gap: float = 50_000.0
    timeline_months_per_unit: float = 1000.0  # extend_timeline: one month per this much gap

    # simulation history
    compare_min: int = 2
    compare_max: int = 5
    history_page_limit: int = 10
    history_max_limit: int = 50

    def resolved_start_year(self, today: Optional[date] = None) -> int:
        if self.start_year is not None:
            return int(self.start_year)
        return (today or date.today()).year

    @property
    def horizon_end(self) -> date:
        """Last day covered by recurring events."""
        return date(self.horizon_end_year, 12, 31)
