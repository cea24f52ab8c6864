"""
Aggregate saved simulations into comparisons and per-client statistics.

Comparison:   best / worst run by final value, mean final value and mean total return
Client stats: run count, mean final value, best run, latest run, runs this month
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import pandas as pd

from core.schema import SimulationRecord


@dataclass(frozen=True)
class Performance:
    simulation_id: str
    final_value: float
    total_return: float


@dataclass(frozen=True)
class ComparisonSummary:
    best_performance: Performance
    worst_performance: Performance
    average_final_value: float
    average_return: float


@dataclass(frozen=True)
class SimulationComparison:
    simulations: List[SimulationRecord]
    comparison: ComparisonSummary

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            [
                {
                    "id": r.id,
                    "name": r.name,
                    "final_value": r.results.final_value,
                    "total_return": r.results.total_return,
                    "annual_rate": r.parameters.annual_rate,
                    "best": r.id == self.comparison.best_performance.simulation_id,
                    "worst": r.id == self.comparison.worst_performance.simulation_id,
                }
                for r in self.simulations
            ]
        )


@dataclass(frozen=True)
class BestSimulation:
    id: str
    name: str
    final_value: float


@dataclass(frozen=True)
class RecentActivity:
    last_simulation: Optional[pd.Timestamp]
    simulations_this_month: int


@dataclass(frozen=True)
class ClientSimulationStats:
    total_simulations: int
    average_final_value: float
    best_simulation: Optional[BestSimulation]
    recent_activity: RecentActivity


def compare_records(records: List[SimulationRecord]) -> SimulationComparison:
    """Best/worst use the first record on ties, in the order given."""
    if not records:
        raise ValueError("No simulations to compare.")
    final_values = np.array([r.results.final_value for r in records], dtype=float)
    returns = np.array([r.results.total_return for r in records], dtype=float)

    best = int(np.argmax(final_values))
    worst = int(np.argmin(final_values))

    def perf(i: int) -> Performance:
        return Performance(
            simulation_id=records[i].id,
            final_value=float(final_values[i]),
            total_return=float(returns[i]),
        )

    return SimulationComparison(
        simulations=list(records),
        comparison=ComparisonSummary(
            best_performance=perf(best),
            worst_performance=perf(worst),
            average_final_value=float(np.mean(final_values)),
            average_return=float(np.mean(returns)),
        ),
    )


def client_stats(records: List[SimulationRecord], *, now: pd.Timestamp) -> ClientSimulationStats:
    """
    Statistics over one client's saved runs.

    ``records`` must be ordered newest first. Zero runs gives ``best_simulation=None``
    and ``last_simulation=None``.
    """
    if not records:
        return ClientSimulationStats(
            total_simulations=0,
            average_final_value=0.0,
            best_simulation=None,
            recent_activity=RecentActivity(last_simulation=None, simulations_this_month=0),
        )

    final_values = np.array([r.projection.final_value for r in records], dtype=float)
    best = records[int(np.argmax(final_values))]
    month_start = pd.Timestamp(year=now.year, month=now.month, day=1, tz=now.tz)
    this_month = sum(1 for r in records if r.created_at >= month_start)

    return ClientSimulationStats(
        total_simulations=len(records),
        average_final_value=float(np.mean(final_values)),
        best_simulation=BestSimulation(id=best.id, name=best.name, final_value=best.projection.final_value),
        recent_activity=RecentActivity(
            last_simulation=records[0].created_at,
            simulations_this_month=this_month,
        ),
    )
