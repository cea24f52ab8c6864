"""
Simulation history: persisted projection snapshots, comparisons and per-client statistics.
"""

from .service import HistoryPage, SimulationHistory, unique_fired_events
from .aggregator import ClientSimulationStats, SimulationComparison, client_stats, compare_records

__all__ = [
    "HistoryPage",
    "SimulationHistory",
    "unique_fired_events",
    "ClientSimulationStats",
    "SimulationComparison",
    "client_stats",
    "compare_records",
]
