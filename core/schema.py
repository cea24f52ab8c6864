"""
Planner data model: cash-flow events, projection points, projections, client records.

Everything here is immutable once built. Stored client data (wallet, events, goals)
is loaded through the store layer and converted into these types before it reaches
the engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Literal, Optional, Tuple

import pandas as pd

Frequency = Literal["once", "monthly", "yearly"]
FREQUENCIES: Tuple[str, ...] = ("once", "monthly", "yearly")


@dataclass(frozen=True)
class ProjectionEvent:
    """A one-time or recurring cash flow. Positive value = contribution, negative = withdrawal."""
    type: str
    value: float
    frequency: Optional[str] = "once"
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "value": self.value,
            "frequency": self.frequency,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
        }


@dataclass(frozen=True)
class ProjectionPoint:
    """One simulated month."""
    year: int
    month: int
    projected_value: float
    events: Tuple[ProjectionEvent, ...] = ()

    def to_dict(self) -> dict:
        return {
            "year": self.year,
            "month": self.month,
            "projected_value": self.projected_value,
            "events": [e.to_dict() for e in self.events],
        }


@dataclass(frozen=True)
class WealthProjection:
    client_id: str
    initial_value: float
    annual_rate: float
    projection_points: Tuple[ProjectionPoint, ...]
    final_value: float
    total_return: float

    @property
    def start_year(self) -> Optional[int]:
        return self.projection_points[0].year if self.projection_points else None

    @property
    def end_year(self) -> Optional[int]:
        return self.projection_points[-1].year if self.projection_points else None

    def point_at(self, year: int, month: int) -> Optional[ProjectionPoint]:
        for point in self.projection_points:
            if point.year == year and point.month == month:
                return point
        return None

    def to_dict(self) -> dict:
        return {
            "client_id": self.client_id,
            "initial_value": self.initial_value,
            "annual_rate": self.annual_rate,
            "projection_points": [p.to_dict() for p in self.projection_points],
            "final_value": self.final_value,
            "total_return": self.total_return,
        }

    def to_dataframe(self) -> pd.DataFrame:
        """One row per simulated month."""
        return pd.DataFrame(
            {
                "year": [p.year for p in self.projection_points],
                "month": [p.month for p in self.projection_points],
                "date": [pd.Timestamp(year=p.year, month=p.month, day=1) for p in self.projection_points],
                "projected_value": [p.projected_value for p in self.projection_points],
                "n_events": [len(p.events) for p in self.projection_points],
            }
        )


# ---------------------------------------------------------------------------
# Stored client data (owned by the persistence layer)
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Wallet:
    total_value: float = 0.0
    allocation: Dict[str, float] = field(default_factory=dict)  # asset class -> percent


@dataclass(frozen=True)
class StoredEvent:
    id: str
    type: str
    value: float
    frequency: Optional[str] = "once"
    date: Optional[date] = None


@dataclass(frozen=True)
class Goal:
    id: str
    type: str
    amount: float
    target_at: date


@dataclass(frozen=True)
class ClientRecord:
    id: str
    name: str = ""
    wallet: Optional[Wallet] = None
    events: Tuple[StoredEvent, ...] = ()
    goals: Tuple[Goal, ...] = ()

    @property
    def wallet_total(self) -> float:
        return float(self.wallet.total_value) if self.wallet is not None else 0.0


# ---------------------------------------------------------------------------
# Saved simulations
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class SimulationParameters:
    initial_value: float
    annual_rate: float
    events: Tuple[ProjectionEvent, ...] = ()

    def to_dict(self) -> dict:
        return {
            "initial_value": self.initial_value,
            "annual_rate": self.annual_rate,
            "events": [
                {"type": e.type, "value": e.value, "frequency": e.frequency} for e in self.events
            ],
        }


@dataclass(frozen=True)
class SimulationResults:
    final_value: float
    total_return: float
    projection_years: int


@dataclass(frozen=True)
class SimulationRecord:
    """A saved projection snapshot plus user metadata."""
    id: str
    client_id: str
    projection: WealthProjection
    name: str
    parameters: SimulationParameters
    results: SimulationResults
    created_at: pd.Timestamp
    updated_at: pd.Timestamp
    description: Optional[str] = None
    tags: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "client_id": self.client_id,
            "name": self.name,
            "description": self.description,
            "tags": list(self.tags),
            "parameters": self.parameters.to_dict(),
            "results": {
                "final_value": self.results.final_value,
                "total_return": self.results.total_return,
                "projection_years": self.results.projection_years,
            },
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


def summary_rows(records: List[SimulationRecord]) -> List[dict]:
    """Flat rows for tabular display of saved simulations."""
    return [
        {
            "id": r.id,
            "name": r.name,
            "tags": ", ".join(r.tags),
            "final_value": r.results.final_value,
            "total_return": r.results.total_return,
            "annual_rate": r.parameters.annual_rate,
            "created_at": r.created_at,
        }
        for r in records
    ]
