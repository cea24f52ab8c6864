"""
Core package: schema definitions, configuration, errors, cache and shared utilities.
No business logic lives here.
"""

from .schema import (
    FREQUENCIES,
    ClientRecord,
    Goal,
    ProjectionEvent,
    ProjectionPoint,
    SimulationRecord,
    StoredEvent,
    Wallet,
    WealthProjection,
)
from .config import PlannerConfig
from .errors import ComputationError, NotFoundError, PlannerError, ValidationError
from .cache import TTLCache
from .utils import round_cents, month_starts, months_until, configure_logging

__all__ = [
    "FREQUENCIES",
    "ClientRecord",
    "Goal",
    "ProjectionEvent",
    "ProjectionPoint",
    "SimulationRecord",
    "StoredEvent",
    "Wallet",
    "WealthProjection",
    "PlannerConfig",
    "ComputationError",
    "NotFoundError",
    "PlannerError",
    "ValidationError",
    "TTLCache",
    "round_cents",
    "month_starts",
    "months_until",
    "configure_logging",
]
