"""
Projection engine: deterministic monthly wealth simulation + client projection builder.
"""

from .simulator import simulate_wealth_curve
from .builder import ProjectionBuilder, to_projection_events

__all__ = ["simulate_wealth_curve", "ProjectionBuilder", "to_projection_events"]
