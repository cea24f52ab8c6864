"""
Persistence contract consumed by the planner.

Extracted as an interface only: the engine needs to load a client's wallet, events
and goals, and to create / read / update / delete simulation records keyed by client.
Which technology sits behind it is not the engine's business.
"""

from __future__ import annotations

from typing import Iterable, List, Literal, Optional

from core.schema import ClientRecord, SimulationRecord


class PlannerStore:
    """Interface for client lookups and simulation persistence."""

    def get_client(self, client_id: str) -> Optional[ClientRecord]:
        raise NotImplementedError

    def create_simulation(self, record: SimulationRecord) -> SimulationRecord:
        raise NotImplementedError

    def get_simulation(self, simulation_id: str) -> Optional[SimulationRecord]:
        raise NotImplementedError

    def update_simulation(self, record: SimulationRecord) -> SimulationRecord:
        raise NotImplementedError

    def delete_simulation(self, simulation_id: str) -> bool:
        raise NotImplementedError

    def list_simulations(
        self,
        client_id: str,
        *,
        order: Literal["asc", "desc"] = "desc",
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[SimulationRecord]:
        """Simulations for a client ordered by created_at."""
        raise NotImplementedError

    def count_simulations(self, client_id: str) -> int:
        raise NotImplementedError

    def find_simulations(self, simulation_ids: Iterable[str]) -> List[SimulationRecord]:
        raise NotImplementedError
