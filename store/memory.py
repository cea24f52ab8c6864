"""
In-process store used by tests, the dashboard and any caller without a database.

One instance may be shared by concurrent sessions; every method holds an internal lock.
"""

from __future__ import annotations

import itertools
import threading
from typing import Dict, Iterable, List, Literal, Optional

from core.schema import ClientRecord, SimulationRecord

from .base import PlannerStore


class InMemoryStore(PlannerStore):
    def __init__(self, clients: Iterable[ClientRecord] = ()):
        self._clients: Dict[str, ClientRecord] = {}
        self._simulations: Dict[str, SimulationRecord] = {}
        self._seq: Dict[str, int] = {}
        self._counter = itertools.count()
        self._lock = threading.RLock()
        for client in clients:
            self.add_client(client)

    # --- clients ---
    def add_client(self, client: ClientRecord) -> None:
        with self._lock:
            self._clients[client.id] = client

    def get_client(self, client_id: str) -> Optional[ClientRecord]:
        with self._lock:
            return self._clients.get(client_id)

    @property
    def client_ids(self) -> List[str]:
        with self._lock:
            return list(self._clients)

    # --- simulations ---
    def create_simulation(self, record: SimulationRecord) -> SimulationRecord:
        with self._lock:
            if record.id in self._simulations:
                raise KeyError(f"Duplicate simulation id: {record.id!r}")
            self._simulations[record.id] = record
            self._seq[record.id] = next(self._counter)
        return record

    def get_simulation(self, simulation_id: str) -> Optional[SimulationRecord]:
        with self._lock:
            return self._simulations.get(simulation_id)

    def update_simulation(self, record: SimulationRecord) -> SimulationRecord:
        with self._lock:
            if record.id not in self._simulations:
                raise KeyError(f"Unknown simulation id: {record.id!r}")
            self._simulations[record.id] = record
        return record

    def delete_simulation(self, simulation_id: str) -> bool:
        with self._lock:
            self._seq.pop(simulation_id, None)
            return self._simulations.pop(simulation_id, None) is not None

    def list_simulations(
        self,
        client_id: str,
        *,
        order: Literal["asc", "desc"] = "desc",
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[SimulationRecord]:
        with self._lock:
            rows = sorted(
                (r for r in self._simulations.values() if r.client_id == client_id),
                key=lambda r: (r.created_at, self._seq[r.id]),
                reverse=(order == "desc"),
            )
        end = None if limit is None else offset + limit
        return rows[offset:end]

    def count_simulations(self, client_id: str) -> int:
        with self._lock:
            return sum(1 for r in self._simulations.values() if r.client_id == client_id)

    def find_simulations(self, simulation_ids: Iterable[str]) -> List[SimulationRecord]:
        with self._lock:
            return [self._simulations[i] for i in simulation_ids if i in self._simulations]
