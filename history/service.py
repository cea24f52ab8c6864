"""
Simulation history: save projections with metadata, page through them, compare runs.

A saved simulation is a snapshot. Its ``results`` are copied from the projection at
save time and never recomputed; later metadata edits touch name, description and tags
only.

Sorting by value (final_value / total_return) is applied to the page that was fetched
in created_at order, so it orders rows within a page, not across the whole history.
"""

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass, replace
from typing import Callable, Iterable, List, Optional, Sequence

import pandas as pd

from core.config import PlannerConfig
from core.errors import NotFoundError, ValidationError
from core.schema import (
    ProjectionEvent,
    SimulationParameters,
    SimulationRecord,
    SimulationResults,
    WealthProjection,
    summary_rows,
)
from store.base import PlannerStore
from store.requests import HistoryQuery, MetadataUpdate, parse_request

from .aggregator import ClientSimulationStats, SimulationComparison, client_stats, compare_records

logger = logging.getLogger(__name__)


def unique_fired_events(projection: WealthProjection) -> List[ProjectionEvent]:
    """Events that fired anywhere in the projection, first occurrence per (type, value, frequency)."""
    seen = set()
    out = []
    for point in projection.projection_points:
        for event in point.events:
            key = (event.type, event.value, event.frequency)
            if key not in seen:
                seen.add(key)
                out.append(event)
    return out


@dataclass(frozen=True)
class HistoryPage:
    simulations: List[SimulationRecord]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def pagination(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "total_pages": self.total_pages,
        }


class SimulationHistory:
    """
    Parameters
    ----------
    store : PlannerStore
        Where simulation records are persisted.
    config : PlannerConfig, optional
        Comparison bounds.
    clock : callable, optional
        Returns the current timestamp; defaults to ``pd.Timestamp.now``.
    id_factory : callable, optional
        Generates simulation ids; defaults to random hex uuids.
    """

    def __init__(
        self,
        store: PlannerStore,
        config: Optional[PlannerConfig] = None,
        *,
        clock: Optional[Callable[[], pd.Timestamp]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self.store = store
        self.config = config or PlannerConfig()
        self._clock = clock or pd.Timestamp.now
        self._new_id = id_factory or (lambda: uuid.uuid4().hex)

    # ------------------------------------------------------------------
    # Create / read
    # ------------------------------------------------------------------
    def save(
        self,
        client_id: str,
        projection: WealthProjection,
        *,
        name: Optional[str] = None,
        description: Optional[str] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> str:
        if self.store.get_client(client_id) is None:
            raise NotFoundError("client", client_id)

        now = self._clock()
        record = SimulationRecord(
            id=self._new_id(),
            client_id=client_id,
            projection=projection,
            name=name or f"Simulation {now.date().isoformat()}",
            description=description,
            tags=tuple(tags or ()),
            parameters=SimulationParameters(
                initial_value=projection.initial_value,
                annual_rate=projection.annual_rate,
                events=tuple(unique_fired_events(projection)),
            ),
            results=SimulationResults(
                final_value=projection.final_value,
                total_return=projection.total_return,
                projection_years=len(projection.projection_points) // 12,
            ),
            created_at=now,
            updated_at=now,
        )
        self.store.create_simulation(record)
        logger.info("Saved simulation %s for client %s (%s)", record.id, client_id, record.name)
        return record.id

    def get(self, simulation_id: str) -> SimulationRecord:
        record = self.store.get_simulation(simulation_id)
        if record is None:
            raise NotFoundError("simulation", simulation_id)
        return record

    def list(self, client_id: str, query=None) -> HistoryPage:
        """
        One page of a client's simulations.

        ``query`` is a HistoryQuery or an equivalent dict (page, limit, tags, sort_by,
        sort_order). Pages are always cut from created_at order; value sorts reorder
        the page afterwards.
        """
        q = parse_request(HistoryQuery, query)
        order = q.sort_order if q.sort_by == "created_at" else "desc"
        offset = (q.page - 1) * q.limit

        records = self.store.list_simulations(client_id, order=order, offset=offset, limit=q.limit)
        total = self.store.count_simulations(client_id)

        if q.tags:
            wanted = set(q.tags)
            records = [r for r in records if wanted.intersection(r.tags)]

        if q.sort_by != "created_at":
            attr = q.sort_by
            records = sorted(
                records,
                key=lambda r: getattr(r.results, attr),
                reverse=(q.sort_order == "desc"),
            )

        return HistoryPage(simulations=records, page=q.page, limit=q.limit, total=total)

    # ------------------------------------------------------------------
    # Compare
    # ------------------------------------------------------------------
    def compare(self, simulation_ids: Sequence[str]) -> SimulationComparison:
        ids = list(simulation_ids)
        lo, hi = self.config.compare_min, self.config.compare_max
        if not lo <= len(ids) <= hi:
            raise ValidationError(
                f"Comparison needs between {lo} and {hi} simulations, got {len(ids)}."
            )
        records = self.store.find_simulations(ids)
        found = {r.id for r in records}
        missing = [i for i in ids if i not in found]
        if missing:
            raise NotFoundError("simulation", missing[0])
        return compare_records(records)

    # ------------------------------------------------------------------
    # Update / delete
    # ------------------------------------------------------------------
    def update_metadata(self, simulation_id: str, metadata=None, **fields) -> SimulationRecord:
        """
        Merge name / description / tags into the record; fields left as None are kept.

        ``metadata`` is a MetadataUpdate or a dict; keyword fields are used when it is omitted.
        """
        update = parse_request(MetadataUpdate, metadata if metadata is not None else fields)
        record = self.get(simulation_id)
        changes = {}
        if update.name is not None:
            changes["name"] = update.name
        if update.description is not None:
            changes["description"] = update.description
        if update.tags is not None:
            changes["tags"] = tuple(update.tags)
        updated = replace(record, updated_at=self._clock(), **changes)
        self.store.update_simulation(updated)
        return updated

    def delete(self, simulation_id: str) -> None:
        if not self.store.delete_simulation(simulation_id):
            raise NotFoundError("simulation", simulation_id)
        logger.info("Deleted simulation %s", simulation_id)

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------
    def stats_for_client(self, client_id: str) -> ClientSimulationStats:
        records = self.store.list_simulations(client_id, order="desc")
        return client_stats(records, now=self._clock())

    @staticmethod
    def to_dataframe(records: List[SimulationRecord]) -> pd.DataFrame:
        return pd.DataFrame(
            summary_rows(records),
            columns=["id", "name", "tags", "final_value", "total_return", "annual_rate", "created_at"],
        )
