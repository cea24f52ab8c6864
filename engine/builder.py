"""
Projection builder: loads a client from the store and runs the simulator over the
planning horizon.

Stored events are converted into projection events before simulating:
  - one-time events end on their own start date
  - recurring events run until 31 Dec of the horizon end year
  - undated events start today
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from core.cache import TTLCache
from core.config import PlannerConfig
from core.errors import ComputationError, NotFoundError, ValidationError
from core.schema import ClientRecord, ProjectionEvent, StoredEvent, WealthProjection
from store.base import PlannerStore
from store.requests import SimulationRequest, parse_request

from .events import normalize_frequency
from .simulator import simulate_wealth_curve

logger = logging.getLogger(__name__)


def to_projection_events(
    stored: Iterable[StoredEvent],
    *,
    today: date,
    horizon_end: date,
) -> List[ProjectionEvent]:
    events = []
    for e in stored:
        frequency = normalize_frequency(e.frequency)
        start = e.date or today
        events.append(
            ProjectionEvent(
                type=e.type,
                value=float(e.value),
                frequency=frequency,
                start_date=start,
                end_date=start if frequency == "once" else horizon_end,
            )
        )
    return events


class ProjectionBuilder:
    """
    Builds WealthProjections for stored clients and for ad-hoc parameter sets.

    Parameters
    ----------
    store : PlannerStore
        Source of client records.
    config : PlannerConfig
        Horizon and default rate.
    cache : TTLCache, optional
        When given, ``cached_projection`` memoizes client projections in it.
    today : date, optional
        Fixed reference date (tests); defaults to the current date at call time.
    """

    def __init__(
        self,
        store: PlannerStore,
        config: Optional[PlannerConfig] = None,
        *,
        cache: Optional[TTLCache] = None,
        today: Optional[date] = None,
    ):
        self.store = store
        self.config = config or PlannerConfig()
        self.cache = cache
        self._today = today

    @property
    def today(self) -> date:
        return self._today or date.today()

    # ------------------------------------------------------------------
    # Client projections
    # ------------------------------------------------------------------
    def load_client(self, client_id: str) -> ClientRecord:
        client = self.store.get_client(client_id)
        if client is None:
            raise NotFoundError("client", client_id)
        return client

    def build_for_client(self, client_id: str, annual_rate: Optional[float] = None) -> WealthProjection:
        client = self.load_client(client_id)
        return self.project_client(client, annual_rate)

    def project_client(
        self,
        client: ClientRecord,
        annual_rate: Optional[float] = None,
        *,
        extra_events: Sequence[ProjectionEvent] = (),
    ) -> WealthProjection:
        """Project an already-loaded client, optionally with additional synthetic events."""
        rate = self.config.default_annual_rate if annual_rate is None else float(annual_rate)
        events = to_projection_events(
            client.events, today=self.today, horizon_end=self.config.horizon_end
        )
        events.extend(extra_events)
        projection = self.project(
            client.id,
            client.wallet_total,
            events,
            rate,
            self.config.resolved_start_year(self.today),
            self.config.horizon_end_year,
        )
        logger.info(
            "Built projection for client %s: %d points, final value %.2f",
            client.id, len(projection.projection_points), projection.final_value,
        )
        return projection

    def cached_projection(self, client_id: str, annual_rate: Optional[float] = None) -> WealthProjection:
        """build_for_client memoized in the injected cache, tagged by client."""
        if self.cache is None:
            return self.build_for_client(client_id, annual_rate)
        rate = self.config.default_annual_rate if annual_rate is None else float(annual_rate)
        return self.cache.get_or_set(
            TTLCache.projection_key(client_id, {"annual_rate": rate}),
            lambda: self.build_for_client(client_id, rate),
            self.config.projection_cache_ttl_seconds,
            tags=[TTLCache.client_tag(client_id)],
        )

    def invalidate_client(self, client_id: str) -> int:
        """Drop every cached entry tagged for this client (call after writes to its data)."""
        if self.cache is None:
            return 0
        return self.cache.invalidate_tag(TTLCache.client_tag(client_id))

    # ------------------------------------------------------------------
    # Ad-hoc simulation
    # ------------------------------------------------------------------
    def simulate(self, request, client_id: str = "adhoc") -> WealthProjection:
        """Project caller-supplied parameters (a SimulationRequest or an equivalent dict)."""
        req = parse_request(SimulationRequest, request)
        events = [
            e.to_event(today=self.today, horizon_end=self.config.horizon_end) for e in req.events
        ]
        start_year = req.start_year if req.start_year is not None else self.today.year
        if start_year > req.end_year:
            raise ValidationError(
                "Invalid SimulationRequest",
                [f"end_year: {req.end_year} is before the start year {start_year}"],
            )
        return self.project(client_id, req.initial_value, events, req.annual_rate, start_year, req.end_year)

    def project(
        self,
        client_id: str,
        initial_value: float,
        events: Sequence[ProjectionEvent],
        annual_rate: float,
        start_year: int,
        end_year: int,
    ) -> WealthProjection:
        points = simulate_wealth_curve(
            float(initial_value),
            events,
            annual_rate,
            start_year,
            end_year,
            today=self.today,
            default_event_end=self.config.horizon_end,
        )
        if not points:
            raise ComputationError(
                f"Simulation produced no points for years {start_year}..{end_year}."
            )
        final_value = points[-1].projected_value
        return WealthProjection(
            client_id=client_id,
            initial_value=float(initial_value),
            annual_rate=float(annual_rate),
            projection_points=tuple(points),
            final_value=final_value,
            total_return=final_value - float(initial_value),
        )

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    @staticmethod
    def annual_view(projection: WealthProjection) -> List[dict]:
        """December points only: one row per projected year."""
        return [
            {"year": p.year, "projected_value": p.projected_value}
            for p in projection.projection_points
            if p.month == 12
        ]

    @classmethod
    def annual_dataframe(cls, projection: WealthProjection) -> pd.DataFrame:
        return pd.DataFrame(cls.annual_view(projection), columns=["year", "projected_value"])
