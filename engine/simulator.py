"""
Wealth simulator: monthly compound growth with cash-flow events.

Each month, in this order:
  1. growth:  value *= 1 + annual_rate / 12
  2. events:  every applicable event adds its (signed) value, in input order
  3. record:  the point stores the value rounded to 2 decimals

The unrounded value carries into the next month; only the recorded point is rounded.
The whole run is a fold over the month sequence, so the output depends on nothing
but the arguments.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from itertools import accumulate, islice
from typing import Optional, Sequence, Tuple

from core.schema import ProjectionEvent, ProjectionPoint
from core.utils import month_starts, round_cents

from .events import DEFAULT_EVENT_END, should_apply_event


@dataclass(frozen=True)
class _MonthState:
    value: float
    point: Optional[ProjectionPoint] = None


def simulate_wealth_curve(
    initial_value: float,
    events: Sequence[ProjectionEvent] = (),
    annual_rate: float = 0.04,
    start_year: Optional[int] = None,
    end_year: int = 2060,
    *,
    today: Optional[date] = None,
    default_event_end: date = DEFAULT_EVENT_END,
) -> Tuple[ProjectionPoint, ...]:
    """
    Simulate the monthly wealth curve from January of start_year to December of end_year.

    Returns 12 * (end_year - start_year + 1) points; empty when end_year < start_year.
    No validation happens here: negative balances or out-of-range rates are the
    caller's concern.
    """
    ref = today or date.today()
    first_year = ref.year if start_year is None else int(start_year)
    growth = 1.0 + float(annual_rate) / 12.0
    event_list = tuple(events)

    def step(state: _MonthState, month_start: date) -> _MonthState:
        value = state.value * growth
        fired = tuple(
            e for e in event_list
            if should_apply_event(e, month_start, today=ref, default_end=default_event_end)
        )
        for e in fired:
            value += e.value
        point = ProjectionPoint(
            year=month_start.year,
            month=month_start.month,
            projected_value=round_cents(value),
            events=fired,
        )
        return _MonthState(value=value, point=point)

    months = month_starts(first_year, int(end_year))
    states = accumulate(months, step, initial=_MonthState(value=float(initial_value)))
    return tuple(s.point for s in islice(states, 1, None))
