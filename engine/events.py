"""
Event applicability: decides whether a cash-flow event fires in a given simulated month.

Windows are evaluated at month granularity: an event whose start date falls anywhere
inside a month is considered active from that month on.

  once     fires in the start month only
  monthly  fires every month inside [start, end]
  yearly   fires in the calendar month of the start date, every year >= start year
  other    missing or unrecognized frequencies behave like ``once``
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from core.schema import FREQUENCIES, ProjectionEvent

logger = logging.getLogger(__name__)

DEFAULT_EVENT_END = date(2060, 12, 31)


def _month_floor(d: date) -> date:
    return date(d.year, d.month, 1)


def normalize_frequency(frequency: Optional[str]) -> str:
    if frequency in FREQUENCIES:
        return frequency
    if frequency is not None:
        logger.warning("Unrecognized event frequency %r, treating as 'once'", frequency)
    return "once"


def should_apply_event(
    event: ProjectionEvent,
    month_start: date,
    *,
    today: date,
    default_end: date = DEFAULT_EVENT_END,
) -> bool:
    """
    Return True if ``event`` fires in the month beginning at ``month_start``.

    Parameters
    ----------
    event : ProjectionEvent
        Event to test. Missing start date means "today", missing end date means
        ``default_end``.
    month_start : date
        First day of the simulated month.
    today : date
        Reference date for events without a start date.
    default_end : date
        End of applicability for events without an end date.
    """
    start = event.start_date or today
    end = event.end_date or default_end

    if month_start < _month_floor(start) or month_start > end:
        return False

    frequency = event.frequency if event.frequency in FREQUENCIES else "once"

    if frequency == "monthly":
        return True
    if frequency == "yearly":
        return month_start.month == start.month and month_start.year >= start.year
    # once / unrecognized
    return month_start.year == start.year and month_start.month == start.month
