from __future__ import annotations

import logging
import math
import sys
from datetime import date
from typing import Iterable, List, Mapping

import numpy as np
import pandas as pd
from dateutil.relativedelta import relativedelta


def require_fields(record: Mapping, fields: Iterable[str]) -> None:
    missing = [f for f in fields if f not in record]
    if missing:
        raise ValueError(f"Missing required fields: {missing}")


def round_cents(x: float, decimals: int = 2) -> float:
    """Round half up (towards +inf), the rounding saved projections were produced with."""
    m = 10 ** decimals
    return float(np.floor(x * m + 0.5) / m)


def month_starts(start_year: int, end_year: int) -> List[date]:
    """First day of every month from January of start_year to December of end_year."""
    if end_year < start_year:
        return []
    idx = pd.date_range(
        pd.Timestamp(year=start_year, month=1, day=1),
        periods=12 * (end_year - start_year + 1),
        freq="MS",
    )
    return [ts.date() for ts in idx]


def add_months(d: date, months: int) -> date:
    return d + relativedelta(months=months)


def months_until(target: date, today: date) -> int:
    """Whole 30-day months from today to target, rounded up; never negative."""
    days = (target - today).days
    return max(0, math.ceil(days / 30))


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    """Install a single console handler on the root logger. Entry points only."""
    root = logging.getLogger()
    root.setLevel(level)
    if root.handlers:
        return root
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    root.addHandler(handler)
    return root
