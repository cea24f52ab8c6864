from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd

from core.schema import ClientRecord, Goal, StoredEvent, Wallet
from core.utils import require_fields


def _parse_date(value) -> Optional[date]:
    if value is None or value == "":
        return None
    ts = pd.to_datetime(value, errors="coerce")
    if pd.isna(ts):
        raise ValueError(f"Unparseable date: {value!r}")
    return ts.date()


def parse_client(raw: dict) -> ClientRecord:
    """Build a ClientRecord from a plain dict (ISO date strings, numeric amounts)."""
    require_fields(raw, ["id"])
    client_id = str(raw["id"])

    wallet = None
    if raw.get("wallet") is not None:
        w = raw["wallet"]
        wallet = Wallet(
            total_value=float(w.get("total_value", 0.0) or 0.0),
            allocation={str(k): float(v) for k, v in (w.get("allocation") or {}).items()},
        )

    events = []
    for i, e in enumerate(raw.get("events") or []):
        require_fields(e, ["type", "value"])
        events.append(
            StoredEvent(
                id=str(e.get("id", f"{client_id}-event-{i}")),
                type=str(e["type"]),
                value=float(e["value"]),
                frequency=e.get("frequency") or "once",
                date=_parse_date(e.get("date")),
            )
        )

    goals = []
    for i, g in enumerate(raw.get("goals") or []):
        require_fields(g, ["type", "amount", "target_at"])
        target_at = _parse_date(g["target_at"])
        if target_at is None:
            raise ValueError(f"Goal {i} of client {client_id!r} has an empty target_at")
        goals.append(
            Goal(
                id=str(g.get("id", f"{client_id}-goal-{i}")),
                type=str(g["type"]),
                amount=float(g["amount"]),
                target_at=target_at,
            )
        )

    return ClientRecord(
        id=client_id,
        name=str(raw.get("name", "")),
        wallet=wallet,
        events=tuple(events),
        goals=tuple(goals),
    )


def load_clients_json(path: Union[str, Path]) -> List[ClientRecord]:
    """
    Load client records from a JSON file: either a list of clients or
    an object with a ``clients`` list.
    """
    with open(path, "r", encoding="utf-8") as fh:
        doc = json.load(fh)
    rows = doc.get("clients", []) if isinstance(doc, dict) else doc
    return [parse_client(r) for r in rows]
