"""
Data quality validation for client records before they enter the engine.

Catches problems early:
- Negative wallet balances
- Goals without a positive amount or a target date
- Event frequencies the simulator will coerce to 'once'
- Allocations that don't add up
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from core.schema import FREQUENCIES, ClientRecord


@dataclass
class ValidationResult:
    """
    Data-quality findings for one client record.

    ``errors`` would make a projection meaningless (negative balances, goals with no
    amount or date) and block ``is_valid``; ``warnings`` flag data the engine will
    still accept but interpret in a default way.
    """
    client_id: str = ""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def summary(self) -> str:
        header = f"Client {self.client_id}" if self.client_id else "Client record"
        lines = [f"{header}:"]
        if self.errors:
            lines.append(f"ERRORS ({len(self.errors)}):")
            lines.extend(f"  ✗ {msg}" for msg in self.errors)
        if self.warnings:
            lines.append(f"WARNINGS ({len(self.warnings)}):")
            lines.extend(f"  ⚠ {msg}" for msg in self.warnings)
        if not self.errors and not self.warnings:
            lines.append("✓ All checks passed.")
        return "\n".join(lines)


def validate_client_record(
    client: ClientRecord,
    *,
    today: Optional[date] = None,
    allocation_tolerance: float = 1.0,
) -> ValidationResult:
    """
    Check a client record before it is projected. Goals dated before ``today`` and
    allocations off 100 by more than ``allocation_tolerance`` points are warnings.
    """
    result = ValidationResult(client_id=client.id)
    ref = today or date.today()

    # --- Wallet ---
    if client.wallet is not None:
        if client.wallet.total_value < 0:
            result.errors.append(f"Wallet total is negative ({client.wallet.total_value:,.2f}).")
        alloc = client.wallet.allocation
        if alloc:
            n_neg = sum(1 for v in alloc.values() if v < 0)
            if n_neg > 0:
                result.errors.append(f"{n_neg} allocation classes have negative percentages.")
            total = sum(alloc.values())
            if abs(total - 100.0) > allocation_tolerance:
                result.warnings.append(
                    f"Allocation percentages sum to {total:.1f}, expected 100."
                )

    # --- Events ---
    n_bad_freq = sum(1 for e in client.events if e.frequency not in FREQUENCIES)
    if n_bad_freq > 0:
        result.warnings.append(
            f"{n_bad_freq} events have an unrecognized frequency and will be treated as 'once'."
        )
    n_undated = sum(1 for e in client.events if e.date is None)
    if n_undated > 0:
        result.warnings.append(f"{n_undated} events have no date and will start today.")

    # --- Goals ---
    for goal in client.goals:
        if goal.amount <= 0:
            result.errors.append(f"Goal {goal.id!r} has non-positive amount ({goal.amount}).")
        if goal.target_at is None:
            result.errors.append(f"Goal {goal.id!r} has no target date.")
        elif goal.target_at < ref:
            result.warnings.append(f"Goal {goal.id!r} target date {goal.target_at} is in the past.")

    return result
