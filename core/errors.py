"""Typed errors raised by the planner engine. Callers translate them into responses."""

from __future__ import annotations

from typing import Iterable, List, Optional


class PlannerError(Exception):
    """Base class for planner exceptions."""
    pass


class NotFoundError(PlannerError):
    """Raised when a client, simulation or goal does not exist."""

    def __init__(self, entity: str, key: str):
        super().__init__(f"{entity} not found: {key!r}")
        self.entity = entity
        self.key = key


class ValidationError(PlannerError):
    """Raised when a request is malformed."""

    def __init__(self, message: str, errors: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.errors: List[str] = list(errors) if errors is not None else [message]


class ComputationError(PlannerError):
    """Raised by guards that should never trip under valid inputs."""
    pass
