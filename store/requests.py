"""
Request models for caller-supplied parameters.

These guard the entry points that accept free-form input (ad-hoc simulations,
history queries, metadata edits). Pydantic errors are re-raised as the planner's
own ValidationError so callers only deal with one exception family.
"""

from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional, Type, TypeVar

import pydantic
from pydantic import BaseModel, Field, model_validator

from core.errors import ValidationError
from core.schema import ProjectionEvent

M = TypeVar("M", bound=BaseModel)


class EventInput(BaseModel):
    type: str
    value: float
    frequency: Optional[Literal["once", "monthly", "yearly"]] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def to_event(self, *, today: date, horizon_end: date) -> ProjectionEvent:
        return ProjectionEvent(
            type=self.type,
            value=self.value,
            frequency=self.frequency,
            start_date=self.start_date or today,
            end_date=self.end_date or horizon_end,
        )


class SimulationRequest(BaseModel):
    """Parameters for an ad-hoc projection."""

    initial_value: float = Field(..., gt=0)
    events: List[EventInput] = Field(default_factory=list)
    annual_rate: float = Field(0.04, ge=0, le=1)
    start_year: Optional[int] = Field(None, ge=2020)
    end_year: int = Field(2060, le=2100)

    @model_validator(mode="after")
    def _check_years(self) -> "SimulationRequest":
        if self.start_year is not None and self.start_year > self.end_year:
            raise ValueError("start_year must not be after end_year")
        return self


class HistoryQuery(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=50)
    tags: Optional[List[str]] = None
    sort_by: Literal["created_at", "final_value", "total_return"] = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"


class MetadataUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None


def parse_request(model: Type[M], data) -> M:
    """Validate ``data`` (a dict or an instance) into ``model``."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data or {})
    except pydantic.ValidationError as exc:
        messages = [
            f"{'.'.join(str(p) for p in err['loc']) or model.__name__}: {err['msg']}"
            for err in exc.errors()
        ]
        raise ValidationError(f"Invalid {model.__name__}", messages) from exc
