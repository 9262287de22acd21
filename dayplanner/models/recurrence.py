"""Recurrence rule model for dayplanner.

A rule lives embedded in its owning task record and has no identity of its own.
Persisted shape: {"type", "interval", "days"?, "until"?}.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class RecurrenceType(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"  # fixed N-day interval, kept apart from daily for labeling


class RecurrenceRule(BaseModel):
    """Recurrence definition attached to a task.

    Notes:
    - `type` is kept as a plain string so stored rules with an unrecognized type still load.
    - `interval` is not range-checked here; authoring payloads validate it (see api.task_models.RecurrenceRuleRequest).
    - `weekdays` uses 0=Sunday..6=Saturday and only matters for weekly rules.
    """

    type: str = Field(..., description="daily | weekly | monthly | custom")
    interval: int = Field(1, description="Every N units (days/weeks/months; days for custom)")
    weekdays: Optional[List[int]] = Field(
        None, alias="days", description="For weekly recurrence: weekday numbers, 0=Sunday"
    )
    until: Optional[date] = Field(None, description="Inclusive end date")

    class Config:
        """Pydantic configuration."""
        populate_by_name = True
        frozen = True

    @field_validator("type", mode="before")
    @classmethod
    def _validate_type(cls, v):
        if isinstance(v, RecurrenceType):
            return v.value
        return v

    @field_validator("weekdays")
    @classmethod
    def _validate_weekdays(cls, v):
        if v is None:
            return None
        # Deduplicate but preserve order
        seen = set()
        out: List[int] = []
        for day in v:
            if day not in seen:
                seen.add(day)
                out.append(day)
        return out

    @field_validator("until", mode="before")
    @classmethod
    def _validate_until(cls, v):
        # Older records carry a full ISO timestamp; only the calendar date matters.
        if isinstance(v, str) and len(v) > 10:
            return v[:10]
        return v

    @property
    def is_known_type(self) -> bool:
        return self.type in {t.value for t in RecurrenceType}

    def to_record(self) -> Dict[str, Any]:
        """Serialize to the persisted JSON shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
