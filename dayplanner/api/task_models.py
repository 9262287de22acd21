"""Request/response models for task endpoints."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from dayplanner.models.constants import MAX_WEIGHT, MIN_WEIGHT
from dayplanner.models.recurrence import RecurrenceRule, RecurrenceType
from dayplanner.models.task import Task, TaskStatus


class RecurrenceRuleRequest(BaseModel):
    """Recurrence rule as authored by the user (validated, unlike stored rules)."""
    type: RecurrenceType
    interval: int = Field(1, ge=1, description="Every N units")
    days: Optional[List[int]] = Field(None, description="Weekdays for weekly rules, 0=Sunday..6=Saturday")
    until: Optional[date] = Field(None, description="Inclusive end date")

    @field_validator("days")
    @classmethod
    def _validate_days(cls, v):
        if v is None:
            return None
        for day in v:
            if day < 0 or day > 6:
                raise ValueError("days must be weekday numbers 0 (Sunday) to 6 (Saturday)")
        return v

    def to_rule(self) -> RecurrenceRule:
        return RecurrenceRule(type=self.type.value, interval=self.interval, days=self.days, until=self.until)


class TaskCreateRequest(BaseModel):
    """Request model for creating a task."""
    title: str = Field(..., min_length=1, description="Task title")
    notes: Optional[str] = None
    weight: int = Field(1, ge=MIN_WEIGHT, le=MAX_WEIGHT)
    scheduled_at: Optional[datetime] = None
    due_date: Optional[date] = None
    is_recurring: bool = False
    recurrence: Optional[RecurrenceRuleRequest] = None


class TaskUpdateRequest(BaseModel):
    """Request model for updating a task (only provided fields change)."""
    title: Optional[str] = Field(None, min_length=1)
    notes: Optional[str] = None
    weight: Optional[int] = Field(None, ge=MIN_WEIGHT, le=MAX_WEIGHT)
    scheduled_at: Optional[datetime] = None
    due_date: Optional[date] = None
    status: Optional[TaskStatus] = None
    is_recurring: Optional[bool] = None
    recurrence: Optional[RecurrenceRuleRequest] = None


class TaskResponse(BaseModel):
    task: Task


class TaskListResponse(BaseModel):
    tasks: List[Task]


class OccurrencesResponse(BaseModel):
    """Expanded occurrences of a recurring task."""
    task_id: str
    description: str
    occurrences: List[date]


class NextOccurrenceResponse(BaseModel):
    task_id: str
    description: str
    next_occurrence: Optional[date]


class ScheduleRequest(BaseModel):
    """New calendar slot for schedule and postpone."""
    scheduled_at: datetime


class MaterializeRequest(BaseModel):
    start: date
    end: date


class MaterializeResponse(BaseModel):
    created_count: int
    tasks: List[Task]
