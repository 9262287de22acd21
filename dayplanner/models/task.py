"""Task data model for dayplanner."""

from datetime import date, datetime
from typing import Optional
from enum import Enum
from pydantic import BaseModel, Field

from dayplanner.models.recurrence import RecurrenceRule


class TaskStatus(str, Enum):
    """Task status enumeration."""
    BACKLOG = "backlog"  # not on the calendar yet
    SCHEDULED = "scheduled"
    DONE = "done"
    POSTPONED = "postponed"


class BacklogSort(str, Enum):
    """Orderings offered by the backlog view."""
    WEIGHT_DESC = "weight-desc"
    WEIGHT_ASC = "weight-asc"
    DUE_DATE_ASC = "due-date-asc"
    CREATED_AT_DESC = "created-at-desc"


class TaskDraft(BaseModel):
    """Task fields without server-assigned identity and timestamps.

    Used as the create payload and as the shape of materialized recurrence instances.
    """

    user_id: str = Field(..., description="Owner identifier (opaque)")
    title: str = Field(..., description="Task title")
    notes: Optional[str] = Field(None, description="Task notes")
    weight: int = Field(1, ge=1, le=5, description="Effort/complexity on a 1-5 scale")
    status: TaskStatus = Field(TaskStatus.BACKLOG, description="Task status")
    scheduled_at: Optional[datetime] = Field(
        None, description="When the task is planned; anchor of the recurrence if any"
    )
    due_date: Optional[date] = Field(None, description="Date-only deadline used for reminders")
    completed_at: Optional[datetime] = Field(None, description="Completion timestamp")
    is_recurring: bool = Field(False, description="Recurrence gate; recurrence is ignored when false")
    recurrence: Optional[RecurrenceRule] = Field(None, description="Recurrence rule (recurring tasks only)")
    parent_id: Optional[str] = Field(
        None, description="On materialized instances, the id of the recurring template task"
    )

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class Task(TaskDraft):
    """Canonical Task model (as stored)."""

    id: str = Field(..., description="Unique task identifier (UUID v4)")
    created_at: datetime = Field(..., description="Task creation timestamp")
    updated_at: datetime = Field(..., description="Task last update timestamp")
