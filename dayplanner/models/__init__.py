"""Data models for dayplanner."""

from dayplanner.models.task import BacklogSort, Task, TaskDraft, TaskStatus
from dayplanner.models.recurrence import RecurrenceRule, RecurrenceType

__all__ = [
    "Task",
    "TaskDraft",
    "TaskStatus",
    "BacklogSort",
    "RecurrenceRule",
    "RecurrenceType",
]
