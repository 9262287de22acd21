"""Task creation factory for dayplanner.

This module centralizes task creation logic so every code path (API, materialization,
tests) assigns identity, timestamps and defaults the same way.
"""

import uuid
from datetime import date, datetime
from typing import Optional, Dict, Any

from dayplanner.models.task import Task, TaskDraft, TaskStatus
from dayplanner.models.recurrence import RecurrenceRule
from dayplanner.models.constants import DEFAULT_WEIGHT


def create_task_defaults() -> Dict[str, Any]:
    """Get default task values as a dictionary.

    Returns:
        Dictionary with default task field values using constants
    """
    return {
        "notes": None,
        "weight": DEFAULT_WEIGHT,
        "status": TaskStatus.BACKLOG,
        "scheduled_at": None,
        "due_date": None,
        "completed_at": None,
        "is_recurring": False,
        "recurrence": None,
        "parent_id": None,
    }


def create_task_base(
    user_id: str,
    title: str,
    notes: Optional[str] = None,
    weight: Optional[int] = None,
    scheduled_at: Optional[datetime] = None,
    due_date: Optional[date] = None,
    is_recurring: Optional[bool] = None,
    recurrence: Optional[RecurrenceRule] = None,
    parent_id: Optional[str] = None,
) -> Task:
    """Create a task with defaults, allowing overrides.

    A task with a scheduled_at starts out scheduled, otherwise it goes to the
    backlog. A recurrence rule is only kept when the task is recurring; a stale
    rule on a non-recurring task is dropped.

    Args:
        user_id: Owner identifier (required)
        title: Task title (required)
        notes: Task notes
        weight: Effort on a 1-5 scale (defaults to constant)
        scheduled_at: Planned date-time (recurrence anchor)
        due_date: Date-only deadline
        is_recurring: Whether the task repeats
        recurrence: Recurrence rule (ignored unless is_recurring)
        parent_id: Template id when this task is a recurrence instance

    Returns:
        Task object with defaults applied
    """
    defaults = create_task_defaults()
    draft = TaskDraft(
        user_id=user_id,
        title=title,
        notes=notes if notes is not None else defaults["notes"],
        weight=weight if weight is not None else defaults["weight"],
        status=TaskStatus.SCHEDULED if scheduled_at is not None else defaults["status"],
        scheduled_at=scheduled_at if scheduled_at is not None else defaults["scheduled_at"],
        due_date=due_date if due_date is not None else defaults["due_date"],
        completed_at=defaults["completed_at"],
        is_recurring=is_recurring if is_recurring is not None else defaults["is_recurring"],
        recurrence=recurrence,
        parent_id=parent_id if parent_id is not None else defaults["parent_id"],
    )
    return task_from_draft(draft)


def task_from_draft(draft: TaskDraft) -> Task:
    """Assign identity and timestamps to a draft, the way the store does on insert."""
    now = datetime.utcnow()
    data = draft.model_dump()
    if not data["is_recurring"]:
        data["recurrence"] = None
    return Task(
        **data,
        id=str(uuid.uuid4()),
        created_at=now,
        updated_at=now,
    )
