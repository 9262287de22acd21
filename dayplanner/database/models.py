"""SQLAlchemy database models for dayplanner."""

from datetime import datetime
import uuid
from sqlalchemy import Column, String, Integer, Boolean, Date, DateTime, JSON, Index

from typing import Union, TypeVar, Type
from dayplanner.database.database import Base
from dayplanner.models.recurrence import RecurrenceRule
from dayplanner.models.task import TaskStatus

T = TypeVar('T')


def enum_to_value(enum_obj: Union[str, T]) -> str:
    """Convert enum to string value (handles both enum and string)."""
    if hasattr(enum_obj, 'value'):
        return enum_obj.value
    return str(enum_obj)


def value_to_enum(value: str, enum_class: Type[T], default: T) -> T:
    """Convert string to enum with fallback to default."""
    if not value:
        return default
    try:
        return enum_class(value.lower())
    except (ValueError, AttributeError):
        return default


def recurrence_to_json(rule):
    return rule.to_record() if rule is not None else None


# Records written before the backlog/scheduled split.
_LEGACY_STATUSES = {"completed": TaskStatus.DONE}


def status_from_record(value, scheduled_at) -> TaskStatus:
    """Stored status string to TaskStatus; unknown or legacy "pending" values follow scheduled_at."""
    if value in _LEGACY_STATUSES:
        return _LEGACY_STATUSES[value]
    fallback = TaskStatus.SCHEDULED if scheduled_at is not None else TaskStatus.BACKLOG
    return value_to_enum(value, TaskStatus, fallback)


class TaskDB(Base):
    """Database model for Task."""

    __tablename__ = "tasks"
    __table_args__ = (
        # Lookup of materialized instances for a template by occurrence.
        Index("ix_tasks_parent_scheduled", "parent_id", "scheduled_at"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    # Owner (opaque identifier from the auth provider)
    user_id = Column(String, nullable=False, index=True)

    # Basic fields
    title = Column(String, nullable=False)
    notes = Column(String, nullable=True)
    weight = Column(Integer, nullable=False, default=1)
    status = Column(String, nullable=False, default=TaskStatus.BACKLOG.value)

    # Scheduling fields
    scheduled_at = Column(DateTime, nullable=True)
    due_date = Column(Date, nullable=True, index=True)
    completed_at = Column(DateTime, nullable=True)

    # Recurrence (rule stored as JSON: {type, interval, days?, until?})
    is_recurring = Column(Boolean, nullable=False, default=False)
    recurrence = Column(JSON, nullable=True)
    parent_id = Column(String, nullable=True, index=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from dayplanner.models.task import Task

        recurrence = None
        if self.is_recurring and self.recurrence:
            recurrence = RecurrenceRule.model_validate(self.recurrence)

        return Task(
            id=self.id,
            user_id=self.user_id,
            title=self.title,
            notes=self.notes,
            weight=self.weight,
            status=status_from_record(self.status, self.scheduled_at),
            scheduled_at=self.scheduled_at,
            due_date=self.due_date,
            completed_at=self.completed_at,
            is_recurring=bool(self.is_recurring),
            recurrence=recurrence,
            parent_id=self.parent_id,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, task):
        """Create database model from Pydantic model."""
        return cls(
            id=task.id,
            user_id=task.user_id,
            title=task.title,
            notes=task.notes,
            weight=task.weight,
            status=enum_to_value(task.status),
            scheduled_at=task.scheduled_at,
            due_date=task.due_date,
            completed_at=task.completed_at,
            is_recurring=task.is_recurring,
            recurrence=recurrence_to_json(task.recurrence) if task.is_recurring else None,
            parent_id=task.parent_id,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )
