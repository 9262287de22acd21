"""Repository layer for database operations."""

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence, Set
from sqlalchemy.orm import Session
from sqlalchemy import desc

from dayplanner.models.constants import BACKLOG_DUE_SOON_DAYS, HIGH_PRIORITY_WEIGHT
from dayplanner.models.task import BacklogSort, Task, TaskDraft, TaskStatus
from dayplanner.models.task_factory import task_from_draft
from dayplanner.database.models import TaskDB, enum_to_value, recurrence_to_json

logger = logging.getLogger(__name__)


class TaskRepository:
    """Repository for Task database operations."""

    def __init__(self, db: Session):
        self.db = db

    def _get_row(self, user_id: str, task_id: str) -> Optional[TaskDB]:
        return self.db.query(TaskDB).filter(
            TaskDB.id == task_id,
            TaskDB.user_id == user_id,
        ).first()

    def create(self, task: Task) -> Task:
        """Create a new task."""
        try:
            task_db = TaskDB.from_pydantic(task)
            self.db.add(task_db)
            self.db.commit()
            self.db.refresh(task_db)
            logger.debug(f"Created task {task.id}: {task.title[:50]}")
            return task_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create task {task.id}: {type(e).__name__}: {str(e)}")
            raise

    def create_many(self, drafts: Sequence[TaskDraft]) -> List[Task]:
        """Insert drafts in one transaction, assigning ids and timestamps."""
        rows = [TaskDB.from_pydantic(task_from_draft(d)) for d in drafts]
        if not rows:
            return []
        try:
            self.db.add_all(rows)
            self.db.commit()
            for row in rows:
                self.db.refresh(row)
            logger.debug(f"Created {len(rows)} tasks")
            return [row.to_pydantic() for row in rows]
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create {len(rows)} tasks: {type(e).__name__}: {str(e)}")
            raise

    def get(self, user_id: str, task_id: str) -> Optional[Task]:
        """Get task by ID for a specific user."""
        task_db = self._get_row(user_id, task_id)
        return task_db.to_pydantic() if task_db else None

    def get_all(self, user_id: str) -> List[Task]:
        """Get all tasks for a user sorted by creation date (newest first)."""
        tasks_db = self.db.query(TaskDB).filter(
            TaskDB.user_id == user_id,
        ).order_by(desc(TaskDB.created_at)).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def get_instances(self, user_id: str, parent_id: str) -> List[Task]:
        """Materialized instances of a recurring template, earliest first."""
        tasks_db = self.db.query(TaskDB).filter(
            TaskDB.user_id == user_id,
            TaskDB.parent_id == parent_id,
        ).order_by(TaskDB.scheduled_at).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def get_due_between(self, start: date, end: date, user_id: Optional[str] = None) -> List[Task]:
        """Open tasks (not done, not postponed) with due_date in [start, end].

        Without user_id this spans all users (used by the reminder dispatcher).
        """
        query = self.db.query(TaskDB).filter(
            TaskDB.due_date.isnot(None),
            TaskDB.due_date >= start,
            TaskDB.due_date <= end,
            TaskDB.status.notin_([TaskStatus.DONE.value, TaskStatus.POSTPONED.value]),
        )
        if user_id is not None:
            query = query.filter(TaskDB.user_id == user_id)
        tasks_db = query.order_by(TaskDB.due_date, TaskDB.created_at).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def get_backlog(
        self,
        user_id: str,
        sort: BacklogSort = BacklogSort.WEIGHT_DESC,
        due_soon: bool = False,
        no_due_date: bool = False,
        high_priority: bool = False,
        recurring_only: bool = False,
        today: Optional[date] = None,
    ) -> List[Task]:
        """Backlog tasks for a user, heaviest first by default.

        Args:
            user_id: Owner identifier
            sort: Ordering; due-date sorting puts tasks without a due date last
            due_soon: Only tasks due within BACKLOG_DUE_SOON_DAYS (overdue included)
            no_due_date: Only tasks without a due date
            high_priority: Only tasks with weight >= HIGH_PRIORITY_WEIGHT
            recurring_only: Only recurring templates
            today: Reference date for due_soon (defaults to the current date)

        Returns:
            Matching tasks; filters combine with AND
        """
        query = self.db.query(TaskDB).filter(
            TaskDB.user_id == user_id,
            TaskDB.status == TaskStatus.BACKLOG.value,
        )
        if due_soon:
            horizon = (today or date.today()) + timedelta(days=BACKLOG_DUE_SOON_DAYS)
            query = query.filter(TaskDB.due_date.isnot(None), TaskDB.due_date <= horizon)
        if no_due_date:
            query = query.filter(TaskDB.due_date.is_(None))
        if high_priority:
            query = query.filter(TaskDB.weight >= HIGH_PRIORITY_WEIGHT)
        if recurring_only:
            query = query.filter(TaskDB.is_recurring.is_(True))

        sort = BacklogSort(sort)
        if sort == BacklogSort.WEIGHT_ASC:
            order = [TaskDB.weight]
        elif sort == BacklogSort.DUE_DATE_ASC:
            order = [TaskDB.due_date.is_(None), TaskDB.due_date]
        elif sort == BacklogSort.CREATED_AT_DESC:
            order = []
        else:
            order = [desc(TaskDB.weight)]
        tasks_db = query.order_by(*order, desc(TaskDB.created_at)).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def update(self, task: Task) -> Task:
        """Update an existing task (user_id must match task.user_id)."""
        task_db = self._get_row(task.user_id, task.id)
        if not task_db:
            raise ValueError(f"Task {task.id} not found")

        task_db.title = task.title
        task_db.notes = task.notes
        task_db.weight = task.weight
        task_db.status = enum_to_value(task.status)
        task_db.scheduled_at = task.scheduled_at
        task_db.due_date = task.due_date
        task_db.completed_at = task.completed_at
        task_db.is_recurring = task.is_recurring
        # Turning recurrence off removes the rule.
        task_db.recurrence = recurrence_to_json(task.recurrence) if task.is_recurring else None
        task_db.parent_id = task.parent_id
        task_db.updated_at = datetime.utcnow()

        try:
            self.db.commit()
            self.db.refresh(task_db)
            logger.debug(f"Updated task {task.id}: {task.title[:50]}")
            return task_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update task {task.id}: {type(e).__name__}: {str(e)}")
            raise

    def complete(self, user_id: str, task_id: str) -> Optional[Task]:
        """Mark a task done now. Returns None if not found."""
        task = self.get(user_id, task_id)
        if task is None:
            return None
        if task.status == TaskStatus.DONE.value:
            return task
        return self.update(
            task.model_copy(update={"status": TaskStatus.DONE, "completed_at": datetime.utcnow()})
        )

    def _set_status(
        self, user_id: str, task_id: str, status: TaskStatus, scheduled_at: Optional[datetime]
    ) -> Optional[Task]:
        task = self.get(user_id, task_id)
        if task is None:
            return None
        return self.update(
            task.model_copy(update={"status": status, "scheduled_at": scheduled_at, "completed_at": None})
        )

    def move_to_backlog(self, user_id: str, task_id: str) -> Optional[Task]:
        """Take a task off the calendar. Returns None if not found."""
        return self._set_status(user_id, task_id, TaskStatus.BACKLOG, None)

    def schedule(self, user_id: str, task_id: str, scheduled_at: datetime) -> Optional[Task]:
        """Put a task on the calendar at scheduled_at. Returns None if not found."""
        return self._set_status(user_id, task_id, TaskStatus.SCHEDULED, scheduled_at)

    def postpone(self, user_id: str, task_id: str, scheduled_at: datetime) -> Optional[Task]:
        """Move a task to a later slot and mark it postponed. Returns None if not found."""
        return self._set_status(user_id, task_id, TaskStatus.POSTPONED, scheduled_at)

    def delete(self, user_id: str, task_id: str) -> bool:
        """Delete a task by ID for a specific user.

        Materialized instances of a deleted template stay; they are standalone tasks.
        """
        task_db = self._get_row(user_id, task_id)
        if not task_db:
            return False

        try:
            self.db.delete(task_db)
            self.db.commit()
            logger.debug(f"Deleted task {task_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete task {task_id}: {type(e).__name__}: {str(e)}")
            raise

    def existing_instance_dates(self, user_id: str, parent_id: str) -> Set[date]:
        """Occurrence dates that already have a materialized instance for a template."""
        rows = self.db.query(TaskDB.scheduled_at).filter(
            TaskDB.user_id == user_id,
            TaskDB.parent_id == parent_id,
            TaskDB.scheduled_at.isnot(None),
        ).all()
        return {row[0].date() for row in rows}
