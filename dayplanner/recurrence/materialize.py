"""Materialize a recurring task template into stored standalone instances."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import List, Union

from sqlalchemy.orm import Session

from dayplanner.database.repository import TaskRepository
from dayplanner.models.task import Task
from dayplanner.recurrence.engine import generate_occurrences, materialize_instances

logger = logging.getLogger(__name__)


def materialize_recurring_task(
    db: Session,
    *,
    user_id: str,
    task_id: str,
    window_start: Union[date, datetime],
    window_end: Union[date, datetime],
) -> List[Task]:
    """Create missing instances of a recurring task for occurrences in [window_start, window_end].

    Occurrence dates that already have an instance (same parent_id) are skipped, so
    running this twice over the same window creates nothing the second time.
    Returns the created instances.
    """
    task_repo = TaskRepository(db)
    template = task_repo.get(user_id, task_id)
    if template is None or not template.is_recurring:
        return []

    occurrences = generate_occurrences(template, window_start, window_end)
    existing = task_repo.existing_instance_dates(user_id, template.id)
    missing = [d for d in occurrences if d not in existing]
    if not missing:
        return []

    created = task_repo.create_many(materialize_instances(template, missing))
    logger.info(f"Materialized {len(created)} instances of task {template.id}")
    return created
