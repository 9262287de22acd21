"""FastAPI web application for dayplanner."""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from dayplanner.auth.dependencies import get_current_user_id
from dayplanner.database.database import get_db, init_db
from dayplanner.database.repository import TaskRepository
from dayplanner.models.constants import DUE_LOOKAHEAD_DAYS, HORIZON_DAYS
from dayplanner.models.task import BacklogSort, Task, TaskStatus
from dayplanner.models.task_factory import create_task_base
from dayplanner.recurrence.engine import generate_occurrences, get_next_occurrence
from dayplanner.recurrence.formatting import format_recurrence
from dayplanner.recurrence.materialize import materialize_recurring_task
from dayplanner.api.task_models import (
    MaterializeRequest,
    MaterializeResponse,
    NextOccurrenceResponse,
    OccurrencesResponse,
    ScheduleRequest,
    TaskCreateRequest,
    TaskListResponse,
    TaskResponse,
    TaskUpdateRequest,
)

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="dayplanner API",
    description="Personal day/week planner with recurring tasks",
    version="0.1.0",
)


@app.on_event("startup")
def on_startup():
    init_db()


def _get_task_or_404(repo: TaskRepository, user_id: str, task_id: str) -> Task:
    task = repo.get(user_id, task_id)
    if task is None:
        raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
    return task


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}


@app.get("/tasks", response_model=TaskListResponse)
def list_tasks(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """List the caller's tasks, newest first."""
    return TaskListResponse(tasks=TaskRepository(db).get_all(user_id))


@app.post("/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    request: TaskCreateRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Create a task. A recurrence rule is dropped unless is_recurring is set."""
    task = create_task_base(
        user_id=user_id,
        title=request.title,
        notes=request.notes,
        weight=request.weight,
        scheduled_at=request.scheduled_at,
        due_date=request.due_date,
        is_recurring=request.is_recurring,
        recurrence=request.recurrence.to_rule() if request.recurrence else None,
    )
    try:
        created = TaskRepository(db).create(task)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to create task: {str(e)}")
    return TaskResponse(task=created)


@app.get("/tasks/due", response_model=TaskListResponse)
def list_due_tasks(
    days: int = Query(DUE_LOOKAHEAD_DAYS, ge=0, le=HORIZON_DAYS),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Open tasks (not done, not postponed) due from today through today + days."""
    today = date.today()
    tasks = TaskRepository(db).get_due_between(today, today + timedelta(days=days), user_id=user_id)
    return TaskListResponse(tasks=tasks)


@app.get("/tasks/backlog", response_model=TaskListResponse)
def list_backlog(
    sort: BacklogSort = Query(BacklogSort.WEIGHT_DESC),
    due_soon: bool = False,
    no_due_date: bool = False,
    high_priority: bool = False,
    recurring_only: bool = False,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """The caller's backlog, heaviest first unless another sort is requested."""
    tasks = TaskRepository(db).get_backlog(
        user_id,
        sort=sort,
        due_soon=due_soon,
        no_due_date=no_due_date,
        high_priority=high_priority,
        recurring_only=recurring_only,
    )
    return TaskListResponse(tasks=tasks)


@app.get("/tasks/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return TaskResponse(task=_get_task_or_404(TaskRepository(db), user_id, task_id))


@app.put("/tasks/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: str,
    request: TaskUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Update provided fields. Setting is_recurring to false clears the rule.

    A status change to done stamps completed_at; any other status clears it.
    """
    repo = TaskRepository(db)
    task = _get_task_or_404(repo, user_id, task_id)

    changes = request.model_dump(exclude_unset=True)
    for required in ("title", "weight", "status"):
        if changes.get(required, "") is None:
            changes.pop(required)
    if "status" in changes:
        done = changes["status"] == TaskStatus.DONE
        changes["completed_at"] = (task.completed_at or datetime.utcnow()) if done else None
    if "recurrence" in changes:
        changes["recurrence"] = request.recurrence.to_rule() if request.recurrence else None
    is_recurring = changes.get("is_recurring", task.is_recurring)
    if is_recurring is None:
        changes.pop("is_recurring", None)
        is_recurring = task.is_recurring
    if not is_recurring:
        changes["recurrence"] = None

    try:
        updated = repo.update(task.model_copy(update=changes))
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to update task: {str(e)}")
    return TaskResponse(task=updated)


@app.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    if not TaskRepository(db).delete(user_id, task_id):
        raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.post("/tasks/{task_id}/complete", response_model=TaskResponse)
def complete_task(
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    completed = TaskRepository(db).complete(user_id, task_id)
    if completed is None:
        raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
    return TaskResponse(task=completed)


@app.post("/tasks/{task_id}/backlog", response_model=TaskResponse)
def move_task_to_backlog(
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    task = TaskRepository(db).move_to_backlog(user_id, task_id)
    if task is None:
        raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
    return TaskResponse(task=task)


@app.post("/tasks/{task_id}/schedule", response_model=TaskResponse)
def schedule_task(
    task_id: str,
    request: ScheduleRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    task = TaskRepository(db).schedule(user_id, task_id, request.scheduled_at)
    if task is None:
        raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
    return TaskResponse(task=task)


@app.post("/tasks/{task_id}/postpone", response_model=TaskResponse)
def postpone_task(
    task_id: str,
    request: ScheduleRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Move a task to a new slot; postponed tasks get no due reminders."""
    task = TaskRepository(db).postpone(user_id, task_id, request.scheduled_at)
    if task is None:
        raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
    return TaskResponse(task=task)


@app.get("/tasks/{task_id}/occurrences", response_model=OccurrencesResponse)
def list_occurrences(
    task_id: str,
    start: date,
    end: Optional[date] = None,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Occurrence dates of a recurring task in [start, end] (end defaults to the horizon)."""
    task = _get_task_or_404(TaskRepository(db), user_id, task_id)
    if end is None:
        end = start + timedelta(days=HORIZON_DAYS)
    if end < start:
        raise HTTPException(status_code=400, detail="end must not be before start")
    return OccurrencesResponse(
        task_id=task.id,
        description=format_recurrence(task.recurrence),
        occurrences=generate_occurrences(task, start, end),
    )


@app.get("/tasks/{task_id}/next-occurrence", response_model=NextOccurrenceResponse)
def next_occurrence(
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    task = _get_task_or_404(TaskRepository(db), user_id, task_id)
    return NextOccurrenceResponse(
        task_id=task.id,
        description=format_recurrence(task.recurrence),
        next_occurrence=get_next_occurrence(task),
    )


@app.post("/tasks/{task_id}/materialize", response_model=MaterializeResponse)
def materialize_task(
    task_id: str,
    request: MaterializeRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Store standalone instances for occurrences in [start, end] that do not exist yet."""
    task = _get_task_or_404(TaskRepository(db), user_id, task_id)
    if not task.is_recurring:
        raise HTTPException(status_code=400, detail="Task is not recurring")
    if request.end < request.start:
        raise HTTPException(status_code=400, detail="end must not be before start")
    try:
        created = materialize_recurring_task(
            db,
            user_id=user_id,
            task_id=task.id,
            window_start=request.start,
            window_end=request.end,
        )
    except Exception as e:
        logger.error(f"Failed to materialize task {task_id}: {type(e).__name__}: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to materialize task: {str(e)}")
    return MaterializeResponse(created_count=len(created), tasks=created)
