"""Tests for TaskRepository CRUD operations."""

import pytest
from datetime import date, datetime, timedelta
import uuid

from dayplanner.database.models import TaskDB
from dayplanner.models.recurrence import RecurrenceRule
from dayplanner.models.task import BacklogSort, Task, TaskDraft, TaskStatus


class TestTaskRepository:
    """Test TaskRepository CRUD operations."""

    def test_create_task(self, task_repository, sample_task, test_user_id):
        created = task_repository.create(sample_task)

        assert created.id == sample_task.id
        assert created.title == sample_task.title
        assert created.status == TaskStatus.BACKLOG
        assert created.user_id == test_user_id

    def test_get_task_by_id(self, task_repository, sample_task, test_user_id):
        created = task_repository.create(sample_task)
        retrieved = task_repository.get(test_user_id, created.id)

        assert retrieved is not None
        assert retrieved.id == created.id
        assert retrieved.title == created.title

    def test_get_nonexistent_task(self, task_repository, test_user_id):
        assert task_repository.get(test_user_id, "nonexistent-id") is None

    def test_get_is_scoped_to_owner(self, task_repository, sample_task):
        task_repository.create(sample_task)

        assert task_repository.get("another-user", sample_task.id) is None

    def test_get_all_sorted_by_creation_date(self, task_repository, sample_task_base, test_user_id):
        """get_all() returns tasks newest first."""
        now = datetime.utcnow()
        task1 = Task(**{**sample_task_base, "id": str(uuid.uuid4()), "created_at": now, "title": "Task 1"})
        task2 = Task(**{**sample_task_base, "id": str(uuid.uuid4()), "created_at": now - timedelta(minutes=1), "title": "Task 2"})
        task3 = Task(**{**sample_task_base, "id": str(uuid.uuid4()), "created_at": now - timedelta(minutes=2), "title": "Task 3"})

        task_repository.create(task3)
        task_repository.create(task2)
        task_repository.create(task1)

        all_tasks = task_repository.get_all(test_user_id)
        assert [t.title for t in all_tasks] == ["Task 1", "Task 2", "Task 3"]

    def test_recurrence_round_trip(self, task_repository, sample_task_base, test_user_id):
        rule = RecurrenceRule(type="weekly", interval=2, days=[1, 4], until=date(2025, 6, 30))
        task = Task(**{
            **sample_task_base,
            "is_recurring": True,
            "recurrence": rule,
            "scheduled_at": datetime(2025, 1, 6, 18, 0),
        })

        task_repository.create(task)
        retrieved = task_repository.get(test_user_id, task.id)

        assert retrieved.recurrence == rule
        assert retrieved.scheduled_at == datetime(2025, 1, 6, 18, 0)

    def test_recurrence_stored_in_persisted_shape(self, db_session, task_repository, sample_task_base):
        rule = RecurrenceRule(type="weekly", interval=1, days=[1, 3], until=date(2025, 3, 1))
        task = Task(**{**sample_task_base, "is_recurring": True, "recurrence": rule})

        task_repository.create(task)
        row = db_session.query(TaskDB).filter(TaskDB.id == task.id).first()

        assert row.recurrence == {"type": "weekly", "interval": 1, "days": [1, 3], "until": "2025-03-01"}

    def test_stale_rule_not_stored_for_non_recurring(self, db_session, task_repository, sample_task_base):
        task = Task(**{**sample_task_base, "recurrence": RecurrenceRule(type="daily", interval=1)})

        task_repository.create(task)
        row = db_session.query(TaskDB).filter(TaskDB.id == task.id).first()

        assert row.recurrence is None

    def test_update_task(self, task_repository, sample_task, test_user_id):
        created = task_repository.create(sample_task)

        updated = task_repository.update(created.model_copy(update={"title": "Renamed", "weight": 5}))

        assert updated.title == "Renamed"
        assert updated.weight == 5
        assert task_repository.get(test_user_id, created.id).title == "Renamed"

    def test_turning_recurrence_off_clears_rule(self, task_repository, sample_task_base, test_user_id):
        task = Task(**{
            **sample_task_base,
            "is_recurring": True,
            "recurrence": RecurrenceRule(type="daily", interval=1),
        })
        created = task_repository.create(task)

        updated = task_repository.update(created.model_copy(update={"is_recurring": False}))

        assert updated.is_recurring is False
        assert updated.recurrence is None

    def test_update_nonexistent_task_raises(self, task_repository, sample_task):
        with pytest.raises(ValueError):
            task_repository.update(sample_task)

    def test_complete_task(self, task_repository, sample_task, test_user_id):
        created = task_repository.create(sample_task)

        completed = task_repository.complete(test_user_id, created.id)

        assert completed.status == TaskStatus.DONE
        assert completed.completed_at is not None

    def test_complete_nonexistent_task(self, task_repository, test_user_id):
        assert task_repository.complete(test_user_id, "nonexistent-id") is None

    def test_delete_task(self, task_repository, sample_task, test_user_id):
        created = task_repository.create(sample_task)

        assert task_repository.delete(test_user_id, created.id) is True
        assert task_repository.get(test_user_id, created.id) is None
        assert task_repository.delete(test_user_id, created.id) is False

    def test_delete_template_keeps_instances(self, task_repository, sample_task_base, test_user_id):
        template = task_repository.create(Task(**{
            **sample_task_base,
            "is_recurring": True,
            "recurrence": RecurrenceRule(type="daily", interval=1),
            "scheduled_at": datetime(2025, 1, 1, 9, 0),
        }))
        task_repository.create_many([
            TaskDraft(user_id=test_user_id, title="Instance", parent_id=template.id,
                      scheduled_at=datetime(2025, 1, 2, 9, 0)),
        ])

        task_repository.delete(test_user_id, template.id)

        assert len(task_repository.get_instances(test_user_id, template.id)) == 1

    def test_create_many_assigns_ids_and_timestamps(self, task_repository, test_user_id):
        drafts = [
            TaskDraft(user_id=test_user_id, title=f"Draft {i}", scheduled_at=datetime(2025, 1, i + 1, 8, 0))
            for i in range(3)
        ]

        created = task_repository.create_many(drafts)

        assert len(created) == 3
        assert len({t.id for t in created}) == 3
        assert all(t.created_at is not None for t in created)
        assert task_repository.create_many([]) == []

    def test_get_due_between(self, task_repository, sample_task_base, test_user_id):
        today = date(2025, 1, 10)
        due_today = Task(**{**sample_task_base, "id": str(uuid.uuid4()), "title": "Today", "due_date": today})
        due_tomorrow = Task(**{**sample_task_base, "id": str(uuid.uuid4()), "title": "Tomorrow",
                               "due_date": today + timedelta(days=1)})
        due_later = Task(**{**sample_task_base, "id": str(uuid.uuid4()), "title": "Later",
                            "due_date": today + timedelta(days=5)})
        done = Task(**{**sample_task_base, "id": str(uuid.uuid4()), "title": "Done", "due_date": today,
                       "status": TaskStatus.DONE})
        postponed = Task(**{**sample_task_base, "id": str(uuid.uuid4()), "title": "Postponed", "due_date": today,
                            "status": TaskStatus.POSTPONED})
        other_user = Task(**{**sample_task_base, "id": str(uuid.uuid4()), "title": "Other", "due_date": today,
                             "user_id": "other-user"})
        for t in (due_today, due_tomorrow, due_later, done, postponed, other_user):
            task_repository.create(t)

        mine = task_repository.get_due_between(today, today + timedelta(days=1), user_id=test_user_id)
        everyone = task_repository.get_due_between(today, today + timedelta(days=1))

        assert [t.title for t in mine] == ["Today", "Tomorrow"]
        assert {t.title for t in everyone} == {"Today", "Tomorrow", "Other"}

    def test_legacy_status_values_load(self, db_session, task_repository, sample_task_base, test_user_id):
        task_repository.create(Task(**{**sample_task_base, "id": "old-done"}))
        task_repository.create(Task(**{**sample_task_base, "id": "old-open",
                                       "scheduled_at": datetime(2025, 1, 3, 9, 0)}))
        db_session.query(TaskDB).filter(TaskDB.id == "old-done").update({"status": "completed"})
        db_session.query(TaskDB).filter(TaskDB.id == "old-open").update({"status": "pending"})
        db_session.commit()

        assert task_repository.get(test_user_id, "old-done").status == TaskStatus.DONE
        assert task_repository.get(test_user_id, "old-open").status == TaskStatus.SCHEDULED


class TestStatusTransitions:
    """Backlog, schedule and postpone moves."""

    def test_move_to_backlog_clears_schedule(self, task_repository, sample_task_base, test_user_id):
        task = task_repository.create(Task(**{**sample_task_base, "status": TaskStatus.SCHEDULED,
                                              "scheduled_at": datetime(2025, 1, 3, 9, 0)}))

        moved = task_repository.move_to_backlog(test_user_id, task.id)

        assert moved.status == TaskStatus.BACKLOG
        assert moved.scheduled_at is None

    def test_schedule_sets_slot(self, task_repository, sample_task, test_user_id):
        task = task_repository.create(sample_task)

        scheduled = task_repository.schedule(test_user_id, task.id, datetime(2025, 1, 8, 9, 0))

        assert scheduled.status == TaskStatus.SCHEDULED
        assert scheduled.scheduled_at == datetime(2025, 1, 8, 9, 0)

    def test_postpone_marks_postponed(self, task_repository, sample_task, test_user_id):
        task = task_repository.create(sample_task)

        postponed = task_repository.postpone(test_user_id, task.id, datetime(2025, 2, 1, 10, 0))

        assert postponed.status == TaskStatus.POSTPONED
        assert postponed.scheduled_at == datetime(2025, 2, 1, 10, 0)

    def test_reopening_done_task_clears_completion(self, task_repository, sample_task, test_user_id):
        task = task_repository.create(sample_task)
        task_repository.complete(test_user_id, task.id)

        reopened = task_repository.move_to_backlog(test_user_id, task.id)

        assert reopened.status == TaskStatus.BACKLOG
        assert reopened.completed_at is None

    def test_missing_task_returns_none(self, task_repository, test_user_id):
        assert task_repository.move_to_backlog(test_user_id, "nonexistent-id") is None
        assert task_repository.schedule(test_user_id, "nonexistent-id", datetime(2025, 1, 1)) is None
        assert task_repository.postpone(test_user_id, "nonexistent-id", datetime(2025, 1, 1)) is None


class TestBacklogQuery:
    """get_backlog() sorting and filters."""

    @pytest.fixture
    def backlog(self, task_repository, sample_task_base):
        now = datetime(2025, 1, 10, 12, 0)
        rows = [
            # title, weight, due_date, is_recurring, status, created offset (minutes)
            ("Light", 1, None, False, TaskStatus.BACKLOG, 0),
            ("Heavy", 5, date(2025, 1, 20), False, TaskStatus.BACKLOG, 1),
            ("Medium due soon", 3, date(2025, 1, 12), False, TaskStatus.BACKLOG, 2),
            ("Overdue", 4, date(2025, 1, 5), False, TaskStatus.BACKLOG, 3),
            ("Recurring", 2, None, True, TaskStatus.BACKLOG, 4),
            ("On calendar", 5, date(2025, 1, 11), False, TaskStatus.SCHEDULED, 5),
        ]
        for title, weight, due, recurring, status, offset in rows:
            task_repository.create(Task(**{
                **sample_task_base,
                "id": str(uuid.uuid4()),
                "title": title,
                "weight": weight,
                "due_date": due,
                "status": status,
                "is_recurring": recurring,
                "recurrence": RecurrenceRule(type="daily", interval=1) if recurring else None,
                "created_at": now - timedelta(minutes=offset),
            }))

    def _titles(self, tasks):
        return [t.title for t in tasks]

    def test_default_sort_heaviest_first(self, task_repository, backlog, test_user_id):
        tasks = task_repository.get_backlog(test_user_id)

        assert self._titles(tasks) == ["Heavy", "Overdue", "Medium due soon", "Recurring", "Light"]

    def test_weight_ascending(self, task_repository, backlog, test_user_id):
        tasks = task_repository.get_backlog(test_user_id, sort=BacklogSort.WEIGHT_ASC)

        assert self._titles(tasks) == ["Light", "Recurring", "Medium due soon", "Overdue", "Heavy"]

    def test_due_date_ascending_puts_undated_last(self, task_repository, backlog, test_user_id):
        tasks = task_repository.get_backlog(test_user_id, sort=BacklogSort.DUE_DATE_ASC)

        assert self._titles(tasks) == ["Overdue", "Medium due soon", "Heavy", "Light", "Recurring"]

    def test_created_at_descending(self, task_repository, backlog, test_user_id):
        tasks = task_repository.get_backlog(test_user_id, sort=BacklogSort.CREATED_AT_DESC)

        assert self._titles(tasks) == ["Light", "Heavy", "Medium due soon", "Overdue", "Recurring"]

    def test_due_soon_includes_overdue(self, task_repository, backlog, test_user_id):
        tasks = task_repository.get_backlog(test_user_id, due_soon=True, today=date(2025, 1, 10))

        assert self._titles(tasks) == ["Overdue", "Medium due soon"]

    def test_no_due_date(self, task_repository, backlog, test_user_id):
        tasks = task_repository.get_backlog(test_user_id, no_due_date=True)

        assert self._titles(tasks) == ["Recurring", "Light"]

    def test_high_priority(self, task_repository, backlog, test_user_id):
        tasks = task_repository.get_backlog(test_user_id, high_priority=True)

        assert self._titles(tasks) == ["Heavy", "Overdue"]

    def test_recurring_only(self, task_repository, backlog, test_user_id):
        tasks = task_repository.get_backlog(test_user_id, recurring_only=True)

        assert self._titles(tasks) == ["Recurring"]

    def test_filters_combine(self, task_repository, backlog, test_user_id):
        tasks = task_repository.get_backlog(
            test_user_id, due_soon=True, high_priority=True, today=date(2025, 1, 10)
        )

        assert self._titles(tasks) == ["Overdue"]

    def test_other_users_backlog_hidden(self, task_repository, backlog):
        assert task_repository.get_backlog("another-user") == []
