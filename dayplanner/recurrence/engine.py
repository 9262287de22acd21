"""Expand recurring tasks into concrete calendar occurrences.

Everything in this module is a pure function over its arguments: no I/O and no
module state, so it is safe to call from any thread. Callers that persist the
results (see recurrence.materialize) own the writes.

Expansion is bounded twice: at most MAX_ITERATIONS cadence steps and never past
HORIZON_DAYS after the window start. Malformed rules (interval <= 0, unknown type)
degrade to a short or empty result instead of raising.
"""

from __future__ import annotations

import calendar
import logging
from datetime import date, datetime, time as dtime, timedelta
from typing import Iterator, List, Optional, Sequence, Union

from dayplanner.models.constants import HORIZON_DAYS, MAX_ITERATIONS
from dayplanner.models.recurrence import RecurrenceRule, RecurrenceType
from dayplanner.models.task import Task, TaskDraft, TaskStatus

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def _rule_weekday(d: date) -> int:
    # Python weekday: Monday=0 ... Sunday=6; rules use Sunday=0 ... Saturday=6
    return (d.weekday() + 1) % 7


def _week_start(d: date) -> date:
    """Sunday that opens the week containing d."""
    return d - timedelta(days=_rule_weekday(d))


def _add_months(d: date, months: int) -> date:
    """Shift by calendar months, clamping the day to the length of the target month."""
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(d.day, last_day))


def _horizon_end(start: date) -> date:
    if date.max - start < timedelta(days=HORIZON_DAYS):
        return date.max
    return start + timedelta(days=HORIZON_DAYS)


def _every_n_days(anchor: date, start: date, step_days: int) -> Iterator[date]:
    """anchor, anchor + step, ... beginning at the first step on or after start."""
    cur = anchor
    if step_days > 0 and start > anchor:
        steps = -(-(start - anchor).days // step_days)
        cur = anchor + timedelta(days=steps * step_days)
    while True:
        yield cur
        cur = cur + timedelta(days=step_days)


def _every_n_weeks(anchor: date, start: date, interval: int) -> Iterator[date]:
    """Every day of every interval-th week, weeks counted from the anchor's week.

    Weeks are Sunday-started so that week 0 is the anchor's week regardless of
    where the requested window begins.
    """
    week = _week_start(anchor)
    if interval < 1:
        # No forward step: only the anchor's week can ever be active.
        for offset in range(7):
            yield week + timedelta(days=offset)
        return
    if start > week:
        weeks = (_week_start(start) - week).days // 7
        week = week + timedelta(weeks=(weeks // interval) * interval)
    while True:
        for offset in range(7):
            yield week + timedelta(days=offset)
        week = week + timedelta(weeks=interval)


def _every_n_months(anchor: date, start: date, interval: int) -> Iterator[date]:
    """anchor + n * interval months; always computed from the anchor so clamping never drifts."""
    n = 0
    if interval > 0 and start > anchor:
        months = (start.year - anchor.year) * 12 + (start.month - anchor.month)
        n = max(0, months // interval)
    while True:
        yield _add_months(anchor, n * interval)
        n += 1


def _cadence(rule: RecurrenceRule, anchor: date, start: date) -> Optional[Iterator[date]]:
    if not rule.is_known_type:
        return None
    interval = rule.interval
    if rule.type in (RecurrenceType.DAILY, RecurrenceType.CUSTOM):
        return _every_n_days(anchor, start, interval)
    if rule.type == RecurrenceType.WEEKLY:
        if rule.weekdays:
            return _every_n_weeks(anchor, start, interval)
        return _every_n_days(anchor, start, 7 * interval)
    # monthly
    return _every_n_months(anchor, start, interval)


def generate_occurrences(task: Task, window_start: DateLike, window_end: DateLike) -> List[date]:
    """Concrete occurrence dates of a recurring task inside [window_start, window_end].

    Returns an empty list when the task is not recurring, has no rule, or has no
    scheduled_at anchor. The result is in non-decreasing order, never earlier than
    the anchor, never later than the rule's `until`, and never more than
    HORIZON_DAYS past window_start.
    """
    rule = task.recurrence
    if not task.is_recurring or rule is None or task.scheduled_at is None:
        return []

    start = _as_date(window_start)
    end = _as_date(window_end)
    anchor = _as_date(task.scheduled_at)
    horizon = _horizon_end(start)
    effective_end = min(rule.until or end, horizon)

    candidates = _cadence(rule, anchor, max(anchor, start))
    if candidates is None:
        logger.warning(f"Unknown recurrence type {rule.type!r} on task {getattr(task, 'id', None)}")
        return []

    occurrences: List[date] = []
    iterations = 0
    try:
        for day in candidates:
            if day > effective_end or iterations >= MAX_ITERATIONS:
                break
            iterations += 1
            if day < anchor or day < start or day > end:
                continue
            if matches_recurrence_pattern(day, rule):
                occurrences.append(day)
    except (OverflowError, ValueError) as e:
        # Stepping outside the representable date range (huge or negative interval).
        logger.warning(f"Recurrence expansion stopped early: {type(e).__name__}: {str(e)}")

    if iterations >= MAX_ITERATIONS:
        logger.warning(
            f"Recurrence expansion hit the {MAX_ITERATIONS}-iteration cap "
            f"(type={rule.type!r}, interval={rule.interval})"
        )
    return occurrences


def get_next_occurrence(task: Task, today: Optional[date] = None) -> Optional[date]:
    """First occurrence from today (inclusive) within the horizon, or None."""
    if not task.is_recurring or task.recurrence is None:
        return None
    start = today or date.today()
    occurrences = generate_occurrences(task, start, _horizon_end(start))
    return occurrences[0] if occurrences else None


def matches_recurrence_pattern(day: DateLike, rule: RecurrenceRule) -> bool:
    """Weekday check only.

    daily, custom and monthly accept any date: the caller is expected to have put
    the date on the cadence already. This does not verify the step from the anchor.
    """
    if rule.type in (RecurrenceType.DAILY, RecurrenceType.CUSTOM, RecurrenceType.MONTHLY):
        return True
    if rule.type == RecurrenceType.WEEKLY:
        if rule.weekdays:
            return _rule_weekday(_as_date(day)) in rule.weekdays
        return True
    return False


def materialize_instances(task: Task, occurrence_dates: Sequence[DateLike]) -> List[TaskDraft]:
    """Standalone, non-recurring drafts of a template task, one per occurrence.

    Identity and timestamps are left to the store. Each instance is scheduled and
    keeps the template's time of day (and tzinfo) on its occurrence date.
    """
    base = task.model_dump(exclude={"id", "created_at", "updated_at"})
    time_of_day = task.scheduled_at.timetz() if task.scheduled_at else dtime(0, 0)
    parent_id = getattr(task, "id", None)

    drafts: List[TaskDraft] = []
    for occurrence in occurrence_dates:
        drafts.append(
            TaskDraft(
                **{
                    **base,
                    "parent_id": parent_id,
                    "status": TaskStatus.SCHEDULED,
                    "completed_at": None,
                    "scheduled_at": datetime.combine(_as_date(occurrence), time_of_day),
                    "is_recurring": False,
                    "recurrence": None,
                }
            )
        )
    return drafts
