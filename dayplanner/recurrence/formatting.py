"""Human-readable descriptions of recurrence rules."""

from __future__ import annotations

from datetime import date
from typing import Optional

from dayplanner.models.constants import MONTH_ABBREVIATIONS, WEEKDAY_ABBREVIATIONS
from dayplanner.models.recurrence import RecurrenceRule, RecurrenceType


_UNITS: dict[str, tuple[str, str]] = {
    RecurrenceType.DAILY.value: ("day", "days"),
    RecurrenceType.CUSTOM.value: ("day", "days"),
    RecurrenceType.WEEKLY.value: ("week", "weeks"),
    RecurrenceType.MONTHLY.value: ("month", "months"),
}


def _format_date(d: date) -> str:
    # Fixed English month names; no locale lookup.
    return f"{d.day} {MONTH_ABBREVIATIONS[d.month - 1]} {d.year}"


def _weekday_label(day: int) -> str:
    if 0 <= day < len(WEEKDAY_ABBREVIATIONS):
        return WEEKDAY_ABBREVIATIONS[day]
    return str(day)


def format_recurrence(rule: Optional[RecurrenceRule]) -> str:
    """Describe a rule, e.g. "Every 2 weeks: Mon, Thu until 1 Mar 2025"."""
    if rule is None:
        return "None"

    if not rule.is_known_type:
        text = "Unknown"
    else:
        singular, plural = _UNITS[rule.type]
        text = f"Every {singular}" if rule.interval == 1 else f"Every {rule.interval} {plural}"
        if rule.type == RecurrenceType.WEEKLY and rule.weekdays:
            text += ": " + ", ".join(_weekday_label(d) for d in rule.weekdays)

    if rule.until:
        text += f" until {_format_date(rule.until)}"
    return text
