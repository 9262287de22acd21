"""Recurrence expansion for dayplanner."""

from dayplanner.recurrence.engine import (
    generate_occurrences,
    get_next_occurrence,
    matches_recurrence_pattern,
    materialize_instances,
)
from dayplanner.recurrence.formatting import format_recurrence

__all__ = [
    "generate_occurrences",
    "get_next_occurrence",
    "matches_recurrence_pattern",
    "materialize_instances",
    "format_recurrence",
]
