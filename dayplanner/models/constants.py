"""Constants for dayplanner.

This module centralizes the magic numbers and default values used throughout the application.
"""

# Task defaults
DEFAULT_WEIGHT = 1
MIN_WEIGHT = 1
MAX_WEIGHT = 5

# Recurrence expansion bounds
MAX_ITERATIONS = 1000
HORIZON_DAYS = 90

# Display
WEEKDAY_ABBREVIATIONS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")  # index 0 = Sunday
MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

# Reminders (due-task dispatcher looks at today and tomorrow)
DUE_LOOKAHEAD_DAYS = 1

# Backlog filters
BACKLOG_DUE_SOON_DAYS = 7
HIGH_PRIORITY_WEIGHT = 4
