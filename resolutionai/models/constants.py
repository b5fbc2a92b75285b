"""Constants for Resolution AI.

This module centralizes all magic numbers and default values used throughout the application.
"""

from resolutionai.models.recurrence import RecurrenceFrequency


# Progress bounds
EMPTY_PERCENTAGE = 0
FULL_PERCENTAGE = 100

# Goal creation
GOAL_TITLE_MAX_LENGTH = 50
GOAL_TITLE_ELLIPSIS = "..."
GOAL_DUE_DAYS = 7

# Approximate fixed-length buckets used when counting elapsed cycles.
# Month/year use average lengths; calendar-exact counting is not attempted.
SECONDS_PER_DAY = 86400
CYCLE_SECONDS = {
    RecurrenceFrequency.MINUTELY: 60,
    RecurrenceFrequency.HOURLY: 3600,
    RecurrenceFrequency.DAILY: SECONDS_PER_DAY,
    RecurrenceFrequency.WEEKLY: 7 * SECONDS_PER_DAY,
    RecurrenceFrequency.MONTHLY: 30.4375 * SECONDS_PER_DAY,
    RecurrenceFrequency.YEARLY: 365.25 * SECONDS_PER_DAY,
}

# Error notices
DEFAULT_NOTICE_TTL_SECONDS = 15

# Owner used when no authentication layer is present
DEFAULT_OWNER_ID = "local-user"
