"""Date arithmetic for recurring tasks: next due date and elapsed cycle counts."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Union

from dateutil.relativedelta import relativedelta

from resolutionai.models.constants import CYCLE_SECONDS
from resolutionai.models.recurrence import RecurrenceFrequency


_INCREMENT_FIELD: dict[RecurrenceFrequency, str] = {
    RecurrenceFrequency.MINUTELY: "minutes",
    RecurrenceFrequency.HOURLY: "hours",
    RecurrenceFrequency.DAILY: "days",
    RecurrenceFrequency.WEEKLY: "weeks",
    RecurrenceFrequency.MONTHLY: "months",
    RecurrenceFrequency.YEARLY: "years",
}


def _step(interval: int) -> int:
    # Missing/invalid intervals behave like "every 1 unit".
    return max(1, int(interval or 1))


def advance_due_date(
    current: datetime,
    frequency: Union[RecurrenceFrequency, str],
    interval: int = 1,
) -> datetime:
    """Return `current` moved forward by `interval` units of `frequency`.

    Month and year steps follow the calendar (Jan 31 + 1 month = end of February).
    """
    field = _INCREMENT_FIELD[RecurrenceFrequency(frequency)]
    return current + relativedelta(**{field: _step(interval)})


def count_elapsed_cycles(
    start: datetime,
    end: datetime,
    frequency: Union[RecurrenceFrequency, str],
    interval: int = 1,
) -> int:
    """Whole cycles between `start` and `end`, using fixed-length unit buckets.

    Never negative: an `end` before `start` yields 0.
    """
    bucket = CYCLE_SECONDS[RecurrenceFrequency(frequency)]
    units = max(0.0, (end - start).total_seconds() / bucket)
    return int(math.floor(units / _step(interval)))
