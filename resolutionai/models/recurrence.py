"""Recurrence models for Resolution AI.

A task becomes a habit by carrying a RecurrenceConfig. Its completion log is a list
of CompletionRecord entries, one per logged cycle.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


def to_local_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a timestamp to the host's local clock, without tzinfo.

    Everything in the engine compares naive local datetimes; aware values coming
    from JSON (e.g. trailing 'Z') are converted once at the model boundary.
    """
    if value is not None and value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


class RecurrenceFrequency(str, Enum):
    MINUTELY = "minutely"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class RecurrenceConfig(BaseModel):
    """Recurrence settings of a habit.

    Notes:
    - end_date before start_date is accepted; the evaluator degrades it to zero
      expected cycles instead of rejecting user data.
    - start_date may be missing on legacy rows; the task creation time is used then.
    """

    frequency: RecurrenceFrequency
    interval: int = Field(1, ge=1, description="Every N units (minutes/hours/days/...)")
    streak: int = Field(0, ge=0, description="Consecutive successful cycles")
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def _normalize_dates(cls, v):
        return to_local_naive(v)


class CompletionRecord(BaseModel):
    """One logged cycle outcome."""

    completed_at: datetime
    was_successful: bool

    @field_validator("completed_at")
    @classmethod
    def _normalize_completed_at(cls, v):
        return to_local_naive(v)
