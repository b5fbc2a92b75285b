"""Shapes returned by the task generator.

Proposals are validated here before any of them is turned into a Task, so a
malformed generator response never reaches the task collection.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from resolutionai.models.recurrence import RecurrenceFrequency, to_local_naive
from resolutionai.models.task import Priority


class RecurrenceProposal(BaseModel):
    frequency: RecurrenceFrequency
    interval: int = Field(1, ge=1)


class TaskProposal(BaseModel):
    """A task suggested by the generator."""

    title: str = Field(..., min_length=1)
    description: str = ""
    priority: Priority = Priority.MEDIUM
    due_date: datetime = Field(..., validation_alias=AliasChoices("due_date", "dueDate"))
    recurrence: Optional[RecurrenceProposal] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("priority", mode="before")
    @classmethod
    def _lowercase_priority(cls, v):
        return v.lower() if isinstance(v, str) else v

    @field_validator("due_date")
    @classmethod
    def _normalize_due_date(cls, v):
        return to_local_naive(v)

    @field_validator("metadata", mode="before")
    @classmethod
    def _default_metadata(cls, v):
        return {} if v is None else v
