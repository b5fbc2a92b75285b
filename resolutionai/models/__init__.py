"""Data models for Resolution AI."""

from resolutionai.models.task import Task, TaskStatus, Priority, TaskKind, match_kind
from resolutionai.models.recurrence import RecurrenceConfig, RecurrenceFrequency, CompletionRecord
from resolutionai.models.consistency import ConsistencyMetrics, ConsistencySummary
from resolutionai.models.proposal import TaskProposal, RecurrenceProposal

__all__ = [
    "Task",
    "TaskStatus",
    "Priority",
    "TaskKind",
    "match_kind",
    "RecurrenceConfig",
    "RecurrenceFrequency",
    "CompletionRecord",
    "ConsistencyMetrics",
    "ConsistencySummary",
    "TaskProposal",
    "RecurrenceProposal",
]
