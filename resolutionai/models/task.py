"""Task data model for Resolution AI."""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, TypeVar
from enum import Enum
from pydantic import BaseModel, Field, field_validator

from resolutionai.models.recurrence import CompletionRecord, RecurrenceConfig, to_local_naive

R = TypeVar("R")


class TaskStatus(str, Enum):
    """Task status enumeration."""
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    DECLINED = "declined"
    WAITING_APPROVAL = "waiting-approval"


class Priority(str, Enum):
    """Task priority enumeration."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskKind(str, Enum):
    """Behavioral variant of a task (derived from recurrence presence)."""
    PLAIN = "plain"
    RECURRING = "recurring"


class Task(BaseModel):
    """Canonical Task model.

    A task is a node in a forest: `sub_task_ids` is the authoritative child list,
    `parent_id` is only a back-reference.
    """

    id: str = Field(..., description="Unique task identifier (UUID v4)")
    owner_id: str = Field(..., description="User ID who owns this task")
    title: str = Field(..., description="Task title")
    description: str = Field("", description="Task description")
    status: TaskStatus = Field(TaskStatus.TODO, description="Task status")
    priority: Priority = Field(Priority.MEDIUM, description="Task priority")
    due_date: datetime = Field(..., description="Current due date (next actionable cycle for habits)")
    created_at: datetime = Field(..., description="Task creation timestamp")
    updated_at: datetime = Field(..., description="Task last update timestamp")

    completion_percentage: float = Field(0, ge=0, le=100, description="Stored progress 0-100")

    parent_id: Optional[str] = Field(None, description="Owning task id (weak back-reference)")
    sub_task_ids: List[str] = Field(default_factory=list, description="Ordered child task ids")

    # Recurrence (presence of `recurrence` makes the task a habit)
    recurrence: Optional[RecurrenceConfig] = Field(None, description="Recurrence settings")
    completion_history: Optional[List[CompletionRecord]] = Field(
        None, description="Logged cycle outcomes (present once the task has been recurring)"
    )

    # Generation provenance
    is_ai_generated: bool = Field(False, description="Whether the task text came from the generator")
    original_ai_data: Optional[Dict[str, str]] = Field(
        None, description="Title/description as originally generated"
    )
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Free-form task extras")
    overdue_explanation: Optional[str] = Field(None, description="Reason given when the task was reassessed")

    @field_validator("due_date", "created_at", "updated_at")
    @classmethod
    def _normalize_timestamps(cls, v):
        return to_local_naive(v)

    @property
    def kind(self) -> TaskKind:
        return TaskKind.PLAIN if self.recurrence is None else TaskKind.RECURRING

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


def match_kind(
    task: Task,
    *,
    plain: Callable[[Task], R],
    recurring: Callable[[Task, RecurrenceConfig], R],
) -> R:
    """Dispatch on the task variant; both branches must be supplied."""
    if task.kind == TaskKind.RECURRING:
        return recurring(task, task.recurrence)
    return plain(task)
