"""SQLAlchemy database models for Resolution AI."""

from datetime import datetime
from typing import Union, TypeVar, Type
from sqlalchemy import Column, String, Integer, Float, Boolean, DateTime, JSON

from resolutionai.database.database import Base
from resolutionai.models.recurrence import CompletionRecord, RecurrenceConfig
from resolutionai.models.task import Task, TaskStatus, Priority

T = TypeVar('T')


def enum_to_value(enum_obj: Union[str, T]) -> str:
    """Convert enum to string value (handles both enum and string).

    Args:
        enum_obj: Enum instance or string value

    Returns:
        String value of the enum, or the string itself if already a string
    """
    if hasattr(enum_obj, 'value'):
        return enum_obj.value
    return str(enum_obj)


def value_to_enum(value: str, enum_class: Type[T], default: T) -> T:
    """Convert string to enum with fallback to default.

    Args:
        value: String value to convert
        enum_class: Enum class to convert to
        default: Default enum value if conversion fails

    Returns:
        Enum instance, or default if conversion fails
    """
    if not value:
        return default
    try:
        return enum_class(value.lower())
    except (ValueError, AttributeError):
        return default


class TaskDB(Base):
    """Database model for Task.

    The tree is stored denormalized (parent id + child id list) exactly as in the
    in-memory collection; `position` keeps the collection order across save/load.
    """

    __tablename__ = "tasks"

    # Primary key
    id = Column(String, primary_key=True)

    # Owner association (single logical user per collection)
    owner_id = Column(String, nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    # Basic fields
    title = Column(String, nullable=False)
    description = Column(String, nullable=False, default="")
    status = Column(String, nullable=False, default=TaskStatus.TODO.value)
    priority = Column(String, nullable=False, default=Priority.MEDIUM.value)
    completion_percentage = Column(Float, nullable=False, default=0)

    # Timestamps
    due_date = Column(DateTime, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now)

    # Hierarchy
    parent_id = Column(String, nullable=True, index=True)
    sub_task_ids = Column(JSON, nullable=False, default=list)

    # Recurrence (stored as JSON documents)
    recurrence = Column(JSON, nullable=True)
    completion_history = Column(JSON, nullable=True)

    # Generation provenance
    is_ai_generated = Column(Boolean, nullable=False, default=False)
    original_ai_data = Column(JSON, nullable=True)
    # `metadata` is reserved on declarative classes
    metadata_json = Column("metadata", JSON, nullable=False, default=dict)
    overdue_explanation = Column(String, nullable=True)

    def to_pydantic(self) -> Task:
        """Convert database model to Pydantic model."""
        recurrence = RecurrenceConfig.model_validate(self.recurrence) if self.recurrence else None
        history = None
        if self.completion_history is not None:
            history = [CompletionRecord.model_validate(r) for r in self.completion_history]

        return Task(
            id=self.id,
            owner_id=self.owner_id,
            title=self.title,
            description=self.description or "",
            status=value_to_enum(self.status, TaskStatus, TaskStatus.TODO),
            priority=value_to_enum(self.priority, Priority, Priority.MEDIUM),
            completion_percentage=self.completion_percentage or 0,
            due_date=self.due_date,
            created_at=self.created_at,
            updated_at=self.updated_at,
            parent_id=self.parent_id,
            sub_task_ids=self.sub_task_ids or [],
            recurrence=recurrence,
            completion_history=history,
            is_ai_generated=self.is_ai_generated,
            original_ai_data=self.original_ai_data,
            metadata=self.metadata_json or {},
            overdue_explanation=self.overdue_explanation,
        )

    @classmethod
    def from_pydantic(cls, task: Task, position: int = 0):
        """Create database model from Pydantic model."""
        history = None
        if task.completion_history is not None:
            history = [r.model_dump(mode="json") for r in task.completion_history]

        return cls(
            id=task.id,
            owner_id=task.owner_id,
            position=position,
            title=task.title,
            description=task.description,
            # Pydantic with use_enum_values=True returns strings, model_copy may keep enums
            status=enum_to_value(task.status),
            priority=enum_to_value(task.priority),
            completion_percentage=task.completion_percentage,
            due_date=task.due_date,
            created_at=task.created_at,
            updated_at=task.updated_at,
            parent_id=task.parent_id,
            sub_task_ids=list(task.sub_task_ids),
            recurrence=task.recurrence.model_dump(mode="json") if task.recurrence else None,
            completion_history=history,
            is_ai_generated=task.is_ai_generated,
            original_ai_data=task.original_ai_data,
            metadata_json=task.metadata,
            overdue_explanation=task.overdue_explanation,
        )
