"""Task creation factory for Resolution AI.

This module centralizes task creation logic to eliminate duplication
and ensure consistent default values across the application.
"""

import uuid
from datetime import datetime, timedelta
from typing import Optional, Dict, Any, List

from resolutionai.models.task import Task, TaskStatus, Priority
from resolutionai.models.recurrence import RecurrenceConfig
from resolutionai.models.proposal import TaskProposal
from resolutionai.models.constants import (
    EMPTY_PERCENTAGE,
    GOAL_DUE_DAYS,
    GOAL_TITLE_ELLIPSIS,
    GOAL_TITLE_MAX_LENGTH,
)


def new_task_id() -> str:
    return str(uuid.uuid4())


def goal_title(goal_text: str) -> str:
    """Shorten a goal statement into a task title.

    Args:
        goal_text: Free-text goal as entered by the user

    Returns:
        The goal itself if short enough, otherwise a truncated title ending in '...'
    """
    if len(goal_text) <= GOAL_TITLE_MAX_LENGTH:
        return goal_text
    keep = GOAL_TITLE_MAX_LENGTH - len(GOAL_TITLE_ELLIPSIS)
    return goal_text[:keep] + GOAL_TITLE_ELLIPSIS


def create_task_defaults() -> Dict[str, Any]:
    """Get default task values as a dictionary.

    Returns:
        Dictionary with default task field values using constants
    """
    return {
        "description": "",
        "status": TaskStatus.TODO,
        "priority": Priority.MEDIUM,
        "completion_percentage": EMPTY_PERCENTAGE,
        "sub_task_ids": [],
        "metadata": {},
        "is_ai_generated": False,
    }


def create_task_base(
    owner_id: str,
    title: str,
    now: datetime,
    due_date: Optional[datetime] = None,
    description: Optional[str] = None,
    priority: Optional[Priority] = None,
    parent_id: Optional[str] = None,
    sub_task_ids: Optional[List[str]] = None,
    recurrence: Optional[RecurrenceConfig] = None,
    metadata: Optional[Dict[str, Any]] = None,
    is_ai_generated: Optional[bool] = None,
    task_id: Optional[str] = None,
) -> Task:
    """Create a task with defaults, allowing overrides.

    All optional parameters override defaults when provided. A recurring task
    always starts with an empty completion history.

    Args:
        owner_id: User ID who owns this task (required)
        title: Task title (required)
        now: Creation instant (also the due date fallback)
        due_date: Due date; defaults to `now`
        description: Task description
        priority: Task priority (defaults to MEDIUM)
        parent_id: Owning task id
        sub_task_ids: Initial child ids
        recurrence: Recurrence settings; makes the task a habit
        metadata: Free-form extras
        is_ai_generated: Whether the text came from the generator
        task_id: Pre-assigned id (generated when omitted)

    Returns:
        Task object with defaults applied
    """
    defaults = create_task_defaults()

    return Task(
        id=task_id or new_task_id(),
        owner_id=owner_id,
        title=title,
        description=description if description is not None else defaults["description"],
        status=defaults["status"],
        priority=priority if priority is not None else defaults["priority"],
        due_date=due_date if due_date is not None else now,
        created_at=now,
        updated_at=now,
        completion_percentage=defaults["completion_percentage"],
        parent_id=parent_id,
        sub_task_ids=list(sub_task_ids) if sub_task_ids is not None else defaults["sub_task_ids"],
        recurrence=recurrence,
        completion_history=[] if recurrence is not None else None,
        metadata=dict(metadata) if metadata is not None else defaults["metadata"],
        is_ai_generated=is_ai_generated if is_ai_generated is not None else defaults["is_ai_generated"],
    )


def create_goal_task(owner_id: str, goal_text: str, now: datetime, sub_task_ids: List[str], task_id: str) -> Task:
    """Create the master task that groups the steps generated for a goal."""
    return create_task_base(
        owner_id=owner_id,
        title=goal_title(goal_text),
        description=goal_text,
        priority=Priority.HIGH,
        due_date=now + timedelta(days=GOAL_DUE_DAYS),
        now=now,
        sub_task_ids=sub_task_ids,
        metadata={"is_goal": True},
        task_id=task_id,
    )


def create_task_from_proposal(
    proposal: TaskProposal,
    owner_id: str,
    parent_id: Optional[str],
    now: datetime,
    allow_recurrence: bool = True,
) -> Task:
    """Turn a generator proposal into a task.

    Proposed recurrences start fresh: streak 0, anchored at `now`.
    """
    recurrence = None
    if allow_recurrence and proposal.recurrence is not None:
        recurrence = RecurrenceConfig(
            frequency=proposal.recurrence.frequency,
            interval=proposal.recurrence.interval,
            streak=0,
            start_date=now,
        )

    task = create_task_base(
        owner_id=owner_id,
        title=proposal.title,
        description=proposal.description,
        priority=proposal.priority,
        due_date=proposal.due_date,
        now=now,
        parent_id=parent_id,
        recurrence=recurrence,
        metadata=proposal.metadata,
        is_ai_generated=True,
    )
    return task.model_copy(
        update={"original_ai_data": {"title": proposal.title, "description": proposal.description}}
    )
