"""Task tree mutations.

Every change to the task collection goes through `apply(collection, operation, now)`,
which returns a new list and leaves the input untouched. Each operation ends by
recomputing the progress of the affected task's ancestors.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Literal, Optional, Set, Union

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from resolutionai.errors import RecurrenceFinishedError, TaskNotFoundError
from resolutionai.engine.advancement import advance_cycle
from resolutionai.engine.progress import recompute_ancestors
from resolutionai.models.constants import DEFAULT_OWNER_ID, FULL_PERCENTAGE
from resolutionai.models.proposal import TaskProposal
from resolutionai.models.recurrence import RecurrenceConfig
from resolutionai.models.task import Priority, Task, TaskStatus
from resolutionai.models.task_factory import (
    create_goal_task,
    create_task_base,
    create_task_from_proposal,
    new_task_id,
)

logger = logging.getLogger(__name__)


class CreateGoal(BaseModel):
    """Create a goal task whose children are the generated steps."""
    op: Literal["create_goal"] = "create_goal"
    goal_text: str
    proposals: List[TaskProposal] = Field(default_factory=list)
    owner_id: str = DEFAULT_OWNER_ID
    goal_id: str = Field(default_factory=new_task_id)


class CreateSubtask(BaseModel):
    op: Literal["create_subtask"] = "create_subtask"
    parent_id: str
    title: str
    description: str = ""
    due_date: Optional[datetime] = None
    recurrence: Optional[RecurrenceConfig] = None
    owner_id: str = DEFAULT_OWNER_ID
    task_id: str = Field(default_factory=new_task_id)


class AddGeneratedSubtasks(BaseModel):
    op: Literal["add_generated_subtasks"] = "add_generated_subtasks"
    parent_id: str
    proposals: List[TaskProposal]
    owner_id: str = DEFAULT_OWNER_ID


class TaskUpdate(BaseModel):
    """Editable task fields (only fields explicitly set are applied).

    `recurrence` may be set to null to stop a habit; every other field must
    carry a value when it is sent.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[Priority] = None
    due_date: Optional[datetime] = None
    recurrence: Optional[RecurrenceConfig] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("title", "description", "priority", "due_date", "metadata")
    @classmethod
    def _reject_null(cls, v, info: ValidationInfo):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class EditTask(BaseModel):
    op: Literal["edit_task"] = "edit_task"
    task_id: str
    updates: TaskUpdate


class DeleteTask(BaseModel):
    op: Literal["delete_task"] = "delete_task"
    task_id: str


class ChangeStatus(BaseModel):
    """Set a plain task's status, or record a cycle outcome for a habit."""
    op: Literal["change_status"] = "change_status"
    task_id: str
    status: TaskStatus
    was_successful: Optional[bool] = None


class ChangeProgress(BaseModel):
    op: Literal["change_progress"] = "change_progress"
    task_id: str
    percentage: float = Field(..., ge=0, le=100)


class ApplyReassessment(BaseModel):
    """Apply the generator's answer to "why was this task missed"."""
    op: Literal["apply_reassessment"] = "apply_reassessment"
    task_id: str
    reason: str
    proposals: List[TaskProposal]
    owner_id: str = DEFAULT_OWNER_ID


Operation = Union[
    CreateGoal,
    CreateSubtask,
    AddGeneratedSubtasks,
    EditTask,
    DeleteTask,
    ChangeStatus,
    ChangeProgress,
    ApplyReassessment,
]


def _find(tasks: List[Task], task_id: str) -> Task:
    for task in tasks:
        if task.id == task_id:
            return task
    raise TaskNotFoundError(task_id)


def _replace(tasks: List[Task], updated: Task) -> List[Task]:
    return [updated if task.id == updated.id else task for task in tasks]


def _link_children(tasks: List[Task], parent: Task, children: List[Task]) -> List[Task]:
    linked = parent.model_copy(update={"sub_task_ids": parent.sub_task_ids + [c.id for c in children]})
    return _replace(tasks, linked)


def _create_goal(tasks: List[Task], op: CreateGoal, now: datetime) -> List[Task]:
    children = [
        create_task_from_proposal(p, owner_id=op.owner_id, parent_id=op.goal_id, now=now)
        for p in op.proposals
    ]
    goal = create_goal_task(op.owner_id, op.goal_text, now, [c.id for c in children], op.goal_id)
    logger.debug(f"Created goal {goal.id} with {len(children)} steps")
    return recompute_ancestors([goal, *children, *tasks], goal.id, now)


def _create_subtask(tasks: List[Task], op: CreateSubtask, now: datetime) -> List[Task]:
    parent = _find(tasks, op.parent_id)
    subtask = create_task_base(
        owner_id=op.owner_id,
        title=op.title,
        description=op.description,
        due_date=op.due_date or parent.due_date,
        now=now,
        parent_id=parent.id,
        recurrence=op.recurrence,
        task_id=op.task_id,
    )
    updated = [subtask, *_link_children(tasks, parent, [subtask])]
    return recompute_ancestors(updated, parent.id, now)


def _add_generated_subtasks(tasks: List[Task], op: AddGeneratedSubtasks, now: datetime) -> List[Task]:
    parent = _find(tasks, op.parent_id)
    children = [
        create_task_from_proposal(p, owner_id=op.owner_id, parent_id=parent.id, now=now)
        for p in op.proposals
    ]
    updated = _link_children(tasks, parent, children) + children
    return recompute_ancestors(updated, parent.id, now)


def _edit_task(tasks: List[Task], op: EditTask, now: datetime) -> List[Task]:
    task = _find(tasks, op.task_id)
    changes = {field: getattr(op.updates, field) for field in op.updates.model_fields_set}

    if changes.get("recurrence") is not None:
        # A habit that ran to its end date stays a completed plain task.
        if task.recurrence is None and task.completion_history is not None and task.status == TaskStatus.COMPLETED:
            raise RecurrenceFinishedError(task.id)
        if task.completion_history is None:
            changes["completion_history"] = []

    changes["updated_at"] = now
    edited = task.model_copy(update=changes)
    return recompute_ancestors(_replace(tasks, edited), edited.parent_id, now)


def _descendant_ids(tasks: List[Task], root_id: str) -> Set[str]:
    ids = {root_id}
    stack = [root_id]
    while stack:
        current = stack.pop()
        for task in tasks:
            if task.parent_id == current and task.id not in ids:
                ids.add(task.id)
                stack.append(task.id)
    return ids


def _delete_task(tasks: List[Task], op: DeleteTask, now: datetime) -> List[Task]:
    task = _find(tasks, op.task_id)
    doomed = _descendant_ids(tasks, task.id)
    remaining = [t for t in tasks if t.id not in doomed]
    logger.debug(f"Deleted task {task.id} and {len(doomed) - 1} descendants")

    if task.parent_id is None:
        return remaining
    remaining = [
        t.model_copy(update={"sub_task_ids": [sid for sid in t.sub_task_ids if sid != task.id]})
        if t.id == task.parent_id else t
        for t in remaining
    ]
    return recompute_ancestors(remaining, task.parent_id, now)


def _change_status(tasks: List[Task], op: ChangeStatus, now: datetime) -> List[Task]:
    task = _find(tasks, op.task_id)

    if task.recurrence is not None:
        was_successful = op.was_successful
        if was_successful is None:
            # Only completed/declined close a cycle; other statuses say nothing about the outcome.
            if op.status not in (TaskStatus.COMPLETED, TaskStatus.DECLINED):
                logger.debug(f"Ignoring status {op.status} for recurring task {task.id}")
                return list(tasks)
            was_successful = op.status == TaskStatus.COMPLETED
        updated = advance_cycle(task, was_successful, now)
    elif op.was_successful is not None:
        # Cycle outcome for a task whose recurrence already ended.
        logger.debug(f"Ignoring cycle outcome for non-recurring task {task.id}")
        return list(tasks)
    else:
        changes: Dict[str, Any] = {"status": op.status, "updated_at": now}
        if op.status == TaskStatus.COMPLETED:
            changes["completion_percentage"] = FULL_PERCENTAGE
        updated = task.model_copy(update=changes)

    return recompute_ancestors(_replace(tasks, updated), task.parent_id, now)


def _change_progress(tasks: List[Task], op: ChangeProgress, now: datetime) -> List[Task]:
    task = _find(tasks, op.task_id)
    if task.recurrence is not None:
        logger.debug(f"Ignoring manual progress for recurring task {task.id}")
        return list(tasks)

    changes: Dict[str, Any] = {"completion_percentage": op.percentage, "updated_at": now}
    if op.percentage >= FULL_PERCENTAGE:
        changes["status"] = TaskStatus.COMPLETED
    elif task.status == TaskStatus.COMPLETED:
        changes["status"] = TaskStatus.TODO
    updated = task.model_copy(update=changes)
    return recompute_ancestors(_replace(tasks, updated), task.parent_id, now)


def _apply_reassessment(tasks: List[Task], op: ApplyReassessment, now: datetime) -> List[Task]:
    task = _find(tasks, op.task_id)
    extension = next((p for p in op.proposals if p.title == task.title), None)
    solutions = [p for p in op.proposals if p.title != task.title]

    updated = list(tasks)
    if extension is not None and task.recurrence is None:
        task = task.model_copy(
            update={
                "due_date": extension.due_date,
                "overdue_explanation": op.reason,
                "status": TaskStatus.TODO,
                "updated_at": now,
            }
        )
        updated = _replace(updated, task)

    if solutions:
        children = [
            create_task_from_proposal(p, owner_id=op.owner_id, parent_id=task.id, now=now, allow_recurrence=False)
            for p in solutions
        ]
        updated = _link_children(updated, _find(updated, task.id), children) + children
        updated = recompute_ancestors(updated, task.id, now)

    if task.recurrence is not None:
        advanced = advance_cycle(_find(updated, task.id), False, now)
        updated = _replace(updated, advanced)
    return recompute_ancestors(updated, task.parent_id, now)


_HANDLERS: Dict[type, Callable[[List[Task], Any, datetime], List[Task]]] = {
    CreateGoal: _create_goal,
    CreateSubtask: _create_subtask,
    AddGeneratedSubtasks: _add_generated_subtasks,
    EditTask: _edit_task,
    DeleteTask: _delete_task,
    ChangeStatus: _change_status,
    ChangeProgress: _change_progress,
    ApplyReassessment: _apply_reassessment,
}


def apply(collection: List[Task], operation: Operation, now: datetime) -> List[Task]:
    """Apply one operation to a task collection.

    Args:
        collection: Current task list (not mutated)
        operation: Operation model
        now: Reference instant for timestamps and habit scores

    Returns:
        The new task list

    Raises:
        TaskNotFoundError: If the operation references an unknown task
        RecurrenceFinishedError: If an edit tries to restart a finished habit
    """
    handler = _HANDLERS[type(operation)]
    return handler(list(collection), operation, now)
