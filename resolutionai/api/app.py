"""FastAPI web application for Resolution AI."""

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable, List, Optional, TypeVar

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from resolutionai.api.inflight import InFlightRegistry
from resolutionai.api.notices import Notice, NoticeBoard
from resolutionai.database.database import get_db, init_db
from resolutionai.database.repository import TaskRepository
from resolutionai.engine.consistency import evaluate, summarize_consistency
from resolutionai.engine.mutations import (
    AddGeneratedSubtasks,
    ApplyReassessment,
    ChangeProgress,
    ChangeStatus,
    CreateGoal,
    CreateSubtask,
    DeleteTask,
    EditTask,
    Operation,
    TaskUpdate,
    apply,
)
from resolutionai.errors import (
    CycleDetectedError,
    GenerationError,
    RecurrenceFinishedError,
    RequestInFlightError,
    TaskNotFoundError,
)
from resolutionai.integrations.openai_client import TaskGenerator
from resolutionai.models.consistency import ConsistencyMetrics, ConsistencySummary
from resolutionai.models.constants import DEFAULT_NOTICE_TTL_SECONDS, DEFAULT_OWNER_ID
from resolutionai.models.recurrence import RecurrenceConfig
from resolutionai.models.task import Task, TaskStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")

OWNER_ID = os.getenv("DEFAULT_OWNER_ID", DEFAULT_OWNER_ID)
NOTICE_TTL_SECONDS = int(os.getenv("NOTICE_TTL_SECONDS", str(DEFAULT_NOTICE_TTL_SECONDS)))


@asynccontextmanager
async def lifespan(_app: FastAPI):
    init_db()
    yield


# Initialize FastAPI app
app = FastAPI(
    title="Resolution AI API",
    description="Goals, habits and consistency scoring",
    version="0.1.0",
    lifespan=lifespan,
)

notice_board = NoticeBoard(ttl_seconds=NOTICE_TTL_SECONDS)
inflight = InFlightRegistry()
_generator: Optional[TaskGenerator] = None


# Dependencies
def get_task_generator() -> TaskGenerator:
    global _generator
    if _generator is None:
        _generator = TaskGenerator()
    return _generator


def get_now() -> datetime:
    """Reference instant for a request (host local clock)."""
    return datetime.now()


def get_owner_id() -> str:
    return OWNER_ID


# Request models
class GoalRequest(BaseModel):
    goal: str = Field(..., min_length=1)


class SubtaskRequest(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    due_date: Optional[datetime] = None
    recurrence: Optional[RecurrenceConfig] = None


class GenerateSubtasksRequest(BaseModel):
    request: str = Field(..., min_length=1)


class StatusRequest(BaseModel):
    status: TaskStatus
    was_successful: Optional[bool] = None


class ProgressRequest(BaseModel):
    percentage: float = Field(..., ge=0, le=100)


class ReassessRequest(BaseModel):
    reason: str = Field(..., min_length=1)


# Response models
class TaskView(BaseModel):
    """A task with its live consistency metrics (habits only)."""
    task: Task
    consistency: Optional[ConsistencyMetrics] = None


class TaskListResponse(BaseModel):
    tasks: List[TaskView]
    count: int


class GoalResponse(BaseModel):
    goal_id: str
    tasks: List[TaskView]


class DeleteResponse(BaseModel):
    deleted_id: str


class NoticesResponse(BaseModel):
    notices: List[Notice]


def _view(task: Task, now: datetime) -> TaskView:
    consistency = evaluate(task, now) if task.recurrence is not None else None
    return TaskView(task=task, consistency=consistency)


def _find_view(tasks: List[Task], task_id: str, now: datetime) -> TaskView:
    for task in tasks:
        if task.id == task_id:
            return _view(task, now)
    raise HTTPException(status_code=404, detail=f"Task {task_id} not found")


def _commit(repo: TaskRepository, operation: Operation, now: datetime) -> List[Task]:
    """Load the collection, apply one operation, save the result."""
    try:
        tasks = apply(repo.load_all(), operation, now)
    except TaskNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RecurrenceFinishedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except CycleDetectedError as e:
        logger.error(f"Task tree is inconsistent: {e}")
        raise HTTPException(status_code=409, detail=str(e))
    return repo.save_all(tasks)


def _generate(key: str, now: datetime, call: Callable[[], T]) -> T:
    """Run a generator call for one call site; failures leave the collection untouched."""
    try:
        with inflight.claim(key):
            return call()
    except RequestInFlightError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except GenerationError as e:
        logger.error(f"Task generation failed for {key}: {e}")
        notice_board.post(str(e), now)
        raise HTTPException(status_code=502, detail=str(e))


def _load_task(repo: TaskRepository, task_id: str) -> Task:
    task = repo.get(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
    return task


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}


@app.get("/tasks", response_model=TaskListResponse)
def list_tasks(
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
    now: datetime = Depends(get_now),
):
    """List every task with live consistency for habits."""
    tasks = TaskRepository(db, owner_id).load_all()
    return TaskListResponse(tasks=[_view(t, now) for t in tasks], count=len(tasks))


@app.get("/tasks/{task_id}", response_model=TaskView)
def get_task(
    task_id: str,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
    now: datetime = Depends(get_now),
):
    return _view(_load_task(TaskRepository(db, owner_id), task_id), now)


@app.post("/goals", response_model=GoalResponse, status_code=201)
def create_goal(
    request: GoalRequest,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
    now: datetime = Depends(get_now),
    generator: TaskGenerator = Depends(get_task_generator),
):
    """Generate steps for a goal and store them under a new goal task."""
    proposals = _generate(f"goal:{owner_id}", now, lambda: generator.generate_tasks(request.goal))
    operation = CreateGoal(goal_text=request.goal, proposals=proposals, owner_id=owner_id)
    tasks = _commit(TaskRepository(db, owner_id), operation, now)
    created = [t for t in tasks if t.id == operation.goal_id or t.parent_id == operation.goal_id]
    return GoalResponse(goal_id=operation.goal_id, tasks=[_view(t, now) for t in created])


@app.post("/tasks/{task_id}/subtasks", response_model=TaskView, status_code=201)
def create_subtask(
    task_id: str,
    request: SubtaskRequest,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
    now: datetime = Depends(get_now),
):
    operation = CreateSubtask(
        parent_id=task_id,
        title=request.title,
        description=request.description,
        due_date=request.due_date,
        recurrence=request.recurrence,
        owner_id=owner_id,
    )
    tasks = _commit(TaskRepository(db, owner_id), operation, now)
    return _find_view(tasks, operation.task_id, now)


@app.post("/tasks/{task_id}/subtasks/generate", response_model=TaskListResponse, status_code=201)
def generate_subtasks(
    task_id: str,
    request: GenerateSubtasksRequest,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
    now: datetime = Depends(get_now),
    generator: TaskGenerator = Depends(get_task_generator),
):
    """Generate subtasks for an existing task."""
    repo = TaskRepository(db, owner_id)
    parent = _load_task(repo, task_id)
    proposals = _generate(f"subtasks:{task_id}", now, lambda: generator.generate_subtasks(parent, request.request))
    known_ids = set(parent.sub_task_ids)
    tasks = _commit(repo, AddGeneratedSubtasks(parent_id=task_id, proposals=proposals, owner_id=owner_id), now)
    created = [t for t in tasks if t.parent_id == task_id and t.id not in known_ids]
    return TaskListResponse(tasks=[_view(t, now) for t in created], count=len(created))


@app.patch("/tasks/{task_id}", response_model=TaskView)
def edit_task(
    task_id: str,
    updates: TaskUpdate,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
    now: datetime = Depends(get_now),
):
    tasks = _commit(TaskRepository(db, owner_id), EditTask(task_id=task_id, updates=updates), now)
    return _find_view(tasks, task_id, now)


@app.delete("/tasks/{task_id}", response_model=DeleteResponse)
def delete_task(
    task_id: str,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
    now: datetime = Depends(get_now),
):
    """Delete a task together with all of its descendants."""
    _commit(TaskRepository(db, owner_id), DeleteTask(task_id=task_id), now)
    return DeleteResponse(deleted_id=task_id)


@app.post("/tasks/{task_id}/status", response_model=TaskView)
def change_status(
    task_id: str,
    request: StatusRequest,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
    now: datetime = Depends(get_now),
):
    """Change a task's status; for habits this records the current cycle's outcome."""
    operation = ChangeStatus(task_id=task_id, status=request.status, was_successful=request.was_successful)
    tasks = _commit(TaskRepository(db, owner_id), operation, now)
    return _find_view(tasks, task_id, now)


@app.post("/tasks/{task_id}/progress", response_model=TaskView)
def change_progress(
    task_id: str,
    request: ProgressRequest,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
    now: datetime = Depends(get_now),
):
    operation = ChangeProgress(task_id=task_id, percentage=request.percentage)
    tasks = _commit(TaskRepository(db, owner_id), operation, now)
    return _find_view(tasks, task_id, now)


@app.post("/tasks/{task_id}/reassess", response_model=TaskView)
def reassess_task(
    task_id: str,
    request: ReassessRequest,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
    now: datetime = Depends(get_now),
    generator: TaskGenerator = Depends(get_task_generator),
):
    """Ask the generator how to recover from a missed task and apply its answer."""
    repo = TaskRepository(db, owner_id)
    task = _load_task(repo, task_id)
    proposals = _generate(f"reassess:{task_id}", now, lambda: generator.reassess_task(task, request.reason))
    operation = ApplyReassessment(task_id=task_id, reason=request.reason, proposals=proposals, owner_id=owner_id)
    tasks = _commit(repo, operation, now)
    return _find_view(tasks, task_id, now)


@app.get("/stats", response_model=ConsistencySummary)
def stats(
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
    now: datetime = Depends(get_now),
):
    """Consistency totals across all habits."""
    return summarize_consistency(TaskRepository(db, owner_id).load_all(), now)


@app.get("/notices", response_model=NoticesResponse)
def list_notices(now: datetime = Depends(get_now)):
    """Error notices that have not expired yet."""
    return NoticesResponse(notices=notice_board.active(now))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
