"""Repository layer for database operations."""

import logging
from typing import List, Optional
from sqlalchemy.orm import Session

from resolutionai.models.task import Task
from resolutionai.database.models import TaskDB

logger = logging.getLogger(__name__)


class TaskRepository:
    """Repository for an owner's task collection.

    The collection is loaded and saved as a whole; `save_all` replaces the stored
    list in a single transaction so a partial write is never visible.
    """

    def __init__(self, db: Session, owner_id: str):
        self.db = db
        self.owner_id = owner_id

    def load_all(self) -> List[Task]:
        """Load the owner's task list in saved order."""
        tasks_db = self.db.query(TaskDB).filter(
            TaskDB.owner_id == self.owner_id,
        ).order_by(TaskDB.position).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def get(self, task_id: str) -> Optional[Task]:
        """Get task by ID for the owner."""
        task_db = self.db.query(TaskDB).filter(
            TaskDB.id == task_id,
            TaskDB.owner_id == self.owner_id,
        ).first()
        return task_db.to_pydantic() if task_db else None

    def save_all(self, tasks: List[Task]) -> List[Task]:
        """Replace the owner's stored task list with `tasks`."""
        keep_ids = {task.id for task in tasks}
        try:
            stale = self.db.query(TaskDB).filter(
                TaskDB.owner_id == self.owner_id,
            ).all()
            for task_db in stale:
                if task_db.id not in keep_ids:
                    self.db.delete(task_db)
            for position, task in enumerate(tasks):
                self.db.merge(TaskDB.from_pydantic(task, position=position))
            self.db.commit()
            logger.debug(f"Saved {len(tasks)} tasks for owner {self.owner_id}")
            return tasks
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to save tasks for owner {self.owner_id}: {type(e).__name__}: {str(e)}")
            raise
