"""Hierarchical progress aggregation.

A parent is only as complete as its least complete child: its percentage is the
minimum over its children (live consistency score for habits, stored percentage
otherwise). A parent without children counts as 100% complete.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Set

from resolutionai.errors import CycleDetectedError
from resolutionai.engine.consistency import progress_value
from resolutionai.models.constants import FULL_PERCENTAGE
from resolutionai.models.task import Task

logger = logging.getLogger(__name__)


def recompute_ancestors(tasks: List[Task], start_parent_id: Optional[str], now: datetime) -> List[Task]:
    """Recompute completion percentages from `start_parent_id` up to the root.

    Walks upward with an explicit worklist and stops at a root or at the first
    level whose percentage did not change. Safe to call redundantly.

    Args:
        tasks: Full task collection (not mutated)
        start_parent_id: Id of the first parent to recompute
        now: Reference instant for habit scores

    Returns:
        New task list in the same order

    Raises:
        CycleDetectedError: If the walk reaches the same task twice
    """
    by_id: Dict[str, Task] = {task.id: task for task in tasks}
    visited: Set[str] = set()
    current_id = start_parent_id

    while current_id is not None:
        if current_id in visited:
            raise CycleDetectedError(current_id)
        visited.add(current_id)

        parent = by_id.get(current_id)
        if parent is None:
            logger.debug(f"Parent {current_id} not found; skipping progress recompute")
            break

        children = [by_id[child_id] for child_id in parent.sub_task_ids if child_id in by_id]
        if children:
            new_percentage = min(progress_value(child, now) for child in children)
        else:
            new_percentage = float(FULL_PERCENTAGE)

        if new_percentage == parent.completion_percentage:
            break

        by_id[current_id] = parent.model_copy(update={"completion_percentage": new_percentage})
        current_id = parent.parent_id

    return [by_id[task.id] for task in tasks]
