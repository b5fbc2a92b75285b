"""Cycle advancement for recurring tasks.

Records the outcome of the current cycle of a habit, moves its due date to the
next cycle and decides whether the recurrence is over.
"""

import logging
from datetime import datetime

from resolutionai.errors import RecurrenceFinishedError
from resolutionai.engine.consistency import evaluate
from resolutionai.models.constants import EMPTY_PERCENTAGE, FULL_PERCENTAGE
from resolutionai.models.recurrence import CompletionRecord
from resolutionai.models.task import Task, TaskStatus
from resolutionai.recurrence.cycles import advance_due_date

logger = logging.getLogger(__name__)


def advance_cycle(task: Task, was_successful: bool, now: datetime) -> Task:
    """Record a cycle outcome and move the habit to its next cycle.

    Only the first outcome per expected cycle is logged; once the history already
    covers every expected cycle, the call just moves the due date forward. A
    failure reported for a period whose quota is already met keeps the streak.

    Args:
        task: Recurring task (not mutated)
        was_successful: Outcome of the current cycle
        now: Reference instant for the outcome

    Returns:
        Updated copy of the task

    Raises:
        RecurrenceFinishedError: If the task has no active recurrence
    """
    recurrence = task.recurrence
    if recurrence is None:
        raise RecurrenceFinishedError(task.id)

    before = evaluate(task, now)
    history = list(task.completion_history or [])
    streak = recurrence.streak

    if before.total_attempts_logged < before.expected:
        history.append(CompletionRecord(completed_at=now, was_successful=was_successful))
        streak = streak + 1 if was_successful else 0
    elif not was_successful and before.actual < before.expected:
        streak = 0

    next_due = advance_due_date(task.due_date, recurrence.frequency, recurrence.interval)

    # The streak can never exceed the successful cycles on record.
    projected = task.model_copy(
        update={
            "completion_history": history,
            "due_date": next_due,
            "recurrence": recurrence.model_copy(update={"streak": streak}),
        }
    )
    streak = max(0, min(streak, evaluate(projected, now).actual))

    # Ends once now has reached the end date or the next cycle would fall past it.
    if before.is_finished or (recurrence.end_date is not None and next_due > recurrence.end_date):
        logger.debug(f"Recurrence of task {task.id} finished (end date {recurrence.end_date})")
        return task.model_copy(
            update={
                "recurrence": None,
                "completion_history": history,
                "status": TaskStatus.COMPLETED,
                "completion_percentage": FULL_PERCENTAGE,
                "due_date": task.due_date,
                "updated_at": now,
            }
        )

    return task.model_copy(
        update={
            "recurrence": recurrence.model_copy(update={"streak": streak}),
            "completion_history": history,
            "status": TaskStatus.TODO,
            "completion_percentage": EMPTY_PERCENTAGE,
            "due_date": next_due,
            "updated_at": now,
        }
    )
