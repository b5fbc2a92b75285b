"""Consistency scoring for recurring tasks.

Compares how many cycles of a habit were expected between its start and a
reference instant (or its end date) with what the completion history records.
Everything here is a pure read: `now` is always passed in, nothing is stored.
"""

from datetime import datetime
from typing import Iterable

from resolutionai.models.consistency import ConsistencyMetrics, ConsistencySummary
from resolutionai.models.constants import FULL_PERCENTAGE
from resolutionai.models.recurrence import RecurrenceConfig
from resolutionai.models.task import Task, match_kind
from resolutionai.recurrence.cycles import count_elapsed_cycles


ZERO_METRICS = ConsistencyMetrics()


def evaluate(task: Task, now: datetime) -> ConsistencyMetrics:
    """Compute consistency metrics for a task at `now`.

    Plain tasks always get zero metrics.

    Args:
        task: Task to evaluate
        now: Reference instant

    Returns:
        ConsistencyMetrics with actual + missed <= expected and 0 <= score <= 100
    """
    return match_kind(
        task,
        plain=lambda _task: ZERO_METRICS,
        recurring=lambda t, recurrence: _evaluate_recurring(t, recurrence, now),
    )


def _evaluate_recurring(task: Task, recurrence: RecurrenceConfig, now: datetime) -> ConsistencyMetrics:
    start = recurrence.start_date or task.created_at

    # Horizon: the end date once it has been reached, otherwise now.
    horizon = now
    is_finished = False
    if recurrence.end_date is not None and now >= recurrence.end_date:
        horizon = recurrence.end_date
        is_finished = True

    if start <= horizon:
        elapsed = count_elapsed_cycles(start, horizon, recurrence.frequency, recurrence.interval)
        # The cycle in progress is always expected.
        expected = max(1, elapsed + 1)
    else:
        expected = 0

    history = task.completion_history or []
    actual = 0
    missed = 0
    for record in history:
        if actual + missed >= expected:
            break
        if record.was_successful:
            actual += 1
        else:
            missed += 1

    score = min(float(FULL_PERCENTAGE), actual * 100.0 / expected) if expected > 0 else 0.0

    return ConsistencyMetrics(
        score=score,
        actual=actual,
        missed=missed,
        expected=expected,
        is_finished=is_finished,
        total_attempts_logged=len(history),
    )


def progress_value(task: Task, now: datetime) -> float:
    """Value a task contributes to its parent's progress.

    Habits contribute their live consistency score, plain tasks their stored percentage.
    """
    return match_kind(
        task,
        plain=lambda t: float(t.completion_percentage or 0),
        recurring=lambda t, _recurrence: evaluate(t, now).score,
    )


def summarize_consistency(tasks: Iterable[Task], now: datetime) -> ConsistencySummary:
    """Aggregate capped cycle counts over every recurring task."""
    successful = 0
    missed = 0
    expected = 0
    for task in tasks:
        if task.recurrence is None:
            continue
        metrics = evaluate(task, now)
        successful += metrics.actual
        missed += metrics.missed
        expected += metrics.expected

    percentage = min(float(FULL_PERCENTAGE), successful * 100.0 / expected) if expected > 0 else 0.0
    return ConsistencySummary(
        successful=successful,
        missed=missed,
        expected=expected,
        percentage=percentage,
    )
