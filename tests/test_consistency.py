"""Tests for consistency scoring (deterministic, pure).

These tests verify that evaluate() is idempotent, bounded, and follows the
expected-cycle rules for open, ended and future-dated habits.
"""

import pytest
from datetime import timedelta

from resolutionai.engine.consistency import evaluate, progress_value, summarize_consistency
from resolutionai.models.recurrence import CompletionRecord, RecurrenceConfig, RecurrenceFrequency
from resolutionai.models.task import TaskKind


def _records(t0, outcomes):
    return [
        CompletionRecord(completed_at=t0 + timedelta(days=i), was_successful=ok)
        for i, ok in enumerate(outcomes)
    ]


def _habit(make_task, t0, outcomes=(), **recurrence):
    config = {"frequency": RecurrenceFrequency.DAILY, "interval": 1, "start_date": t0, **recurrence}
    return make_task(recurrence=RecurrenceConfig(**config), completion_history=_records(t0, outcomes))


class TestEvaluate:
    """Test evaluate() on plain and recurring tasks."""

    def test_plain_task_has_zero_metrics(self, sample_task, t0):
        metrics = evaluate(sample_task, t0 + timedelta(days=3))

        assert sample_task.kind == TaskKind.PLAIN
        assert metrics.score == 0
        assert metrics.expected == 0
        assert metrics.actual == 0
        assert metrics.missed == 0
        assert metrics.is_finished is False
        assert metrics.total_attempts_logged == 0

    def test_partial_period_counts_current_cycle(self, daily_habit, t0):
        """2.5 days in, three cycles are expected (two elapsed plus the current one)."""
        metrics = evaluate(daily_habit, t0 + timedelta(days=2, hours=12))

        assert metrics.expected == 3
        assert metrics.actual == 0
        assert metrics.missed == 0
        assert metrics.score == 0

    def test_at_start_one_cycle_expected(self, daily_habit, t0):
        assert evaluate(daily_habit, t0).expected == 1

    def test_score_is_successful_share(self, make_task, t0):
        task = _habit(make_task, t0, outcomes=[True, False, True, True, False])
        metrics = evaluate(task, t0 + timedelta(days=4, hours=1))

        assert metrics.expected == 5
        assert metrics.actual == 3
        assert metrics.missed == 2
        assert metrics.score == pytest.approx(60.0)

    def test_extra_records_do_not_inflate(self, make_task, t0):
        """Records beyond the expected count are ignored for actual/missed but still logged."""
        task = _habit(make_task, t0, outcomes=[True] * 6)
        metrics = evaluate(task, t0 + timedelta(days=1))

        assert metrics.expected == 2
        assert metrics.actual == 2
        assert metrics.score == 100
        assert metrics.total_attempts_logged == 6

    def test_end_date_caps_horizon(self, make_task, t0):
        task = _habit(make_task, t0, end_date=t0 + timedelta(days=2))
        metrics = evaluate(task, t0 + timedelta(days=3))

        assert metrics.is_finished is True
        assert metrics.expected == 3

    def test_before_end_date_not_finished(self, make_task, t0):
        task = _habit(make_task, t0, end_date=t0 + timedelta(days=2))
        metrics = evaluate(task, t0 + timedelta(days=1))

        assert metrics.is_finished is False
        assert metrics.expected == 2

    def test_future_start_expects_nothing(self, make_task, t0):
        task = _habit(make_task, t0 + timedelta(days=5))
        metrics = evaluate(task, t0)

        assert metrics.expected == 0
        assert metrics.score == 0

    def test_end_before_start_expects_nothing(self, make_task, t0):
        task = _habit(make_task, t0, end_date=t0 - timedelta(days=1))
        metrics = evaluate(task, t0 + timedelta(days=1))

        assert metrics.is_finished is True
        assert metrics.expected == 0
        assert metrics.score == 0

    def test_missing_start_date_uses_creation_time(self, make_task, t0):
        task = make_task(
            created_at=t0,
            recurrence=RecurrenceConfig(frequency=RecurrenceFrequency.HOURLY, interval=1),
            completion_history=[],
        )
        assert evaluate(task, t0 + timedelta(hours=3, minutes=5)).expected == 4

    def test_idempotent(self, make_task, t0):
        task = _habit(make_task, t0, outcomes=[True, False, True])
        now = t0 + timedelta(days=2, hours=3)

        first = evaluate(task, now)
        second = evaluate(task, now)

        assert first == second
        assert task.completion_history == _records(t0, [True, False, True])

    @pytest.mark.parametrize("days", [0, 1, 3, 10])
    @pytest.mark.parametrize("outcomes", [[], [True], [False, True], [True] * 12, [False] * 4])
    def test_bounded(self, make_task, t0, days, outcomes):
        metrics = evaluate(_habit(make_task, t0, outcomes=outcomes), t0 + timedelta(days=days))

        assert 0 <= metrics.score <= 100
        assert metrics.actual + metrics.missed <= metrics.expected


class TestProgressValue:
    def test_plain_task_uses_stored_percentage(self, make_task, t0):
        assert progress_value(make_task(completion_percentage=90), t0) == 90

    def test_habit_uses_live_score(self, make_task, t0):
        task = _habit(make_task, t0, outcomes=[True, False])
        task = task.model_copy(update={"completion_percentage": 0})
        assert progress_value(task, t0 + timedelta(days=1)) == pytest.approx(50.0)


class TestSummarizeConsistency:
    def test_totals_over_habits_only(self, make_task, sample_task, t0):
        now = t0 + timedelta(days=1)
        tasks = [
            _habit(make_task, t0, outcomes=[True, True]),
            _habit(make_task, t0, outcomes=[False]),
            sample_task,
        ]
        summary = summarize_consistency(tasks, now)

        assert summary.successful == 2
        assert summary.missed == 1
        assert summary.expected == 4
        assert summary.percentage == pytest.approx(50.0)

    def test_no_habits(self, sample_task, t0):
        summary = summarize_consistency([sample_task], t0)
        assert summary.expected == 0
        assert summary.percentage == 0
