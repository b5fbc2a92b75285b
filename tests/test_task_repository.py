"""Tests for TaskRepository load/save of whole collections."""

import pytest
from datetime import timedelta

from resolutionai.database.repository import TaskRepository
from resolutionai.models.recurrence import CompletionRecord
from resolutionai.models.task import TaskStatus


class TestTaskRepository:
    """Test TaskRepository whole-collection persistence."""

    def test_empty_collection(self, task_repository):
        assert task_repository.load_all() == []

    def test_save_and_load_plain_task(self, task_repository, sample_task):
        task_repository.save_all([sample_task])
        loaded = task_repository.load_all()

        assert len(loaded) == 1
        assert loaded[0].id == sample_task.id
        assert loaded[0].title == sample_task.title
        assert loaded[0].status == TaskStatus.TODO
        assert loaded[0].recurrence is None
        assert loaded[0].completion_history is None
        assert loaded[0].due_date == sample_task.due_date

    def test_habit_round_trip(self, task_repository, daily_habit, t0):
        history = [
            CompletionRecord(completed_at=t0, was_successful=True),
            CompletionRecord(completed_at=t0 + timedelta(days=1), was_successful=False),
        ]
        habit = daily_habit.model_copy(update={"completion_history": history})

        task_repository.save_all([habit])
        loaded = task_repository.get(habit.id)

        assert loaded.recurrence == habit.recurrence
        assert loaded.completion_history == history

    def test_hierarchy_and_extras_round_trip(self, task_repository, make_task):
        parent = make_task(title="Parent", metadata={"is_goal": True})
        child = make_task(
            title="Child",
            parent_id=parent.id,
            is_ai_generated=True,
            original_ai_data={"title": "Child", "description": ""},
            overdue_explanation="Too busy",
        )
        parent = parent.model_copy(update={"sub_task_ids": [child.id]})

        task_repository.save_all([parent, child])
        loaded_parent = task_repository.get(parent.id)
        loaded_child = task_repository.get(child.id)

        assert loaded_parent.sub_task_ids == [child.id]
        assert loaded_parent.metadata == {"is_goal": True}
        assert loaded_child.parent_id == parent.id
        assert loaded_child.is_ai_generated is True
        assert loaded_child.original_ai_data == {"title": "Child", "description": ""}
        assert loaded_child.overdue_explanation == "Too busy"

    def test_order_preserved(self, task_repository, make_task):
        tasks = [make_task(title=f"Task {i}") for i in range(4)]
        task_repository.save_all(list(reversed(tasks)))

        assert [t.title for t in task_repository.load_all()] == ["Task 3", "Task 2", "Task 1", "Task 0"]

    def test_save_replaces_collection(self, task_repository, make_task):
        keep = make_task(title="Keep")
        drop = make_task(title="Drop")
        task_repository.save_all([keep, drop])

        task_repository.save_all([keep.model_copy(update={"title": "Kept"})])
        loaded = task_repository.load_all()

        assert [t.title for t in loaded] == ["Kept"]
        assert task_repository.get(drop.id) is None

    def test_get_nonexistent_task(self, task_repository):
        assert task_repository.get("nonexistent-id") is None

    def test_owners_are_isolated(self, db_session, task_repository, sample_task):
        task_repository.save_all([sample_task])
        other = TaskRepository(db_session, "other-user")

        assert other.load_all() == []
        assert other.get(sample_task.id) is None

        other.save_all([])
        assert len(task_repository.load_all()) == 1

    def test_save_failure_rolls_back(self, task_repository, sample_task, monkeypatch):
        task_repository.save_all([sample_task])

        def fail():
            raise RuntimeError("disk full")

        monkeypatch.setattr(task_repository.db, "commit", fail)
        with pytest.raises(RuntimeError):
            task_repository.save_all([])

        monkeypatch.undo()
        assert [t.id for t in task_repository.load_all()] == [sample_task.id]
