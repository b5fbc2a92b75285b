"""Exception types for Resolution AI."""


class ResolutionError(Exception):
    """Base class for application errors."""


class TaskNotFoundError(ResolutionError, LookupError):
    """An operation referenced a task id that is not in the collection."""

    def __init__(self, task_id: str):
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class RecurrenceFinishedError(ResolutionError, ValueError):
    """A cycle operation was requested on a task that is not (or no longer) recurring."""

    def __init__(self, task_id: str):
        super().__init__(f"Task {task_id} has no active recurrence")
        self.task_id = task_id


class CycleDetectedError(ResolutionError):
    """Progress aggregation reached the same task twice while walking up the tree."""

    def __init__(self, task_id: str):
        super().__init__(f"Task hierarchy cycle detected at {task_id}")
        self.task_id = task_id


class GenerationError(ResolutionError):
    """The task generator failed or returned output that does not fit the task shape."""


class RequestInFlightError(ResolutionError):
    """A generation request for the same call site is still running."""

    def __init__(self, key: str):
        super().__init__(f"A request for {key} is already in progress")
        self.key = key
