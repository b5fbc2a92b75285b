"""Consistency and progress engine for Resolution AI."""

from resolutionai.engine.consistency import evaluate, progress_value, summarize_consistency
from resolutionai.engine.advancement import advance_cycle
from resolutionai.engine.progress import recompute_ancestors
from resolutionai.engine.mutations import apply, Operation

__all__ = [
    "evaluate",
    "progress_value",
    "summarize_consistency",
    "advance_cycle",
    "recompute_ancestors",
    "apply",
    "Operation",
]
