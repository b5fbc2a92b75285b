"""Derived consistency values (computed on read, never persisted)."""

from pydantic import BaseModel, Field


class ConsistencyMetrics(BaseModel):
    """How consistently a habit has been performed up to a reference instant."""

    score: float = Field(0.0, ge=0.0, le=100.0, description="Successful share of expected cycles, capped at 100")
    actual: int = Field(0, ge=0, description="Successful cycles counted (capped by expected)")
    missed: int = Field(0, ge=0, description="Missed cycles counted (capped by expected)")
    expected: int = Field(0, ge=0, description="Cycles expected up to the horizon")
    is_finished: bool = Field(False, description="Whether the recurrence end date has been reached")
    total_attempts_logged: int = Field(0, ge=0, description="Raw number of completion records")

    class Config:
        """Pydantic configuration."""
        frozen = True


class ConsistencySummary(BaseModel):
    """Totals across every habit in a task collection."""

    successful: int = 0
    missed: int = 0
    expected: int = 0
    percentage: float = Field(0.0, ge=0.0, le=100.0)
