"""Pydantic schemas for the serializable progress state of one walk."""
from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class ProgressStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ChoiceRecordSchema(BaseModel):
    step: int
    choice_id: str
    points_delta: int
    timestamp: datetime

    class Config:
        frozen = True


class SimulationProgressSchema(BaseModel):
    """Progress of one user through one simulation.

    ``version`` is the store's concurrency token; it is ``None`` until the
    record has been written once.
    """

    user_id: str
    simulation_id: str
    attempt: int = 1
    current_step: int = 1
    total_score: int = 0
    choices: tuple[ChoiceRecordSchema, ...] = ()
    status: ProgressStatus = ProgressStatus.IN_PROGRESS
    started_at: datetime
    completed_at: datetime | None = None
    version: int | None = None

    class Config:
        frozen = True

    @property
    def is_completed(self) -> bool:
        return self.status == ProgressStatus.COMPLETED

    @property
    def activity_key(self) -> str:
        return f"{self.simulation_id}:{self.attempt}"


class ProgressSummarySchema(BaseModel):
    current_step: int
    total_steps: int
    percentage: int
    score: int
    status: ProgressStatus
