from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from taskpulse.config import DEFAULT_ASSIGNEE, DEFAULT_PRIORITY, DEFAULT_PROJECT
from taskpulse.fields import StatusClass

TREND_DAYS = 7


class Task(BaseModel):
    """Canonical task record, one per uploaded row."""
    id: Optional[str] = Field(None, description="Source identifier; may repeat or be missing.")
    title: Optional[str] = None
    description: Optional[str] = None
    project: str = Field(DEFAULT_PROJECT, description="Project name, defaulted when the cell is blank.")
    assignee: str = DEFAULT_ASSIGNEE
    status: Optional[str] = Field(None, description="Original status text, kept for display.")
    status_class: StatusClass = StatusClass.OPEN
    priority: str = DEFAULT_PRIORITY
    due_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    date: Optional[datetime] = Field(None, description="Generic 'date' column, last-resort date.")
    resolved_at: Optional[datetime] = Field(None, description="Date the task counts as completed on.")
    completed_flag: bool = False

    @property
    def filter_date(self) -> Optional[datetime]:
        return self.due_date or self.created_at or self.date


class Metrics(BaseModel):
    """Aggregate snapshot derived from one upload."""
    total: int = 0
    open: int = 0
    completed: int = 0
    in_progress: int = 0
    blocked: int = 0
    completion: int = Field(0, ge=0, le=100, description="Rounded completed/total percentage.")
    closed_today: int = 0
    trend: List[int] = Field(default_factory=lambda: [0] * TREND_DAYS,
                             description="Completed per day, oldest first, today last.")
    created_trend: List[int] = Field(default_factory=lambda: [0] * TREND_DAYS,
                                     description="Created per day, same window as trend.")

    @field_validator("trend", "created_trend")
    @classmethod
    def _seven_days(cls, v: List[int]) -> List[int]:
        if len(v) != TREND_DAYS:
            raise ValueError(f"trend series must have {TREND_DAYS} entries")
        return v


class Snapshot(BaseModel):
    """The (tasks, metrics) pair held by the store; replaced wholesale."""
    model_config = ConfigDict(frozen=True)

    tasks: Tuple[Task, ...] = ()
    metrics: Metrics = Field(default_factory=Metrics)
    uploaded_at: Optional[int] = Field(None, description="Epoch milliseconds of the upload.")

    @property
    def is_empty(self) -> bool:
        return self.uploaded_at is None


TaskList = TypeAdapter(List[Task])
