"""Pydantic models for task lifecycle updates and derived views."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from leadengine.models.enums import TaskStatus
from leadengine.schemas.ingestion import PhoneTaskOut


class TaskStatusUpdate(BaseModel):
    call_status: Optional[TaskStatus] = None
    notes: Optional[str] = None
    called_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    expected_updated_at: Optional[datetime] = Field(
        None, description="Expected updated_at timestamp for optimistic locking"
    )


class CalendarCounts(BaseModel):
    pending: int = 0
    in_progress: int = 0
    completed: int = 0


class CalendarDay(BaseModel):
    date: str
    counts: CalendarCounts = Field(default_factory=CalendarCounts)
    tasks: List[PhoneTaskOut] = Field(default_factory=list)


class TaskStats(BaseModel):
    total: int = 0
    pending: int = 0
    in_progress: int = 0
    completed: int = 0
    overdue: int = 0
    completed_today: int = 0


class LeadOutcomeStats(BaseModel):
    total: int = 0
    pending: int = 0
    called: int = 0
    interested: int = 0
    converted: int = 0
