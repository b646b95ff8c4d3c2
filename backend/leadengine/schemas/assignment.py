"""Pydantic models for lead distribution requests and results."""

from typing import Dict, List

from pydantic import BaseModel, Field

from leadengine.core.config import settings
from leadengine.models.enums import TaskPriority


class AssignmentOptions(BaseModel):
    due_in_days: int = Field(default_factory=lambda: settings.DEFAULT_DUE_IN_DAYS, ge=0)
    priority: TaskPriority = TaskPriority.MEDIUM


class RandomAssignmentRequest(AssignmentOptions):
    employee_ids: List[str]


class TargetedPair(BaseModel):
    phone_task_id: str
    employee_id: str


class TargetedAssignmentRequest(AssignmentOptions):
    assignments: List[TargetedPair]


class RandomAssignmentResult(BaseModel):
    assigned_count: int = 0
    per_employee_count: Dict[str, int] = Field(default_factory=dict)


class TargetedAssignmentResult(BaseModel):
    assigned_count: int = 0
    # Task ids from the request that are unknown or belong to another batch.
    skipped_task_ids: List[str] = Field(default_factory=list)


class NameMatchOut(BaseModel):
    matched: List[TargetedPair] = Field(default_factory=list)
    unmatched_task_ids: List[str] = Field(default_factory=list)


class NameMatchAssignmentResult(TargetedAssignmentResult):
    unmatched_task_ids: List[str] = Field(default_factory=list)
