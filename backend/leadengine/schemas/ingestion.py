"""Pydantic models for parsed lead documents and batch ingestion."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from leadengine.models.enums import AssignmentMode


class ParsedAssignment(BaseModel):
    employee_name_hint: str
    phone_numbers: List[str] = Field(default_factory=list)


class ParsedDocument(BaseModel):
    assignment_mode: AssignmentMode
    assignments: List[ParsedAssignment]

    @computed_field  # type: ignore[misc]
    @property
    def total_numbers(self) -> int:
        return sum(len(a.phone_numbers) for a in self.assignments)


class BatchTextUpload(BaseModel):
    """Ingestion request for a document whose text was already extracted."""

    file_name: str = Field(..., min_length=1, max_length=255)
    uploaded_by: str = Field(..., min_length=1, max_length=36)
    text: str
    resolve_names: bool = True
    strict: bool = Field(False, description="Reject numbers that are not 01 + 8-9 digits")


class BatchOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    file_name: str
    assignment_mode: AssignmentMode
    uploaded_by: str
    total_numbers: int
    created_at: datetime


class BatchSummaryOut(BatchOut):
    task_count: int = 0
    unassigned_count: int = 0


class PhoneTaskOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    batch_id: str
    seq: int
    phone_number: str
    assigned_to: Optional[str] = None
    assigned_employee_name: Optional[str] = None
    call_status: str
    task_type: str
    priority: str
    notes: Optional[str] = None
    due_date: Optional[datetime] = None
    called_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
