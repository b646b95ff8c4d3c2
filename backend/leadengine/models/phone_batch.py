"""Phone number batch and phone task ORM models."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leadengine.models.base import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class PhoneNumberBatch(Base):
    """One uploaded lead document (``phone_number_batches``)."""

    __tablename__ = "phone_number_batches"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    assignment_mode: Mapped[str] = mapped_column(String(16), nullable=False)
    uploaded_by: Mapped[str] = mapped_column(String(36), nullable=False)
    # Declared at upload time; not kept in sync with the task rows.
    total_numbers: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("0")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.now
    )

    tasks: Mapped[List["PhoneTask"]] = relationship(
        back_populates="batch", cascade="all, delete-orphan", passive_deletes=True
    )


class PhoneTask(Base):
    """A phone number plus its work state (``phone_tasks``)."""

    __tablename__ = "phone_tasks"
    __table_args__ = (
        Index("idx_phone_tasks_batch_seq", "batch_id", "seq"),
        Index("idx_phone_tasks_assigned_due", "assigned_to", "due_date"),
        Index("idx_phone_tasks_status_assigned", "call_status", "assigned_to"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    batch_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("phone_number_batches.id", ondelete="CASCADE"),
        nullable=False,
    )
    seq: Mapped[int] = mapped_column(Integer, nullable=False)
    phone_number: Mapped[str] = mapped_column(String(32), nullable=False)
    assigned_to: Mapped[Optional[str]] = mapped_column(String(36))
    # Name as written in the document; never joined against employees.
    assigned_employee_name: Mapped[Optional[str]] = mapped_column(String(255))
    call_status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="pending", server_default=text("'pending'")
    )
    task_type: Mapped[str] = mapped_column(
        String(16), nullable=False, default="call", server_default=text("'call'")
    )
    priority: Mapped[str] = mapped_column(
        String(16), nullable=False, default="medium", server_default=text("'medium'")
    )
    notes: Mapped[Optional[str]] = mapped_column(Text)
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    called_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.now
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    batch: Mapped[PhoneNumberBatch] = relationship(back_populates="tasks")
