"""API endpoints for task lifecycle updates and per-employee task views."""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from leadengine.core.audit import log_audit
from leadengine.core.db import get_session
from leadengine.core.deps import get_actor_id, get_store, remote_addr
from leadengine.schemas.ingestion import PhoneTaskOut
from leadengine.schemas.task import CalendarDay, LeadOutcomeStats, TaskStats, TaskStatusUpdate
from leadengine.services.lifecycle import update_task_status
from leadengine.services.storage import PhoneTaskStore
from leadengine.services.views import (
    employee_calendar,
    lead_outcome_stats,
    task_stats,
    tasks_for_employee,
    upcoming_tasks,
)

router = APIRouter(prefix="/phone-tasks", tags=["phone_tasks"])
employees_router = APIRouter(prefix="/employees", tags=["phone_tasks"])


@router.patch("/{task_id}/status", response_model=PhoneTaskOut)
async def set_task_status(
    task_id: str,
    payload: TaskStatusUpdate,
    request: Request,
    session: AsyncSession = Depends(get_session),
    store: PhoneTaskStore = Depends(get_store),
    actor_id: str = Depends(get_actor_id),
):
    task = await update_task_status(store, task_id, payload)
    await log_audit(
        session,
        actor_id,
        "phone_task",
        task_id,
        "STATUS",
        details=payload.model_dump(exclude_unset=True, mode="json"),
        remote_addr=remote_addr(request),
    )
    return task


@router.get("/stats", response_model=TaskStats)
async def get_task_stats(
    employee_id: Optional[str] = None,
    store: PhoneTaskStore = Depends(get_store),
):
    return await task_stats(store, employee_id)


@router.get("/lead-stats", response_model=LeadOutcomeStats)
async def get_lead_stats(
    employee_id: Optional[str] = None,
    store: PhoneTaskStore = Depends(get_store),
):
    return await lead_outcome_stats(store, employee_id)


@employees_router.get("/{employee_id}/phone-tasks", response_model=List[PhoneTaskOut])
async def list_employee_tasks(employee_id: str, store: PhoneTaskStore = Depends(get_store)):
    return await tasks_for_employee(store, employee_id)


@employees_router.get("/{employee_id}/task-calendar", response_model=List[CalendarDay])
async def get_task_calendar(
    employee_id: str,
    start: date,
    end: date,
    store: PhoneTaskStore = Depends(get_store),
):
    if start > end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Start date must be before end date",
        )
    return await employee_calendar(store, employee_id, start, end)


@employees_router.get("/{employee_id}/upcoming-tasks", response_model=List[PhoneTaskOut])
async def get_upcoming_tasks(
    employee_id: str,
    limit: int = Query(10, ge=1, le=100),
    store: PhoneTaskStore = Depends(get_store),
):
    return await upcoming_tasks(store, employee_id, limit)
