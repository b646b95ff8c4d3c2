"""Read-only calendar and statistics views over phone tasks.

Everything here is computed on read with a full scan of the filtered rows;
nothing is cached or maintained incrementally.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Dict, Iterable, List, Optional, Union

from leadengine.models.enums import TaskStatus, WorkBucket
from leadengine.models.phone_batch import PhoneTask
from leadengine.schemas.ingestion import BatchSummaryOut, PhoneTaskOut
from leadengine.schemas.task import CalendarCounts, CalendarDay, LeadOutcomeStats, TaskStats
from leadengine.services.lifecycle import bucket_for, statuses_in
from leadengine.services.storage import PhoneTaskStore

DateBound = Union[date, datetime]


def _day_start(value: DateBound) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def _day_end(value: DateBound) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.max)


def build_calendar(tasks: Iterable[PhoneTask]) -> List[CalendarDay]:
    """Group tasks by the calendar date of ``due_date``, oldest day first."""

    days: Dict[str, CalendarDay] = {}
    for task in tasks:
        if task.due_date is None:
            continue
        key = task.due_date.date().isoformat()
        day = days.get(key)
        if day is None:
            day = days[key] = CalendarDay(date=key, counts=CalendarCounts())
        day.tasks.append(PhoneTaskOut.model_validate(task))
        bucket = bucket_for(task.call_status)
        if bucket is WorkBucket.PENDING:
            day.counts.pending += 1
        elif bucket is WorkBucket.IN_PROGRESS:
            day.counts.in_progress += 1
        elif bucket is WorkBucket.COMPLETED:
            day.counts.completed += 1
    return [days[key] for key in sorted(days)]


async def employee_calendar(
    store: PhoneTaskStore,
    employee_id: str,
    start: DateBound,
    end: DateBound,
) -> List[CalendarDay]:
    tasks = await store.select_tasks(
        PhoneTask.assigned_to == employee_id,
        PhoneTask.due_date.is_not(None),
        PhoneTask.due_date >= _day_start(start),
        PhoneTask.due_date <= _day_end(end),
        order_by=(PhoneTask.due_date, PhoneTask.seq),
    )
    return build_calendar(tasks)


def compute_task_stats(tasks: Iterable[PhoneTask], now: Optional[datetime] = None) -> TaskStats:
    now = now or datetime.now()
    today_start = datetime.combine(now.date(), time.min)
    today_end = datetime.combine(now.date(), time.max)

    stats = TaskStats()
    for task in tasks:
        stats.total += 1
        bucket = bucket_for(task.call_status)
        if bucket is WorkBucket.PENDING:
            stats.pending += 1
        elif bucket is WorkBucket.IN_PROGRESS:
            stats.in_progress += 1
        elif bucket is WorkBucket.COMPLETED:
            stats.completed += 1

        if bucket is not WorkBucket.COMPLETED:
            if task.due_date is not None and task.due_date < today_start:
                stats.overdue += 1
        elif task.completed_at is not None and today_start <= task.completed_at <= today_end:
            stats.completed_today += 1
    return stats


async def task_stats(
    store: PhoneTaskStore,
    employee_id: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
) -> TaskStats:
    criteria = [PhoneTask.assigned_to == employee_id] if employee_id else []
    return compute_task_stats(await store.select_tasks(*criteria), now)


def compute_lead_outcome_stats(tasks: Iterable[PhoneTask]) -> LeadOutcomeStats:
    """Raw counts of the lead-qualification outcomes, without bucketing."""

    stats = LeadOutcomeStats()
    for task in tasks:
        stats.total += 1
        if task.call_status == TaskStatus.PENDING.value:
            stats.pending += 1
        elif task.call_status == TaskStatus.CALLED.value:
            stats.called += 1
        elif task.call_status == TaskStatus.INTERESTED.value:
            stats.interested += 1
        elif task.call_status == TaskStatus.CONVERTED.value:
            stats.converted += 1
    return stats


async def lead_outcome_stats(store: PhoneTaskStore, employee_id: Optional[str] = None) -> LeadOutcomeStats:
    criteria = [PhoneTask.assigned_to == employee_id] if employee_id else []
    return compute_lead_outcome_stats(await store.select_tasks(*criteria))


async def upcoming_tasks(store: PhoneTaskStore, employee_id: str, limit: int = 10) -> List[PhoneTask]:
    """Open tasks for an employee, soonest due first, undated last."""

    return await store.select_tasks(
        PhoneTask.assigned_to == employee_id,
        PhoneTask.call_status.in_(sorted(statuses_in(WorkBucket.PENDING, WorkBucket.IN_PROGRESS))),
        order_by=(PhoneTask.due_date.is_(None), PhoneTask.due_date, PhoneTask.seq),
        limit=limit,
    )


async def batch_summaries(store: PhoneTaskStore) -> List[BatchSummaryOut]:
    """Batches newest first, with how many of their tasks are still unassigned."""

    counts = await store.batch_task_counts()
    summaries = []
    for batch in await store.list_batches():
        task_count, unassigned_count = counts.get(batch.id, (0, 0))
        summaries.append(
            BatchSummaryOut.model_validate(batch).model_copy(
                update={"task_count": task_count, "unassigned_count": unassigned_count}
            )
        )
    return summaries


async def tasks_for_batch(store: PhoneTaskStore, batch_id: str) -> List[PhoneTask]:
    return await store.select_tasks(
        PhoneTask.batch_id == batch_id, order_by=(PhoneTask.seq, PhoneTask.id)
    )


async def tasks_for_employee(store: PhoneTaskStore, employee_id: str) -> List[PhoneTask]:
    return await store.select_tasks(
        PhoneTask.assigned_to == employee_id,
        order_by=(PhoneTask.created_at.desc(), PhoneTask.seq),
    )
