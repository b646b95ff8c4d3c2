"""Task status transitions and the status-to-bucket table.

``call_status`` holds values from two vocabularies: work-item states
(pending, in_progress, completed, cancelled) and lead-qualification
outcomes (called, interested, not_interested, callback, converted). Every
view counts tasks by ``WorkBucket``, so each status maps to exactly one
bucket here and nowhere else:

==============  ===========
status          bucket
==============  ===========
pending         pending
in_progress     in_progress
called          in_progress
interested      in_progress
callback        in_progress
completed       completed
converted       completed
not_interested  completed
cancelled       cancelled
==============  ===========

Transitions are unrestricted; any status may follow any other.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, FrozenSet, Optional

from loguru import logger

from leadengine.core.errors import ConflictError, NotFoundError
from leadengine.models.enums import TaskStatus, WorkBucket
from leadengine.models.phone_batch import PhoneTask
from leadengine.schemas.task import TaskStatusUpdate
from leadengine.services.storage import PhoneTaskStore

STATUS_BUCKETS: Dict[TaskStatus, WorkBucket] = {
    TaskStatus.PENDING: WorkBucket.PENDING,
    TaskStatus.IN_PROGRESS: WorkBucket.IN_PROGRESS,
    TaskStatus.CALLED: WorkBucket.IN_PROGRESS,
    TaskStatus.INTERESTED: WorkBucket.IN_PROGRESS,
    TaskStatus.CALLBACK: WorkBucket.IN_PROGRESS,
    TaskStatus.COMPLETED: WorkBucket.COMPLETED,
    TaskStatus.CONVERTED: WorkBucket.COMPLETED,
    TaskStatus.NOT_INTERESTED: WorkBucket.COMPLETED,
    TaskStatus.CANCELLED: WorkBucket.CANCELLED,
}


def bucket_for(status: Optional[str]) -> WorkBucket:
    """Bucket of a stored status; unknown or missing values count as pending."""

    if status is None:
        return WorkBucket.PENDING
    try:
        return STATUS_BUCKETS[TaskStatus(status)]
    except ValueError:
        logger.bind(call_status=status).warning("unknown_call_status")
        return WorkBucket.PENDING


def statuses_in(*buckets: WorkBucket) -> FrozenSet[str]:
    return frozenset(status.value for status, bucket in STATUS_BUCKETS.items() if bucket in buckets)


def build_status_changes(update: TaskStatusUpdate, now: datetime) -> Dict[str, Any]:
    """Column values for ``update``; stamps ``completed_at`` on completion."""

    changes = update.model_dump(exclude_unset=True, exclude={"expected_updated_at"})
    status = update.call_status
    if status is None:
        changes.pop("call_status", None)
    else:
        changes["call_status"] = status.value
        if STATUS_BUCKETS[status] is WorkBucket.COMPLETED and update.completed_at is None:
            changes["completed_at"] = now
    return changes


async def update_task_status(
    store: PhoneTaskStore,
    task_id: str,
    update: TaskStatusUpdate,
    *,
    now: Optional[datetime] = None,
) -> PhoneTask:
    now = now or datetime.now()
    task = await store.get_task(task_id)
    if task is None:
        raise NotFoundError("Phone task not found")

    changes = build_status_changes(update, now)
    if not changes:
        return task
    changes["updated_at"] = now

    guard = []
    if "expected_updated_at" in update.model_fields_set:
        expected = update.expected_updated_at
        if task.updated_at != expected:
            raise ConflictError()
        guard.append(
            PhoneTask.updated_at.is_(None) if expected is None else PhoneTask.updated_at == expected
        )

    if not await store.update_task(task_id, changes, *guard):
        # Gone or changed between the read and the write.
        raise ConflictError()

    logger.bind(
        task_id=task_id,
        previous_status=task.call_status,
        call_status=changes.get("call_status", task.call_status),
    ).info("task_status_updated")
    refreshed = await store.get_task(task_id)
    if refreshed is None:
        raise NotFoundError("Phone task not found")
    return refreshed
