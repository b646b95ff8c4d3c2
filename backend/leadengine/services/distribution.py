"""Hand the tasks of a batch out to employees.

Both strategies write in sequential chunks keyed by task id and share one
due date per call. A failing chunk raises ``PersistenceError`` and leaves
the chunks already written in place: a partly distributed batch is still
consistent (the remainder stays unassigned) and running the random
strategy again finishes it.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from loguru import logger

from leadengine.core.concurrency import batch_lock
from leadengine.core.config import settings
from leadengine.core.errors import NotFoundError
from leadengine.models.phone_batch import PhoneTask
from leadengine.schemas.assignment import (
    AssignmentOptions,
    NameMatchAssignmentResult,
    RandomAssignmentResult,
    TargetedAssignmentResult,
    TargetedPair,
)
from leadengine.services.employees import EmployeeDirectory
from leadengine.services.name_matching import propose_assignments
from leadengine.services.storage import PhoneTaskStore, chunked


async def _require_batch(store: PhoneTaskStore, batch_id: str) -> None:
    if await store.get_batch(batch_id) is None:
        raise NotFoundError("Batch not found")


async def _write_assignments(
    store: PhoneTaskStore,
    plan: Sequence[Tuple[str, str]],
    options: AssignmentOptions,
    *,
    only_unassigned: bool,
    now: datetime,
) -> Dict[str, int]:
    due_date = now + timedelta(days=options.due_in_days)
    written: Dict[str, int] = {}
    for chunk in chunked(list(plan), settings.ASSIGNMENT_CHUNK_SIZE):
        counts = await store.assign_chunk(
            chunk,
            due_date=due_date,
            priority=options.priority.value,
            only_unassigned=only_unassigned,
            updated_at=now,
        )
        for employee_id, count in counts.items():
            if count:
                written[employee_id] = written.get(employee_id, 0) + count
    return written


async def distribute_random(
    store: PhoneTaskStore,
    batch_id: str,
    employee_ids: Sequence[str],
    options: Optional[AssignmentOptions] = None,
    *,
    now: Optional[datetime] = None,
) -> RandomAssignmentResult:
    """Round-robin the batch's unassigned tasks over ``employee_ids``.

    Task ``i`` in upload order goes to ``employee_ids[i % len(employee_ids)]``.
    """

    if not employee_ids:
        return RandomAssignmentResult()
    options = options or AssignmentOptions()
    now = now or datetime.now()

    await _require_batch(store, batch_id)
    async with batch_lock(batch_id):
        task_ids = await store.unassigned_task_ids(batch_id)
        plan = [
            (task_id, employee_ids[index % len(employee_ids)])
            for index, task_id in enumerate(task_ids)
        ]
        written = await _write_assignments(store, plan, options, only_unassigned=True, now=now)

    assigned = sum(written.values())
    if assigned < len(plan):
        logger.bind(batch_id=batch_id, planned=len(plan), assigned=assigned).warning(
            "random_distribution_lost_race"
        )
    logger.bind(
        batch_id=batch_id,
        employees=len(employee_ids),
        assigned=assigned,
    ).info("random_distribution_completed")
    return RandomAssignmentResult(assigned_count=assigned, per_employee_count=written)


async def distribute_targeted(
    store: PhoneTaskStore,
    batch_id: str,
    pairs: Sequence[TargetedPair],
    options: Optional[AssignmentOptions] = None,
    *,
    now: Optional[datetime] = None,
) -> TargetedAssignmentResult:
    """Assign explicit tasks to explicit employees, overwriting prior owners.

    Pairs whose task is unknown or lives in another batch are dropped and
    reported back in ``skipped_task_ids``. A task named twice keeps the
    last employee given for it.
    """

    if not pairs:
        return TargetedAssignmentResult()
    options = options or AssignmentOptions()
    now = now or datetime.now()

    await _require_batch(store, batch_id)
    latest: Dict[str, str] = {}
    for pair in pairs:
        latest.pop(pair.phone_task_id, None)
        latest[pair.phone_task_id] = pair.employee_id

    async with batch_lock(batch_id):
        valid_ids = await store.task_ids_in_batch(batch_id, list(latest))
        plan = [(task_id, employee_id) for task_id, employee_id in latest.items() if task_id in valid_ids]
        skipped = [task_id for task_id in latest if task_id not in valid_ids]
        written = await _write_assignments(store, plan, options, only_unassigned=False, now=now)

    assigned = sum(written.values())
    logger.bind(
        batch_id=batch_id,
        requested=len(pairs),
        assigned=assigned,
        skipped=len(skipped),
    ).info("targeted_distribution_completed")
    return TargetedAssignmentResult(assigned_count=assigned, skipped_task_ids=skipped)


async def unassigned_hinted_tasks(store: PhoneTaskStore, batch_id: str) -> List[PhoneTask]:
    return await store.select_tasks(
        PhoneTask.batch_id == batch_id,
        PhoneTask.assigned_to.is_(None),
        PhoneTask.assigned_employee_name.is_not(None),
        order_by=(PhoneTask.seq, PhoneTask.id),
    )


async def apply_name_matches(
    store: PhoneTaskStore,
    directory: EmployeeDirectory,
    batch_id: str,
    options: Optional[AssignmentOptions] = None,
    *,
    now: Optional[datetime] = None,
) -> NameMatchAssignmentResult:
    """Persist exact name-hint matches for the batch's unassigned tasks."""

    await _require_batch(store, batch_id)
    tasks = await unassigned_hinted_tasks(store, batch_id)
    report = propose_assignments(tasks, await directory.list_employees())
    result = await distribute_targeted(store, batch_id, report.matched, options, now=now)
    return NameMatchAssignmentResult(
        assigned_count=result.assigned_count,
        skipped_task_ids=result.skipped_task_ids,
        unmatched_task_ids=report.unmatched_task_ids,
    )
