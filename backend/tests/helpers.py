"""Shared builders for the engine tests."""

from datetime import datetime

from leadengine.models.enums import AssignmentMode
from leadengine.services.batch_persistence import NewBatch, TaskSeed, persist_batch

NOW = datetime(2025, 3, 10, 12, 0, 0)


async def make_batch(store, numbers, *, hints=None, assigned=None, mode=AssignmentMode.COLD_CALLING):
    """Persist a batch whose tasks carry ``numbers`` in order."""

    hints = hints or [None] * len(numbers)
    assigned = assigned or [None] * len(numbers)
    seeds = [
        TaskSeed(phone_number=number, assigned_to=owner, assigned_employee_name=hint)
        for number, hint, owner in zip(numbers, hints, assigned)
    ]
    return await persist_batch(
        store,
        NewBatch(
            file_name="leads.docx",
            assignment_mode=mode,
            uploaded_by="emp-admin",
            total_numbers=len(seeds),
        ),
        seeds,
        now=NOW,
    )


def phone_numbers(count, start=0):
    return [f"010{index:08d}" for index in range(start, start + count)]
