"""Create a batch and its phone tasks with all-or-nothing visibility.

Task rows go out in sequential chunks, each committed on its own. If a
chunk fails, the batch created at the start is deleted (its tasks go with
it) and the storage error propagates, so callers either get a complete
batch or nothing. Concurrent readers may briefly see a partial batch before
the compensation lands.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from leadengine.core.config import settings
from leadengine.core.errors import FormatError
from leadengine.models.enums import AssignmentMode
from leadengine.models.phone_batch import PhoneNumberBatch
from leadengine.services.document_parser import invalid_phone_numbers, parse_document_text
from leadengine.services.employees import EmployeeDirectory
from leadengine.services.name_matching import resolve_hints
from leadengine.services.saga import Saga
from leadengine.services.storage import PhoneTaskStore, chunked


@dataclass(slots=True)
class TaskSeed:
    phone_number: str
    assigned_to: Optional[str] = None
    assigned_employee_name: Optional[str] = None


@dataclass(slots=True)
class NewBatch:
    file_name: str
    assignment_mode: AssignmentMode
    uploaded_by: str
    total_numbers: int


def _seed_rows(batch_id: str, seeds: Sequence[TaskSeed], now: datetime) -> List[Dict[str, Any]]:
    return [
        {
            "id": str(uuid.uuid4()),
            "batch_id": batch_id,
            "seq": index,
            "phone_number": seed.phone_number,
            "assigned_to": seed.assigned_to,
            "assigned_employee_name": seed.assigned_employee_name,
            "created_at": now,
        }
        for index, seed in enumerate(seeds)
    ]


async def persist_batch(
    store: PhoneTaskStore,
    batch: NewBatch,
    seeds: Sequence[TaskSeed],
    *,
    chunk_size: Optional[int] = None,
    now: Optional[datetime] = None,
) -> PhoneNumberBatch:
    now = now or datetime.now()
    chunk_size = chunk_size or settings.TASK_INSERT_CHUNK_SIZE

    created = await store.create_batch(
        batch_id=str(uuid.uuid4()),
        file_name=batch.file_name,
        assignment_mode=batch.assignment_mode.value,
        uploaded_by=batch.uploaded_by,
        total_numbers=batch.total_numbers,
        created_at=now,
    )
    batch_id = created.id

    rows = _seed_rows(batch_id, seeds, now)
    chunks = 0
    async with Saga("batch_ingestion", batch_id=batch_id) as saga:
        saga.on_failure("delete_batch", lambda: store.delete_batch(batch_id))
        for chunk in chunked(rows, chunk_size):
            await store.insert_tasks(chunk)
            chunks += 1

    logger.bind(
        batch_id=batch_id,
        tasks=len(rows),
        chunks=chunks,
        mode=batch.assignment_mode.value,
    ).info("batch_persisted")
    return created


async def ingest_document(
    store: PhoneTaskStore,
    directory: EmployeeDirectory,
    *,
    text: str,
    file_name: str,
    uploaded_by: str,
    resolve_names: bool = True,
    strict: bool = False,
) -> PhoneNumberBatch:
    """Parse ``text`` and persist it as a new batch.

    Targeted documents name their intended employee; with ``resolve_names``
    the hints that match an employee exactly are seeded as assignments.
    Cold-calling documents are always stored unassigned.
    """

    parsed = parse_document_text(text)

    if strict:
        invalid = invalid_phone_numbers(parsed)
        if invalid:
            sample = ", ".join(invalid[:5])
            raise FormatError(f"{len(invalid)} phone number(s) are not valid mobile numbers: {sample}")

    matches: Dict[str, Optional[str]] = {}
    if parsed.assignment_mode == AssignmentMode.TARGETED and resolve_names:
        employees = await directory.list_employees()
        matches = resolve_hints((a.employee_name_hint for a in parsed.assignments), employees)
        unresolved = sorted(hint for hint, employee_id in matches.items() if employee_id is None)
        if unresolved:
            logger.bind(file_name=file_name, hints=unresolved).info("name_hints_unresolved")

    seeds = [
        TaskSeed(
            phone_number=number,
            assigned_to=matches.get(assignment.employee_name_hint),
            assigned_employee_name=assignment.employee_name_hint,
        )
        for assignment in parsed.assignments
        for number in assignment.phone_numbers
    ]

    return await persist_batch(
        store,
        NewBatch(
            file_name=file_name,
            assignment_mode=parsed.assignment_mode,
            uploaded_by=uploaded_by,
            total_numbers=len(seeds),
        ),
        seeds,
    )
