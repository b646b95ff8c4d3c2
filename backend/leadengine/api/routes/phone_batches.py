"""API endpoints for lead batches: upload, listing, deletion and distribution."""

from pathlib import Path
from typing import Annotated, List

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from leadengine.core.audit import log_audit
from leadengine.core.config import settings
from leadengine.core.db import get_session
from leadengine.core.deps import get_actor_id, get_directory, get_store, remote_addr
from leadengine.core.errors import NotFoundError
from leadengine.core.rate_limit import limiter
from leadengine.schemas.assignment import (
    AssignmentOptions,
    NameMatchAssignmentResult,
    NameMatchOut,
    RandomAssignmentRequest,
    RandomAssignmentResult,
    TargetedAssignmentRequest,
    TargetedAssignmentResult,
)
from leadengine.schemas.ingestion import (
    BatchOut,
    BatchSummaryOut,
    BatchTextUpload,
    ParsedDocument,
    PhoneTaskOut,
)
from leadengine.services.batch_persistence import ingest_document
from leadengine.services.distribution import (
    apply_name_matches,
    distribute_random,
    distribute_targeted,
    unassigned_hinted_tasks,
)
from leadengine.services.document_parser import parse_document_text
from leadengine.services.employees import EmployeeDirectory
from leadengine.services.name_matching import propose_assignments
from leadengine.services.storage import PhoneTaskStore
from leadengine.services.text_extraction import extract_text
from leadengine.services.views import batch_summaries, tasks_for_batch

router = APIRouter(prefix="/phone-batches", tags=["phone_batches"])

ALLOWED_EXTENSIONS = {".docx"}


async def _read_document(file: UploadFile) -> tuple[str, str]:
    """Validate an uploaded Word file and return ``(file_name, text)``."""

    filename = (file.filename or "").strip()
    if not filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file was uploaded.",
        )
    if Path(filename).suffix.lower() not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only Word documents (.docx) can be uploaded.",
        )

    try:
        raw_bytes = await file.read(settings.MAX_UPLOAD_BYTES + 1)
    finally:
        await file.close()

    if not raw_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="The uploaded file is empty.",
        )
    if len(raw_bytes) > settings.MAX_UPLOAD_BYTES:
        max_size_mb = settings.MAX_UPLOAD_BYTES / (1024 * 1024)
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Max allowed size is {max_size_mb:.0f} MB.",
        )

    try:
        text = await extract_text(raw_bytes)
    except TimeoutError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Document processing timed out. Please retry.",
            headers={"Retry-After": "2"},
        ) from exc
    return filename, text


async def _ensure_batch(store: PhoneTaskStore, batch_id: str) -> None:
    if await store.get_batch(batch_id) is None:
        raise NotFoundError("Batch not found")


@router.post("/preview", response_model=ParsedDocument)
@limiter.limit(settings.DOC_UPLOAD_RATE)
async def preview_document(
    request: Request,
    file: Annotated[UploadFile, File(...)],
) -> ParsedDocument:
    """Parse an uploaded document without storing anything."""

    _, text = await _read_document(file)
    return parse_document_text(text)


@router.post("/upload", response_model=BatchOut, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.DOC_UPLOAD_RATE)
async def upload_document(
    request: Request,
    file: Annotated[UploadFile, File(...)],
    uploaded_by: Annotated[str, Form(min_length=1, max_length=36)],
    resolve_names: Annotated[bool, Form()] = True,
    strict: Annotated[bool, Form()] = False,
    session: AsyncSession = Depends(get_session),
    store: PhoneTaskStore = Depends(get_store),
    directory: EmployeeDirectory = Depends(get_directory),
    actor_id: str = Depends(get_actor_id),
):
    filename, text = await _read_document(file)
    batch = await ingest_document(
        store,
        directory,
        text=text,
        file_name=filename,
        uploaded_by=uploaded_by,
        resolve_names=resolve_names,
        strict=strict,
    )
    await log_audit(
        session,
        actor_id,
        "phone_batch",
        batch.id,
        "UPLOAD",
        details={"file_name": filename, "total_numbers": batch.total_numbers},
        remote_addr=remote_addr(request),
    )
    return batch


@router.post("", response_model=BatchOut, status_code=status.HTTP_201_CREATED)
async def create_batch_from_text(
    payload: BatchTextUpload,
    request: Request,
    session: AsyncSession = Depends(get_session),
    store: PhoneTaskStore = Depends(get_store),
    directory: EmployeeDirectory = Depends(get_directory),
    actor_id: str = Depends(get_actor_id),
):
    """Ingest a document whose text was extracted by the caller."""

    batch = await ingest_document(
        store,
        directory,
        text=payload.text,
        file_name=payload.file_name,
        uploaded_by=payload.uploaded_by,
        resolve_names=payload.resolve_names,
        strict=payload.strict,
    )
    await log_audit(
        session,
        actor_id,
        "phone_batch",
        batch.id,
        "CREATE",
        details={"file_name": payload.file_name, "total_numbers": batch.total_numbers},
        remote_addr=remote_addr(request),
    )
    return batch


@router.get("", response_model=List[BatchSummaryOut])
async def list_batches(store: PhoneTaskStore = Depends(get_store)):
    return await batch_summaries(store)


@router.get("/{batch_id}/tasks", response_model=List[PhoneTaskOut])
async def list_batch_tasks(batch_id: str, store: PhoneTaskStore = Depends(get_store)):
    await _ensure_batch(store, batch_id)
    return await tasks_for_batch(store, batch_id)


@router.delete("/{batch_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_batch(
    batch_id: str,
    request: Request,
    session: AsyncSession = Depends(get_session),
    store: PhoneTaskStore = Depends(get_store),
    actor_id: str = Depends(get_actor_id),
):
    if not await store.delete_batch(batch_id):
        raise NotFoundError("Batch not found")
    await log_audit(
        session,
        actor_id,
        "phone_batch",
        batch_id,
        "DELETE",
        remote_addr=remote_addr(request),
    )


@router.get("/{batch_id}/name-matches", response_model=NameMatchOut)
async def preview_name_matches(
    batch_id: str,
    store: PhoneTaskStore = Depends(get_store),
    directory: EmployeeDirectory = Depends(get_directory),
):
    await _ensure_batch(store, batch_id)
    tasks = await unassigned_hinted_tasks(store, batch_id)
    return propose_assignments(tasks, await directory.list_employees())


@router.post("/{batch_id}/assign/random", response_model=RandomAssignmentResult)
async def assign_random(
    batch_id: str,
    payload: RandomAssignmentRequest,
    request: Request,
    session: AsyncSession = Depends(get_session),
    store: PhoneTaskStore = Depends(get_store),
    actor_id: str = Depends(get_actor_id),
):
    options = AssignmentOptions(due_in_days=payload.due_in_days, priority=payload.priority)
    result = await distribute_random(store, batch_id, payload.employee_ids, options)
    if result.assigned_count:
        await log_audit(
            session,
            actor_id,
            "phone_batch",
            batch_id,
            "ASSIGN_RANDOM",
            details=result.model_dump(),
            remote_addr=remote_addr(request),
        )
    return result


@router.post("/{batch_id}/assign/targeted", response_model=TargetedAssignmentResult)
async def assign_targeted(
    batch_id: str,
    payload: TargetedAssignmentRequest,
    request: Request,
    session: AsyncSession = Depends(get_session),
    store: PhoneTaskStore = Depends(get_store),
    actor_id: str = Depends(get_actor_id),
):
    options = AssignmentOptions(due_in_days=payload.due_in_days, priority=payload.priority)
    result = await distribute_targeted(store, batch_id, payload.assignments, options)
    if result.assigned_count:
        await log_audit(
            session,
            actor_id,
            "phone_batch",
            batch_id,
            "ASSIGN_TARGETED",
            details=result.model_dump(),
            remote_addr=remote_addr(request),
        )
    return result


@router.post("/{batch_id}/assign/name-matches", response_model=NameMatchAssignmentResult)
async def assign_name_matches(
    batch_id: str,
    payload: AssignmentOptions,
    request: Request,
    session: AsyncSession = Depends(get_session),
    store: PhoneTaskStore = Depends(get_store),
    directory: EmployeeDirectory = Depends(get_directory),
    actor_id: str = Depends(get_actor_id),
):
    result = await apply_name_matches(store, directory, batch_id, payload)
    if result.assigned_count:
        await log_audit(
            session,
            actor_id,
            "phone_batch",
            batch_id,
            "ASSIGN_MATCHED",
            details={"assigned_count": result.assigned_count},
            remote_addr=remote_addr(request),
        )
    return result
