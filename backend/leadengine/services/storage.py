"""Row-store primitives over batches and phone tasks.

Every public coroutine here is one storage call: it commits on success and
rolls the session back and raises ``PersistenceError`` on any database
failure. Multi-call operations (chunked inserts, chunked assignments) are
composed by the services on top; nothing here spans calls.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from loguru import logger
from sqlalchemy import case, delete, func, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leadengine.core.errors import PersistenceError
from leadengine.models.phone_batch import PhoneNumberBatch, PhoneTask

_ID_LOOKUP_CHUNK = 500


def chunked(items: Sequence[Any], size: int) -> Iterable[Sequence[Any]]:
    if size < 1:
        raise ValueError("chunk size must be positive")
    for start in range(0, len(items), size):
        yield items[start : start + size]


class PhoneTaskStore:
    """Storage collaborator used by the ingestion and distribution services."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @asynccontextmanager
    async def _storage_call(self, operation: str, **fields: Any) -> AsyncIterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.bind(operation=operation, error=str(exc), **fields).error("storage_call_failed")
            raise PersistenceError(f"Storage call '{operation}' failed.") from exc

    # -- batches -----------------------------------------------------------

    async def create_batch(
        self,
        *,
        batch_id: str,
        file_name: str,
        assignment_mode: str,
        uploaded_by: str,
        total_numbers: int,
        created_at: datetime,
    ) -> PhoneNumberBatch:
        batch = PhoneNumberBatch(
            id=batch_id,
            file_name=file_name,
            assignment_mode=assignment_mode,
            uploaded_by=uploaded_by,
            total_numbers=total_numbers,
            created_at=created_at,
        )
        async with self._storage_call("create_batch", batch_id=batch_id):
            self.session.add(batch)
            await self.session.commit()
        return batch

    async def get_batch(self, batch_id: str) -> Optional[PhoneNumberBatch]:
        async with self._storage_call("get_batch", batch_id=batch_id):
            return await self.session.get(PhoneNumberBatch, batch_id, populate_existing=True)

    async def list_batches(self) -> List[PhoneNumberBatch]:
        stmt = select(PhoneNumberBatch).order_by(
            PhoneNumberBatch.created_at.desc(), PhoneNumberBatch.id
        )
        async with self._storage_call("list_batches"):
            return list((await self.session.execute(stmt)).scalars().all())

    async def delete_batch(self, batch_id: str) -> bool:
        """Delete the batch and its tasks in a single transaction."""

        async with self._storage_call("delete_batch", batch_id=batch_id):
            await self.session.execute(
                delete(PhoneTask)
                .where(PhoneTask.batch_id == batch_id)
                .execution_options(synchronize_session=False)
            )
            result = await self.session.execute(
                delete(PhoneNumberBatch)
                .where(PhoneNumberBatch.id == batch_id)
                .execution_options(synchronize_session=False)
            )
            await self.session.commit()
        self.session.expunge_all()
        return bool(result.rowcount)

    async def batch_task_counts(self) -> Dict[str, Tuple[int, int]]:
        """``batch_id -> (tasks, unassigned tasks)`` for every batch with tasks."""

        stmt = select(
            PhoneTask.batch_id,
            func.count(PhoneTask.id),
            func.sum(case((PhoneTask.assigned_to.is_(None), 1), else_=0)),
        ).group_by(PhoneTask.batch_id)
        async with self._storage_call("batch_task_counts"):
            rows = (await self.session.execute(stmt)).all()
        return {batch_id: (int(total), int(unassigned or 0)) for batch_id, total, unassigned in rows}

    # -- tasks -------------------------------------------------------------

    async def insert_tasks(self, rows: Sequence[Dict[str, Any]]) -> None:
        if not rows:
            return
        async with self._storage_call("insert_tasks", rows=len(rows)):
            await self.session.execute(insert(PhoneTask), list(rows))
            await self.session.commit()

    async def get_task(self, task_id: str) -> Optional[PhoneTask]:
        async with self._storage_call("get_task", task_id=task_id):
            return await self.session.get(PhoneTask, task_id, populate_existing=True)

    async def select_tasks(
        self,
        *criteria: Any,
        order_by: Sequence[Any] = (),
        limit: Optional[int] = None,
    ) -> List[PhoneTask]:
        """Filtered read; ``criteria`` are SQLAlchemy boolean clauses."""

        stmt = select(PhoneTask).where(*criteria).execution_options(populate_existing=True)
        if order_by:
            stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        async with self._storage_call("select_tasks"):
            return list((await self.session.execute(stmt)).scalars().all())

    async def unassigned_task_ids(self, batch_id: str) -> List[str]:
        """Ids of the batch's unassigned tasks in upload order."""

        stmt = (
            select(PhoneTask.id)
            .where(PhoneTask.batch_id == batch_id, PhoneTask.assigned_to.is_(None))
            .order_by(PhoneTask.seq, PhoneTask.id)
        )
        async with self._storage_call("unassigned_task_ids", batch_id=batch_id):
            return list((await self.session.execute(stmt)).scalars().all())

    async def task_ids_in_batch(self, batch_id: str, task_ids: Sequence[str]) -> Set[str]:
        """Subset of ``task_ids`` that belongs to ``batch_id``."""

        found: Set[str] = set()
        async with self._storage_call("task_ids_in_batch", batch_id=batch_id):
            for chunk in chunked(list(task_ids), _ID_LOOKUP_CHUNK):
                stmt = select(PhoneTask.id).where(
                    PhoneTask.batch_id == batch_id, PhoneTask.id.in_(chunk)
                )
                found.update((await self.session.execute(stmt)).scalars().all())
        return found

    async def assign_chunk(
        self,
        pairs: Sequence[Tuple[str, str]],
        *,
        due_date: datetime,
        priority: str,
        only_unassigned: bool,
        updated_at: datetime,
    ) -> Dict[str, int]:
        """Write one chunk of ``(task_id, employee_id)`` assignments.

        Returns the number of rows actually written per employee. With
        ``only_unassigned`` a task that gained an assignee since it was read
        is left alone.
        """

        by_employee: Dict[str, List[str]] = {}
        for task_id, employee_id in pairs:
            by_employee.setdefault(employee_id, []).append(task_id)

        written: Dict[str, int] = {}
        async with self._storage_call("assign_chunk", rows=len(pairs)):
            for employee_id, task_ids in by_employee.items():
                stmt = update(PhoneTask).where(PhoneTask.id.in_(task_ids))
                if only_unassigned:
                    stmt = stmt.where(PhoneTask.assigned_to.is_(None))
                result = await self.session.execute(
                    stmt.values(
                        assigned_to=employee_id,
                        due_date=due_date,
                        priority=priority,
                        updated_at=updated_at,
                    ).execution_options(synchronize_session=False)
                )
                written[employee_id] = result.rowcount or 0
            await self.session.commit()
        return written

    async def update_task(self, task_id: str, values: Dict[str, Any], *criteria: Any) -> int:
        """Update one task; extra ``criteria`` narrow the match (e.g. a version guard)."""

        stmt = (
            update(PhoneTask)
            .where(PhoneTask.id == task_id, *criteria)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        async with self._storage_call("update_task", task_id=task_id):
            result = await self.session.execute(stmt)
            await self.session.commit()
        return result.rowcount or 0
