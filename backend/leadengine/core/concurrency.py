"""Concurrency helpers for worker threads and per-batch serialization."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable

import anyio

from leadengine.core.config import settings

_doc_sem = anyio.Semaphore(settings.DOC_MAX_CONCURRENCY)
# Locks live only while someone holds or waits on them.
_batch_locks: dict[str, anyio.Lock] = {}
_batch_lock_users: dict[str, int] = {}


async def run_in_thread_limited(func: Callable[..., Any], *args: Any, **kwargs: Any):
    """Run a sync callable in a worker thread with bounded concurrency."""

    async with _doc_sem:
        return await anyio.to_thread.run_sync(func, *args, **kwargs)


@asynccontextmanager
async def batch_lock(batch_id: str) -> AsyncIterator[None]:
    """Serialize writers of one batch inside this process."""

    lock = _batch_locks.get(batch_id)
    if lock is None:
        lock = _batch_locks[batch_id] = anyio.Lock()
    _batch_lock_users[batch_id] = _batch_lock_users.get(batch_id, 0) + 1
    try:
        async with lock:
            yield
    finally:
        remaining = _batch_lock_users[batch_id] - 1
        if remaining:
            _batch_lock_users[batch_id] = remaining
        else:
            del _batch_lock_users[batch_id]
            del _batch_locks[batch_id]
