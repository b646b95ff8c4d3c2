"""Ordered compensable steps for multi-call writes.

Storage calls are committed one at a time, so a write that spans several
calls cannot be rolled back by the database. A ``Saga`` collects the
compensating actions up front and runs them, newest first, when the block
fails. The exception raised by the step always propagates.

    async with Saga("batch_ingestion", batch_id=batch.id) as saga:
        saga.on_failure("delete_batch", lambda: store.delete_batch(batch.id))
        for chunk in chunks:
            await store.insert_tasks(chunk)
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, List, Tuple

from loguru import logger

Compensation = Callable[[], Awaitable[Any]]


class Saga:
    def __init__(self, name: str, **context: Any) -> None:
        self.name = name
        self.context = context
        self._compensations: List[Tuple[str, Compensation]] = []
        self.compensated = False

    def on_failure(self, label: str, action: Compensation) -> None:
        """Register ``action`` to run if the saga block raises."""

        self._compensations.append((label, action))

    async def compensate(self) -> None:
        for label, action in reversed(self._compensations):
            try:
                await action()
            except Exception as exc:
                # The step failure is what the caller must see; this one is only logged.
                logger.bind(saga=self.name, step=label, error=str(exc), **self.context).error(
                    "saga_compensation_failed"
                )
            else:
                logger.bind(saga=self.name, step=label, **self.context).warning(
                    "saga_compensated"
                )
        self.compensated = True

    async def __aenter__(self) -> "Saga":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc is not None:
            logger.bind(saga=self.name, error=str(exc), **self.context).warning("saga_step_failed")
            await self.compensate()
        return False
