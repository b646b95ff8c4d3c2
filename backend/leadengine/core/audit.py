"""Audit logging utilities."""

from __future__ import annotations

import json
from typing import Any, Optional

from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from leadengine.models.audit_log import AuditLog


async def log_audit(
    session: AsyncSession,
    actor_id: str,
    entity: str,
    entity_id: Optional[str],
    action: str,
    details: Optional[dict[str, Any]] = None,
    remote_addr: Optional[str] = None,
) -> None:
    """Append one audit row and commit it on its own.

    Engine writes are already committed chunk by chunk, so the audit entry
    is a separate storage call recorded after the operation succeeded.
    """

    payload = {
        "actor_id": actor_id,
        "entity": entity,
        "entity_id": entity_id,
        "action": action,
        "details": json.dumps(details, default=str) if details is not None else None,
        "remote_addr": remote_addr,
    }
    await session.execute(insert(AuditLog).values(**payload))
    await session.commit()
