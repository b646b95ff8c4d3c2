"""FastAPI dependencies wiring the engine collaborators to a DB session."""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from leadengine.core.db import get_session
from leadengine.core.logging import actor_id_ctx_var
from leadengine.services.employees import EmployeeDirectory
from leadengine.services.storage import PhoneTaskStore


async def get_store(session: AsyncSession = Depends(get_session)) -> PhoneTaskStore:
    return PhoneTaskStore(session)


async def get_directory(session: AsyncSession = Depends(get_session)) -> EmployeeDirectory:
    return EmployeeDirectory(session)


def get_actor_id(request: Request) -> str:
    """Employee acting on the request, as forwarded by the calling front end."""

    actor = request.headers.get("X-Actor-ID") or actor_id_ctx_var.get()
    request.state.actor_id = actor
    return actor


def remote_addr(request: Request) -> str | None:
    return request.client.host if request.client else None
