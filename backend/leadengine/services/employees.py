"""Read-only employee directory collaborator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leadengine.core.errors import PersistenceError
from leadengine.models.employee import Employee


@dataclass(frozen=True, slots=True)
class EmployeeRef:
    id: str
    display_name: str
    contact_address: Optional[str] = None


class EmployeeDirectory:
    """Lists the active employees that leads can be handed to."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_employees(self, department: Optional[str] = None) -> List[EmployeeRef]:
        stmt = select(Employee).where(Employee.active_flag == "Y")
        if department:
            stmt = stmt.where(Employee.department == department)
        try:
            rows = (await self.session.execute(stmt.order_by(Employee.display_name))).scalars().all()
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to load employees.") from exc
        return [
            EmployeeRef(id=row.id, display_name=row.display_name, contact_address=row.contact_address)
            for row in rows
        ]
