import sys, pathlib, asyncio
sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from sqlalchemy import func, select, text

from leadengine.core.db import SessionLocal
from leadengine.models import PhoneNumberBatch, PhoneTask


async def main():
    async with SessionLocal() as s:
        # Simple ping
        one = await s.execute(text("SELECT 1"))
        print("db-ping:", one.scalar())

        batches = await s.scalar(select(func.count()).select_from(PhoneNumberBatch))
        tasks = await s.scalar(select(func.count()).select_from(PhoneTask))
        unassigned = await s.scalar(
            select(func.count()).select_from(PhoneTask).where(PhoneTask.assigned_to.is_(None))
        )
        print("batches:", batches)
        print("phone tasks:", tasks, "unassigned:", unassigned)

asyncio.run(main())
