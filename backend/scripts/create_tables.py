import sys, pathlib, asyncio
sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from leadengine.core.db import engine
from leadengine.models import Base


async def main():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    for table in Base.metadata.sorted_tables:
        print("table ready:", table.name)
    await engine.dispose()

asyncio.run(main())
