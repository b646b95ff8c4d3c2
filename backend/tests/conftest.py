import os
import sys
from pathlib import Path

import pytest

# Settings are read at import time; point the app at SQLite before anything imports it
os.environ.setdefault("DB_DRIVER", "sqlite+aiosqlite")
os.environ.setdefault("DB_NAME", ":memory:")
os.environ.setdefault("DOC_UPLOAD_RATE", "1000/minute")

# Add the backend directory so `leadengine` package imports resolve during tests
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.append(str(BACKEND_DIR))

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402

from leadengine.models import Base, Employee  # noqa: E402
from leadengine.services.storage import PhoneTaskStore  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'leadengine.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(bind=db_engine, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(session):
    return PhoneTaskStore(session)


@pytest.fixture
async def employees(session):
    rows = [
        Employee(id="emp-ahmed", display_name="Ahmed  Hassan", contact_address="ahmed@example.com", department="tele_sales"),
        Employee(id="emp-sara", display_name="Sara", contact_address="sara@example.com", department="tele_sales"),
        Employee(id="emp-old", display_name="Old Timer", contact_address="old@example.com", active_flag="N"),
    ]
    session.add_all(rows)
    await session.commit()
    return rows

