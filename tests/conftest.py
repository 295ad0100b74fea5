"""
Shared fixtures: a file-backed SQLite store seeded through a sync engine and
read back by the app through aiosqlite.
"""
import os
from datetime import datetime

os.environ.setdefault("WAIT_FOR_DB", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool

from mailbulk.db import Base, get_db
from mailbulk.main import app
from mailbulk.models import BulkJob, EmailResult

CREATED_AT = datetime(2024, 1, 2, 3, 4, 5)


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "bulk.db"
    engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(engine)
    engine.dispose()
    return path


@pytest.fixture
def seed_job(db_path):
    """Insert a job row plus its result documents, in the given order."""

    def _seed(job_id, total_records, documents=()):
        engine = create_engine(f"sqlite:///{db_path}")
        with Session(engine) as session:
            session.add(BulkJob(id=job_id, created_at=CREATED_AT, total_records=total_records))
            session.flush()
            for doc in documents:
                session.add(EmailResult(job_id=job_id, result=doc))
                session.flush()
            session.commit()
        engine.dispose()

    return _seed


@pytest.fixture
def client(db_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
