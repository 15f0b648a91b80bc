"""
Shared pytest fixtures for postboard tests.

Environment variables are set before any app module is imported, since
app.config builds its settings at import time.
"""
import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="postboard-tests-")
os.environ["SECRET_KEY"] = "test_secret_key_for_testing_only"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/app.db"

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from app.models import Base
from app.services import credentials
from app.services.auth import TokenService

TEST_SECRET = "test_secret_key_for_testing_only"


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """Use the cheapest bcrypt work factor so tests stay fast."""
    monkeypatch.setattr(credentials, "BCRYPT_ROUNDS", 4)


@pytest.fixture
def tokens():
    return TokenService(TEST_SECRET)


def make_engine(path):
    # NullPool: no connection outlives the event loop that opened it
    return create_async_engine(f"sqlite+aiosqlite:///{path}", poolclass=NullPool)


@pytest_asyncio.fixture
async def db(tmp_path):
    """A session on a fresh SQLite database with all tables created."""
    engine = make_engine(tmp_path / "test.db")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def ann(db, tokens):
    user, _ = await credentials.signup(db, tokens, "Ann", "ann@x.com", "secretpw")
    return user


@pytest_asyncio.fixture
async def bob(db, tokens):
    user, _ = await credentials.signup(db, tokens, "Bob", "bob@example.com", "hunter22")
    return user


@pytest.fixture
def client(tmp_path):
    """TestClient whose requests use a fresh per-test database."""
    from fastapi.testclient import TestClient

    from app.database import get_db
    from app.main import app

    engine = make_engine(tmp_path / "api.db")
    factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
