import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

os.environ.setdefault("MONGODB_DB_NAME", "yoldash_test")
os.environ.setdefault("SECRET_KEY", "test-secret-key-min-32-characters-long")
os.environ.setdefault("GEMINI_API_KEY", "test-key")

from stubs import RecordingBackend  # noqa: E402

TEST_STORE = "fileSearchStores/test-store"


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory database for every test."""
    from app.db.init import init_db
    database = AsyncMongoMockClient()["yoldash_test"]
    await init_db(database)
    yield database


@pytest.fixture
def backend() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture
def orchestrator(backend):
    from app.workflows.chat_agent import ChatOrchestrator
    return ChatOrchestrator(backend, TEST_STORE, timeout_seconds=2.0)


@pytest_asyncio.fixture
async def account(db):
    from app.services import ledger
    return await ledger.create_account("user@example.com", "+994501112233", "secret123", "Aysel", "Məmmədova")


@pytest_asyncio.fixture
async def admin(db):
    from app.services import ledger
    return await ledger.create_account("admin@example.com", "+994509998877", "adminpass", "Admin", "Root", is_admin=True)


@pytest_asyncio.fixture
async def client(db, orchestrator) -> AsyncGenerator[AsyncClient, None]:
    from app.main import app
    app.state.chat_orchestrator = orchestrator
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.state.chat_orchestrator = None
