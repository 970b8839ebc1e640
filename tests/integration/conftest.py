"""Fixtures wiring the FastAPI app to throwaway SQLite databases."""

from __future__ import annotations

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from testhelper.main import app
from testhelper.api.dependencies import get_activations, get_executor
from testhelper.mock_services.activation import ScenarioActivationManager
from testhelper.storage.database import dispose_db, init_db
from testhelper.storage.table_executor import SqlTableExecutor


@pytest_asyncio.fixture
async def executor(tmp_path):
    target = SqlTableExecutor(f"sqlite+aiosqlite:///{tmp_path / 'target.db'}")
    yield target
    await target.dispose()


@pytest_asyncio.fixture
async def activations():
    return ScenarioActivationManager()


@pytest_asyncio.fixture
async def client(tmp_path, executor, activations):
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'scenarios.db'}")
    app.dependency_overrides[get_executor] = lambda: executor
    app.dependency_overrides[get_activations] = lambda: activations
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
        await dispose_db()
