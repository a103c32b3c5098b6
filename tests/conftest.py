# tests/conftest.py
import os

# Antes de importar o app: sem sessão real, sem chave, logs verbosos
os.environ.update({
    "PROJECT_NAME": "Distribuidora Test",
    "API_V1_STR": "/api/v1",
    "LOG_LEVEL": "DEBUG",
    "MONGODB_URI": "mongodb://localhost:27017/distribuidora_test",
    "API_KEY": "",
    "WHATSAPP_ENABLED": "false",
    "WHATSAPP_SEND_CHANNEL": "session",
})

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from distribuidora.core.config import settings
from distribuidora.core.database import get_database
from distribuidora.services.whatsapp import ReconnectPolicy, SessionManager
from tests.fakes import FakeTransportFactory, MemoryCredentialStore

API_KEY = "test-api-key"


@pytest_asyncio.fixture(scope="function")
async def db_client():
    client = AsyncMongoMockClient()
    yield client[f"test_db_{os.urandom(4).hex()}"]


@pytest.fixture
def transport_factory() -> FakeTransportFactory:
    return FakeTransportFactory()


@pytest.fixture
def credential_store() -> MemoryCredentialStore:
    return MemoryCredentialStore()


@pytest_asyncio.fixture(scope="function")
async def session_manager(transport_factory, credential_store) -> AsyncGenerator[SessionManager, None]:
    manager = SessionManager(
        transport_factory,
        credential_store,
        reconnect_policy=ReconnectPolicy(base_delay=0, max_delay=0),
        send_timeout=1.0,
        credential_retry_delay=0,
    )
    yield manager
    await manager.shutdown()


@pytest.fixture
def api_key(monkeypatch) -> dict:
    """Liga a autenticação e devolve os headers válidos."""
    monkeypatch.setattr(settings, "API_KEY", API_KEY)
    return {"X-API-Key": API_KEY}


@pytest_asyncio.fixture(scope="function")
async def test_client(db_client, session_manager) -> AsyncGenerator[AsyncClient, None]:
    from distribuidora.main import app

    app.dependency_overrides[get_database] = lambda: db_client
    app.state.session_manager = session_manager
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client
    app.dependency_overrides.clear()
    for attr in ("session_manager", "zapi_client"):
        if hasattr(app.state, attr):
            delattr(app.state, attr)
