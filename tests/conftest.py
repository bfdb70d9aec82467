"""Shared test fixtures for CodePruner."""

import os
import pytest
from httpx import ASGITransport, AsyncClient


API_KEY = "test-admin-api-key"
SUPER_ADMIN_KEY = "test-super-admin-key"


@pytest.fixture
def app():
    """Create a test app with in-memory DB."""
    os.environ["CODEPRUNER_DB_URL"] = "sqlite+aiosqlite://"
    os.environ["CODEPRUNER_API_KEY"] = API_KEY
    os.environ["CODEPRUNER_SUPER_ADMIN_KEY"] = SUPER_ADMIN_KEY
    os.environ["CODEPRUNER_MAINTENANCE_ENABLED"] = "false"

    # Clear caches and singletons so new env vars take effect
    from codepruner.common.config import get_settings
    get_settings.cache_clear()

    from codepruner.deps import reset_singletons
    reset_singletons()

    from codepruner.app import create_app
    return create_app()


@pytest.fixture
async def client(app):
    # Manually init DB since ASGITransport doesn't run lifespan
    from codepruner.deps import get_db, get_event_writer
    db = get_db()
    await db.init()
    await db.create_all()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await get_event_writer().stop()
    await db.close()


@pytest.fixture
def admin_headers():
    return {"X-Admin-Key": API_KEY}


@pytest.fixture
def super_admin_headers():
    return {"X-Admin-Key": SUPER_ADMIN_KEY}


@pytest.fixture
def create_project(client, super_admin_headers):
    """Factory creating a project through the API. Returns (id, headers)."""

    async def _create(slug: str = "shop", plan: str = "free"):
        resp = await client.post("/tenants", json={
            "name": f"{slug.title()} Project", "slug": slug, "plan": plan,
        }, headers=super_admin_headers)
        assert resp.status_code == 201
        data = resp.json()
        return data["id"], {"X-API-Key": data["api_key"]}

    return _create


@pytest.fixture
def flush_writes(client):
    """Returns a coroutine function that waits for queued events to be persisted."""
    from codepruner.deps import get_event_writer

    async def _flush():
        await get_event_writer().drain()

    return _flush
