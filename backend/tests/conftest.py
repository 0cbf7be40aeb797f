"""Shared fixtures: a throwaway SQLite database and an API client.

The environment is configured before any `loanportal` import so the engine
binds to the temporary database instead of PostgreSQL.
"""

import asyncio
import os
import tempfile
from pathlib import Path

_DB_DIR = tempfile.mkdtemp(prefix="loanportal-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{Path(_DB_DIR) / 'test.db'}"
os.environ["ENVIRONMENT"] = "development"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["REPORT_MAIL_RECIPIENT"] = "accounts@example.com"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from loanportal.auth_utils import create_access_token, hash_password, token_claims  # noqa: E402
from loanportal.config import settings  # noqa: E402
from loanportal.database import Base, async_session, engine  # noqa: E402
from loanportal.models.user import User, UserRole  # noqa: E402


async def _reset_schema():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def _create_user(email: str, full_name: str, role: UserRole, password: str = "secret123") -> User:
    async with async_session() as db:
        user = User(
            email=email,
            hashed_password=hash_password(password),
            full_name=full_name,
            role=role,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user


@pytest_asyncio.fixture
async def db_session():
    """A session on a freshly created schema."""
    await _reset_schema()
    async with async_session() as session:
        yield session


@pytest.fixture
def client():
    """API client on an empty database; startup seeds the default admin."""
    asyncio.run(_reset_schema())
    from loanportal.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture
def agent(client):
    return asyncio.run(_create_user("agent1@example.com", "Agent One", UserRole.FIELD_AGENT))


@pytest.fixture
def other_agent(client):
    return asyncio.run(_create_user("agent2@example.com", "Agent Two", UserRole.FIELD_AGENT))


@pytest.fixture
def admin_headers(client):
    resp = client.post("/api/auth/login", json={
        "email": settings.seed_admin_email,
        "password": settings.seed_admin_password,
    })
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture
def headers_for():
    """Bearer headers for an existing user, without going through login."""
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(token_claims(user))}"}
    return _headers
