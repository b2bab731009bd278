"""
Pytest configuration for AgencyOS backend tests.

Every test gets a fresh in-memory SQLite database, an in-process Redis
stand-in, a recording image store and recorded email queues, wired into
the app through dependency overrides.
"""

import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-unit-tests-only-min-32-chars")
os.environ.setdefault("FRONTEND_URL", "http://frontend.test")
os.environ.setdefault("STORAGE_PUBLIC_URL", "https://cdn.test/organization-logos")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from agencyos.core.database import get_db
from agencyos.core.dependencies import get_redis
from agencyos.core.storage import get_storage
from agencyos.main import app
from agencyos.models import Base
from agencyos.services import auth_service, invite_service, invoice_service

TEST_DB_URL = "sqlite+aiosqlite://"


class FakeRedis:
    """The subset of redis.asyncio.Redis the services use, held in a dict."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}

    async def exists(self, *keys: str) -> int:
        return sum(1 for key in keys if key in self.store)

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self.store[key] = str(value)
        return True

    async def get(self, key: str) -> str | None:
        return self.store.get(key)

    async def delete(self, *keys: str) -> int:
        return sum(1 for key in keys if self.store.pop(key, None) is not None)


class FakeStorage:
    """Records uploads and returns a deterministic public URL."""

    def __init__(self) -> None:
        self.uploads: list[dict] = []

    async def upload_logo(self, organization_id, data, filename, content_type) -> str:
        self.uploads.append(
            {
                "organization_id": organization_id,
                "size": len(data),
                "filename": filename,
                "content_type": content_type,
            }
        )
        return f"https://cdn.test/organization-logos/logos/{organization_id}_{len(self.uploads)}.png"

    async def upload_avatar(self, user_id, data, filename, content_type) -> str:
        self.uploads.append(
            {
                "user_id": user_id,
                "size": len(data),
                "filename": filename,
                "content_type": content_type,
            }
        )
        return f"https://cdn.test/profile-pictures/{user_id}/{len(self.uploads)}.png"


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    """Factory for sessions that read or edit rows directly between requests."""
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def fake_storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch) -> dict[str, list[dict]]:
    """Replace the Celery enqueue helpers with recorders."""
    sent: dict[str, list[dict]] = {
        "invite": [],
        "verification": [],
        "password_reset": [],
        "invoice": [],
    }

    def record(kind: str):
        def _record(**kwargs) -> None:
            sent[kind].append(kwargs)
        return _record

    monkeypatch.setattr(invite_service, "_queue_invite_email", record("invite"))
    monkeypatch.setattr(auth_service, "_queue_verification_email", record("verification"))
    monkeypatch.setattr(auth_service, "_queue_password_reset_email", record("password_reset"))
    monkeypatch.setattr(invoice_service, "_queue_invoice_email", record("invoice"))
    return sent


@pytest_asyncio.fixture
async def client(session_factory, fake_redis, fake_storage):
    """HTTP test client with DB, Redis and storage dependencies overridden."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: fake_redis
    app.dependency_overrides[get_storage] = lambda: fake_storage

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
