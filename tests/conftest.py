"""Shared pytest fixtures: an app bound to in-memory SQLite plus bearer tokens."""

from typing import AsyncGenerator, Callable, Dict, Optional

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.shortlinks.core.config import Settings
from src.shortlinks.db.base import Base
from src.shortlinks.main import create_app
from src.shortlinks.models.url import URL
from src.shortlinks.services.auth_service import create_access_token

TEST_SECRET = "test-secret"


def build_settings(**overrides) -> Settings:
    values = {
        "APP_ENV": "test",
        "DATABASE_URL": "sqlite+aiosqlite://",
        "JWT_SECRET": TEST_SECRET,
        "ALLOWED_ORIGINS": "",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    return build_settings


@pytest.fixture
def settings() -> Settings:
    return build_settings()


@pytest_asyncio.fixture
async def app(settings: Settings) -> AsyncGenerator[FastAPI, None]:
    app = create_app(settings)
    async with app.state.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield app
    await app.state.engine.dispose()


@pytest.fixture
def session_factory(app: FastAPI) -> async_sessionmaker[AsyncSession]:
    return app.state.session_factory


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_headers(settings: Settings) -> Callable[..., Dict[str, str]]:
    def _make(user_id: str, email: Optional[str] = None) -> Dict[str, str]:
        token = create_access_token(settings, user_id, email)
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
def alice_headers(make_headers) -> Dict[str, str]:
    return make_headers("alice", "alice@example.com")


@pytest.fixture
def bob_headers(make_headers) -> Dict[str, str]:
    return make_headers("bob", "bob@example.com")


@pytest.fixture
def seed_urls(session_factory):
    """Insert URL records directly, bypassing the API."""

    async def _seed(
        user_id: str,
        count: int = 1,
        prefix: str = "seed",
        original_url: str = "https://example.com/seeded",
    ) -> list[URL]:
        records = [
            URL(
                user_id=user_id,
                short_code=f"{prefix}{i:04d}",
                original_url=original_url,
            )
            for i in range(count)
        ]
        async with session_factory() as session:
            session.add_all(records)
            await session.commit()
        return records

    return _seed


@pytest.fixture
def fetch_url(session_factory):
    """Read a URL record back from the database by ID."""

    async def _fetch(url_id: str) -> Optional[URL]:
        async with session_factory() as session:
            result = await session.execute(select(URL).where(URL.id == url_id))
            return result.scalars().first()

    return _fetch
