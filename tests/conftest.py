"""Shared fixtures: in-memory SQLite, an HTTP client wired to it, and row factories."""

import json
import secrets
import uuid
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import backend.app.models  # noqa: F401 - ensure models are registered
from backend.app.config import settings
from backend.app.db import Base, get_db, register_sqlite_pragmas
from backend.app.main import app
from backend.app.models.feature import FeatureRequest, FeatureStatus, Vote
from backend.app.models.session import Session
from backend.app.models.user import Role, User
from backend.app.services.attachment_store import LocalAttachmentStore, get_attachment_store
from backend.app.services.auth_service import hash_password

TEST_PASSWORD = "correct-horse"

# Keep bcrypt cheap in tests
settings.bcrypt_rounds = 4


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    register_sqlite_pragmas(test_engine)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def attachment_store(tmp_path) -> LocalAttachmentStore:
    return LocalAttachmentStore(tmp_path / "attachments")


@pytest.fixture
async def client(session_factory, attachment_store) -> AsyncGenerator[AsyncClient, None]:
    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_attachment_store] = lambda: attachment_store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def _now() -> str:
    return datetime.now(UTC).isoformat()


async def create_user(
    db: AsyncSession,
    email: str = "user@example.com",
    name: str | None = "Test User",
    role: Role = Role.USER,
    password: str = TEST_PASSWORD,
    created_at: str | None = None,
) -> User:
    user = User(
        id=str(uuid.uuid4()),
        email=email,
        name=name,
        role=role,
        password_hash=hash_password(password),
        created_at=created_at or _now(),
    )
    db.add(user)
    await db.flush()
    return user


async def create_feature(
    db: AsyncSession,
    created_by: str,
    title: str = "Test feature",
    description: str = "Test description",
    status: str = FeatureStatus.OPEN,
    created_at: str | None = None,
    attachments: list[str] | None = None,
) -> FeatureRequest:
    feature = FeatureRequest(
        id=str(uuid.uuid4()),
        title=title,
        description=description,
        status=status,
        user_id=created_by,
        created_at=created_at or _now(),
        attachments=json.dumps(attachments) if attachments else None,
    )
    db.add(feature)
    await db.flush()
    return feature


async def create_vote(
    db: AsyncSession, feature_id: str, user_id: str, created_at: str | None = None
) -> Vote:
    vote = Vote(
        id=str(uuid.uuid4()),
        user_id=user_id,
        feature_request_id=feature_id,
        created_at=created_at or _now(),
    )
    db.add(vote)
    await db.flush()
    return vote


async def create_session(db: AsyncSession, user: User, expired: bool = False) -> str:
    now = datetime.now(UTC)
    expires = now - timedelta(hours=1) if expired else now + timedelta(hours=1)
    session = Session(
        id=secrets.token_urlsafe(16),
        user_id=user.id,
        created_at=now.isoformat(),
        expires_at=expires.isoformat(),
    )
    db.add(session)
    await db.flush()
    return session.id


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def ts(minutes: int) -> str:
    """Deterministic timestamp ``minutes`` after a fixed base, for ordering tests."""
    base = datetime(2025, 1, 1, tzinfo=UTC)
    return (base + timedelta(minutes=minutes)).isoformat()
