"""
Integration test fixtures.

Every test gets a fresh in-memory SQLite database. StaticPool keeps one
connection alive so all sessions (test setup and request handlers) see
the same data.
"""

from datetime import timedelta
from typing import Optional

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import models  # noqa: F401  (registers tables on Base.metadata)
from auth import create_access_token, get_password_hash
from db import Base, get_db
from models import Design, User
from notifications import NotificationEmitter
from repositories import DesignRepository, UserRepository
from social import SocialEngine


class RecordingSms:
    """Stands in for SmsGateway and remembers what would have been sent."""

    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail

    async def send_design_liked(self, to, liker_name, design_title):
        if self.fail:
            raise RuntimeError("SMS provider down")
        self.sent.append((to, liker_name, design_title))
        return True


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def make_user(session):
    """Factory: insert a user and return it."""
    counter = {"n": 0}

    async def _make(
        first_name: str = "Test",
        last_name: Optional[str] = None,
        user_type: str = "individual",
        username: Optional[str] = None,
        company_name: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            email=f"user{n}@example.com",
            hashed_password=get_password_hash("password123"),
            user_type=user_type,
            username=username,
            first_name=first_name if user_type == "individual" else None,
            last_name=(last_name or f"User{n}") if user_type == "individual" else None,
            company_name=company_name,
            phone=phone,
        )
        return await UserRepository(session).save(user)

    return _make


@pytest.fixture
def make_design(session):
    """Factory: insert a design owned by `owner`."""

    async def _make(owner: User, title: str = "Midnight Gown", category: str = "dress", **fields) -> Design:
        design = Design(
            owner_id=owner.id,
            title=title,
            description=fields.pop("description", ""),
            category=category,
            tags=fields.pop("tags", []),
            images=fields.pop("images", []),
            shares=0,
            **fields,
        )
        return await DesignRepository(session).save(design)

    return _make


@pytest.fixture
def sms():
    return RecordingSms()


@pytest.fixture
def social(session, sms):
    return SocialEngine(
        designs=DesignRepository(session),
        users=UserRepository(session),
        notifier=NotificationEmitter(session),
        sms=sms,
    )


# === HTTP ===

@pytest.fixture
async def client(session_maker):
    from server import app

    async def override_get_db():
        async with session_maker() as s:
            yield s

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user: User, expires: Optional[timedelta] = None) -> dict:
        token = create_access_token({"user_id": user.id}, expires_delta=expires)
        return {"Authorization": f"Bearer {token}"}

    return _headers
