"""
Test fixtures for the Bank Cards test suite.

This module provides shared fixtures used across all test files:

  - db_engine / db_session: Fresh in-memory SQLite database (roles seeded)
  - client: Async HTTP test client (unauthenticated) bound to that database
  - make_user / make_card: Factories that insert rows directly
  - caller_for: Build the CallerContext a route would pass to a service
  - auth_headers: Register through the API and return a bearer header

Key design decisions:
  - Required secrets are set in the environment BEFORE bankcards is
    imported, because settings and the card cipher are built at import.
  - In-memory SQLite with StaticPool: every session in a test shares one
    connection, so rows written by a factory are visible to the app.
  - Factories commit immediately so HTTP requests (a separate session)
    see their rows.
"""

import base64
import os
from datetime import date, timedelta

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault(
    "CARD_ENCRYPTION_KEY",
    base64.urlsafe_b64encode(bytes(range(64))).decode(),
)

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from bankcards import clock
from bankcards.cipher import card_cipher
from bankcards.database import Base, get_db
from bankcards.main import app
from bankcards.models.card import Card, CardStatus
from bankcards.models.role import RoleName
from bankcards.models.user import User
from bankcards.security import hash_password
from bankcards.services.user_service import caller_context_for, get_role, seed_roles


TEST_DATABASE_URL = "sqlite+aiosqlite://"
PASSWORD = "SecurePass123!"


def next_year() -> date:
    return clock.today() + timedelta(days=365)


@pytest_asyncio.fixture
async def db_engine():
    """Create a fresh async engine with all tables and the role catalog."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        await seed_roles(session)
        await session.commit()

    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Provide an async session bound to the test engine."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with async_session() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_engine):
    """
    Async HTTP test client with the test database injected.

    ASGITransport does not run the lifespan, so the tables and roles come
    from the db_engine fixture instead.
    """
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_db():
        async with async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def make_user(db_session):
    """Factory: insert a user (USER role, optionally ADMIN too)."""

    async def _make_user(username: str, admin: bool = False) -> User:
        roles = [await get_role(db_session, RoleName.USER)]
        if admin:
            roles.append(await get_role(db_session, RoleName.ADMIN))
        user = User(
            username=username,
            hashed_password=hash_password(PASSWORD),
            email=f"{username}@example.com",
            full_name=username.title(),
            roles=roles,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make_user


@pytest_asyncio.fixture
async def make_card(db_session):
    """Factory: insert a card directly, bypassing the service's checks."""

    async def _make_card(
        owner: User,
        card_number: str,
        balance_cents: int = 0,
        expiry_date: date | None = None,
        status: CardStatus = CardStatus.ACTIVE,
        cardholder_name: str | None = None,
    ) -> Card:
        card = Card(
            card_number_encrypted=card_cipher.encrypt(card_number),
            cardholder_name=cardholder_name or owner.full_name.upper(),
            expiry_date=expiry_date or next_year(),
            status=status,
            balance_cents=balance_cents,
            owner_id=owner.id,
            owner=owner,
        )
        db_session.add(card)
        await db_session.commit()
        return card

    return _make_card


@pytest.fixture
def caller_for():
    return caller_context_for


@pytest_asyncio.fixture
async def auth_headers(client):
    """
    Factory: log in as a user and return an Authorization header.

    Users made with make_user share the PASSWORD constant.
    """

    async def _auth_headers(username: str) -> dict[str, str]:
        response = await client.post(
            "/auth/login",
            json={"username": username, "password": PASSWORD},
        )
        assert response.status_code == 200, f"Login failed: {response.text}"
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _auth_headers
