from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./membership_test.sqlite")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("EXPIRATION_SWEEP_ENABLED", "false")

import uuid
from datetime import date, datetime, timezone
from typing import AsyncGenerator, Optional

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from membership_app.api.dependencies.auth import get_current_user
from membership_app.api.v1.routes.router import router as api_router
from membership_app.core.error_handlers import register_exception_handlers
from membership_app.db.deps import Base, get_db
from membership_app.models import CardNumberRange, Membership, Role, User, UserProfile
from membership_app.utils.enums import MembershipStatus, PaymentStatus


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Ensure pytest-anyio uses asyncio for all async tests."""
    return "asyncio"


@pytest.fixture(scope="session")
def test_app() -> FastAPI:
    app = FastAPI()
    app.include_router(api_router, prefix="/api/v1")
    register_exception_handlers(app)
    return app


@pytest.fixture()
def test_db_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'test_membership.sqlite'}"


@pytest.fixture()
async def engine(test_db_url: str):
    engine = create_async_engine(test_db_url, future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture()
def make_user(session_factory):
    """Create a committed user, optionally with a complete profile.

    Seed rows are written through their own session and returned detached, so
    a rollback in the session under test never expires them.
    """

    async def _make_user(
        email: Optional[str] = None,
        role: Role = Role.user,
        complete_profile: bool = True,
        created_at: Optional[datetime] = None,
    ) -> User:
        user = User(
            email=email or f"{uuid.uuid4().hex[:8]}@example.com",
            role=role,
            is_active=True,
        )
        if created_at is not None:
            user.created_at = created_at
        async with session_factory() as session:
            session.add(user)
            await session.flush()
            if complete_profile:
                session.add(
                    UserProfile(
                        user_id=user.id,
                        first_name="Mario",
                        last_name="Rossi",
                        birth_date=date(1990, 5, 17),
                        address="Via Roma 1",
                        city="Bologna",
                        postal_code="40100",
                        province="BO",
                        privacy_consent=True,
                        data_consent=True,
                    )
                )
            await session.commit()
        return user

    return _make_user


@pytest.fixture()
def make_membership(session_factory):
    """Create a committed membership row with explicit facts."""

    async def _make_membership(
        user: User,
        status: MembershipStatus = MembershipStatus.pending,
        payment_status: PaymentStatus = PaymentStatus.succeeded,
        membership_number: Optional[str] = None,
        previous_membership_number: Optional[str] = None,
        created_at: Optional[datetime] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        payment_provider_id: Optional[str] = None,
    ) -> Membership:
        membership = Membership(
            user_id=user.id,
            status=status,
            payment_status=payment_status,
            membership_number=membership_number,
            previous_membership_number=previous_membership_number,
            start_date=start_date,
            end_date=end_date,
            payment_provider_id=payment_provider_id,
            payment_amount=2500,
        )
        if created_at is not None:
            membership.created_at = created_at
        async with session_factory() as session:
            session.add(membership)
            await session.commit()
        return membership

    return _make_membership


@pytest.fixture()
def make_paid_user(make_user, make_membership):
    """A user whose payment succeeded and who waits for a card number."""

    async def _make_paid_user(paid_at: Optional[datetime] = None, **user_kwargs) -> User:
        user = await make_user(**user_kwargs)
        await make_membership(user, created_at=paid_at)
        return user

    return _make_paid_user


@pytest.fixture()
def make_range(session_factory):
    async def _make_range(start: int, end: int) -> CardNumberRange:
        card_range = CardNumberRange(start_number=start, end_number=end, created_by="seed")
        async with session_factory() as session:
            session.add(card_range)
            await session.commit()
        return card_range

    return _make_range


@pytest.fixture()
def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@pytest.fixture()
async def admin_user(make_user) -> User:
    return await make_user(email="admin@example.com", role=Role.admin, complete_profile=False)


@pytest.fixture()
async def client(test_app: FastAPI, db_session: AsyncSession, admin_user: User) -> AsyncGenerator[AsyncClient, None]:
    async def _get_test_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    async def _get_admin_user():
        return admin_user

    test_app.dependency_overrides[get_db] = _get_test_db
    test_app.dependency_overrides[get_current_user] = _get_admin_user

    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client

    test_app.dependency_overrides.clear()


@pytest.fixture()
def login_as(test_app: FastAPI):
    """Switch the authenticated user for subsequent requests."""

    def _login_as(user: User) -> None:
        async def _get_user():
            return user

        test_app.dependency_overrides[get_current_user] = _get_user

    return _login_as
