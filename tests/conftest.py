import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REPORT_TIMEZONE", "UTC")

from collections.abc import AsyncIterator, Awaitable, Callable  # noqa: E402
from datetime import datetime  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from helpdesk.db.base import Base  # noqa: E402
from helpdesk.models import ComplaintTicket, User  # noqa: E402


@pytest.fixture
async def db() -> AsyncIterator[AsyncSession]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    sessions = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    async with sessions() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def make_user(db: AsyncSession) -> Callable[..., Awaitable[User]]:
    async def _make(username: str, role: str = "CS", is_active: bool = True) -> User:
        user = User(
            username=username,
            email=f"{username}@example.com",
            full_name=username.replace("_", " ").title(),
            role=role,
            is_active=is_active,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_ticket(db: AsyncSession) -> Callable[..., Awaitable[ComplaintTicket]]:
    """Insert a ticket row directly, bypassing the lifecycle engine."""

    async def _make(
        created_by: int,
        *,
        created_at: datetime,
        customer_id: str = "CUST-001",
        customer_name: str = "Acme Corp",
        customer_category: str = "broadband",
        issue_priority: str = "Medium",
        status: str = "New",
        assigned_to: int | None = None,
        assigned_team: str | None = None,
        resolved_at: datetime | None = None,
    ) -> ComplaintTicket:
        ticket = ComplaintTicket(
            customer_id=customer_id,
            customer_name=customer_name,
            customer_address="1 Main Street",
            customer_category=customer_category,
            issue_description="Link is down",
            issue_priority=issue_priority,
            status=status,
            created_by=created_by,
            assigned_to=assigned_to,
            assigned_team=assigned_team,
            resolved_at=resolved_at,
            created_at=created_at,
            updated_at=created_at,
        )
        db.add(ticket)
        await db.commit()
        await db.refresh(ticket)
        return ticket

    return _make
