"""Pytest fixtures for AuditVault tests."""

from collections.abc import AsyncGenerator
from datetime import UTC, date, datetime, timedelta
from typing import Any

import pytest
import pytest_asyncio
import structlog
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from auditvault.config.settings import Settings
from auditvault.db.models.audit import AuditEvent, AuditSeverity, EventStatus
from auditvault.db.models.base import Base

FIXED_NOW = datetime(2024, 4, 1, 12, 0, tzinfo=UTC)


# =============================================================================
# Structlog Configuration Fixture
# =============================================================================


@pytest.fixture(scope="function", autouse=True)
def reset_structlog_after_test():
    """Reset structlog configuration after each test.

    This ensures tests that modify structlog global state
    don't affect other tests.
    """
    yield
    structlog.reset_defaults()
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


# =============================================================================
# Clock
# =============================================================================


class FrozenClock:
    """Callable clock pinned to a moment; tests move it explicitly."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FrozenClock:
    """Clock fixed at 2024-04-01 12:00 UTC."""
    return FrozenClock()


# =============================================================================
# Database fixtures
# =============================================================================


@pytest_asyncio.fixture
async def test_engine():
    """Create an in-memory SQLite engine with all tables."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def make_event(db_session: AsyncSession):
    """Factory that inserts an audit event with explicit lifecycle state.

    Usage:
        event = await make_event(created_at=..., retention_date=..., exported=True)
    """

    async def _make(
        *,
        created_at: datetime = FIXED_NOW,
        category: str = "sale",
        description: str = "Sale recorded",
        actor: str = "Maria",
        status: EventStatus = EventStatus.ACTIVE,
        retention_date: date | None = None,
        exported: bool = False,
        **fields: Any,
    ) -> AuditEvent:
        event = AuditEvent(
            created_at=created_at,
            category=category,
            description=description,
            actor=actor,
            severity=fields.pop("severity", AuditSeverity.INFO),
            status=status,
            retention_date=retention_date,
            exported_at=created_at + timedelta(days=1) if exported else None,
            **fields,
        )
        db_session.add(event)
        await db_session.commit()
        return event

    return _make


# =============================================================================
# API fixtures
# =============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Create settings for API testing."""
    return Settings(
        DATABASE_URL="sqlite+aiosqlite://",
        ENVIRONMENT="test",
        DEBUG=True,
        log_level="DEBUG",
    )


@pytest.fixture
def test_app(test_settings: Settings, db_session: AsyncSession, clock: FrozenClock) -> FastAPI:
    """Create a FastAPI test application bound to the test session and clock."""
    from auditvault.api.app import create_app
    from auditvault.api.dependencies import get_clock
    from auditvault.db.config import get_db

    app = create_app(settings=test_settings)

    async def _get_test_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = _get_test_db
    app.dependency_overrides[get_clock] = lambda: clock
    return app


@pytest_asyncio.fixture
async def test_client(test_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for API testing.

    Provides an httpx.AsyncClient configured to call the test application
    directly without network overhead.
    """
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as client:
        yield client


@pytest_asyncio.fixture
async def operator_client(test_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client acting as the operator ``Maria``."""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
        headers={"X-Actor": "Maria"},
    ) as client:
        yield client
