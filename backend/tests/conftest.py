"""Shared test fixtures."""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# In-memory SQLite for tests; must be set before the app imports settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("UPI_RECEIVER_ID", "temple@ybl")
os.environ.setdefault("STRIPE_SECRET_KEY", "")

from donation_api.core.dependencies import (  # noqa: E402
    get_db,
    get_payment_gateway,
    get_receipt_renderer,
)
from donation_api.db.base import Base  # noqa: E402
from donation_api.main import app  # noqa: E402
from donation_api.services.donations import DonationService  # noqa: E402
from donation_api.services.qr import QrRenderer  # noqa: E402
from donation_api.services.receipts import OrganizationHeader, ReceiptRenderer  # noqa: E402
from tests.helpers import TEST_PROFILE, FakeGateway  # noqa: E402


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def receipts_dir(tmp_path: Path) -> Path:
    return tmp_path / "receipts"


@pytest.fixture
def receipt_renderer(receipts_dir: Path) -> ReceiptRenderer:
    return ReceiptRenderer(
        OrganizationHeader(
            name="Shri Gopal Ganpati Devasthan Trust",
            address="Farmagudi Bandivade Ponda - Goa",
            registration_number="PON-4-10-2020",
        ),
        receipts_dir,
    )


@pytest.fixture
def service(
    db: AsyncSession, gateway: FakeGateway, receipt_renderer: ReceiptRenderer
) -> DonationService:
    return DonationService(
        db,
        profile=TEST_PROFILE,
        qr_renderer=QrRenderer(),
        gateway=gateway,
        receipts=receipt_renderer,
        upi_receiver_id="temple@ybl",
    )


@pytest.fixture
async def client(
    engine: AsyncEngine, gateway: FakeGateway, receipt_renderer: ReceiptRenderer
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP test client with the database, processor and receipt directory swapped out."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def _test_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _test_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_receipt_renderer] = lambda: receipt_renderer
    try:
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            yield c
    finally:
        app.dependency_overrides.clear()
