"""
Pytest fixtures for the billing test suite.

Provides:
- A fresh in-memory SQLite database per test (aiosqlite, SAVEPOINT enabled)
- Two shops with one user each, plus their resolved TenantContext
- Builders for customers, quotations and invoices
- An httpx client wired to the FastAPI app with the DB dependency overridden
"""

import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-jwt-signing")

from decimal import Decimal
from typing import AsyncGenerator

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from glassbill.core.security import create_access_token, get_password_hash
from glassbill.core.tenant_context import Principal, TenantResolver
from glassbill.database import Base, enable_sqlite_savepoints, get_db
from glassbill.models import Shop, User, Customer
from glassbill.models.billing import InvoiceType
from glassbill.schemas.billing import PaymentCreate
from glassbill.schemas.quotation import QuotationCreate, QuotationItemCreate
from glassbill.services.invoice_service import InvoiceService
from glassbill.services.quotation_service import QuotationService

TEST_PASSWORD = "glass@123"
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


# =============================================================================
# DATABASE
# =============================================================================

@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
        await session.rollback()


# =============================================================================
# TENANTS
# =============================================================================

async def _make_shop_with_user(db: AsyncSession, shop_name: str, state: str, username: str) -> User:
    shop = Shop(shop_name=shop_name, owner_name="Owner", gstin="27AAAAA0000A1Z5", state=state)
    db.add(shop)
    await db.flush()

    user = User(username=username, password_hash=TEST_PASSWORD_HASH, shop_id=shop.id)
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


@pytest.fixture
async def user_a(db):
    return await _make_shop_with_user(db, "Clear View Glass", "Maharashtra", "owner_a")


@pytest.fixture
async def user_b(db):
    return await _make_shop_with_user(db, "Bright Panes", "Karnataka", "owner_b")


@pytest.fixture
async def tenant_a(db, user_a):
    return await TenantResolver(db).resolve(Principal(name=user_a.username))


@pytest.fixture
async def tenant_b(db, user_b):
    return await TenantResolver(db).resolve(Principal(name=user_b.username))


# =============================================================================
# BUILDERS
# =============================================================================

@pytest.fixture
async def local_customer(db, tenant_a):
    customer = Customer(
        shop_id=tenant_a.shop_id,
        name="Ramesh Traders",
        mobile="9800000001",
        address="12 MG Road, Pune",
        gstin="27BBBBB1111B1Z5",
        state="Maharashtra",
    )
    db.add(customer)
    await db.flush()
    return customer


@pytest.fixture
async def outstation_customer(db, tenant_a):
    customer = Customer(
        shop_id=tenant_a.shop_id,
        name="Goa Interiors",
        mobile="9800000002",
        state="Goa",
    )
    db.add(customer)
    await db.flush()
    return customer


def quotation_payload(**overrides) -> QuotationCreate:
    """
    One 10 ft x 10 ft pane at Rs. 10/sq ft -> subtotal 1000.
    With installation 100, transport 50, discount 50 and 18% GST the grand
    total is 1298.
    """
    data = {
        "customer_name": "Walk-in Customer",
        "customer_state": "Maharashtra",
        "installation_charge": Decimal("100"),
        "transport_charge": Decimal("50"),
        "discount_value": Decimal("50"),
        "gst_percentage": Decimal("18"),
        "items": [
            QuotationItemCreate(
                glass_type="Clear Float",
                thickness="5mm",
                height=Decimal("10"),
                width=Decimal("10"),
                quantity=1,
                rate_per_sqft=Decimal("10"),
            )
        ],
    }
    data.update(overrides)
    return QuotationCreate(**data)


@pytest.fixture
def make_quotation(db):
    async def _make(tenant, confirm: bool = False, **overrides):
        service = QuotationService(db)
        quotation = await service.create(tenant, quotation_payload(**overrides))
        if confirm:
            quotation = await service.confirm(tenant, quotation.id)
        return quotation
    return _make


@pytest.fixture
def make_invoice(db, make_quotation):
    async def _make(tenant, invoice_type: InvoiceType = InvoiceType.STANDARD, **overrides):
        quotation = await make_quotation(tenant, confirm=True, **overrides)
        return await InvoiceService(db).create_from_quotation(tenant, quotation.id, invoice_type)
    return _make


def payment(amount, mode: str = "CASH", **extra) -> PaymentCreate:
    return PaymentCreate(payment_mode=mode, amount=Decimal(str(amount)), **extra)


# =============================================================================
# API
# =============================================================================

@pytest.fixture
async def client(session_factory) -> AsyncGenerator[httpx.AsyncClient, None]:
    from glassbill.main import app

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def api_user_a(session_factory):
    """Committed shop + user for API tests (the API uses its own sessions)."""
    async with session_factory() as session:
        user = await _make_shop_with_user(session, "Clear View Glass", "Maharashtra", "api_owner_a")
        await session.commit()
        return user


@pytest.fixture
async def api_user_b(session_factory):
    async with session_factory() as session:
        user = await _make_shop_with_user(session, "Bright Panes", "Karnataka", "api_owner_b")
        await session.commit()
        return user


def auth_headers(username: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(username)}"}
