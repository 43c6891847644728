"""Test fixtures and configuration."""

import os

os.environ["GARAGEHUB_BCRYPT_ROUNDS"] = "4"
os.environ["GARAGEHUB_DATABASE_URL"] = "sqlite+aiosqlite://"

import uuid
from decimal import Decimal

import fakeredis.aioredis
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from garagehub.auth.passwords import hash_password
from garagehub.auth.rate_limit import api_limiter, login_limiter, order_limiter
from garagehub.auth.sessions import create_session
from garagehub.database import get_db, get_session_factory
from garagehub.main import app
from garagehub.marketplace.codes import next_garagehub_code
from garagehub.models import Base, Part, Supplier, User, Wallet, Workshop, WorkshopStaff
from garagehub.redis_client import get_redis

PASSWORD = "Secret#123"

# Petaling Jaya workshop and a Puchong supplier about 10 km apart
WORKSHOP_LOCATION = (Decimal("3.1073000"), Decimal("101.6067000"))
SUPPLIER_LOCATION = (Decimal("3.0738000"), Decimal("101.5183000"))


@pytest.fixture(autouse=True)
def reset_rate_limiters():
    """Login and request counters are process-wide."""
    limiters = (login_limiter, api_limiter, order_limiter)
    for limiter in limiters:
        limiter.clear()
    yield
    for limiter in limiters:
        limiter.clear()


@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite engine shared by the app and the test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    """Session for arranging data and checking results."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def redis():
    """Fake Redis for login sessions."""
    return fakeredis.aioredis.FakeRedis(decode_responses=True)


@pytest_asyncio.fixture
async def client(session_factory, redis):
    """HTTP client against the app with DB and Redis swapped for test doubles."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def override_get_redis():
        return redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    """Create an active user with a wallet."""

    async def _make(role="customer", approved=True, balance="0.00", **fields):
        user = User(
            email=fields.pop("email", f"{role}-{uuid.uuid4().hex[:8]}@example.com"),
            password_hash=hash_password(PASSWORD),
            first_name=fields.pop("first_name", role.title()),
            role=role,
            is_active=True,
            is_approved=approved,
            **fields,
        )
        db.add(user)
        await db.flush()
        db.add(Wallet(user_id=user.id, balance=Decimal(balance)))
        await db.commit()
        return user

    return _make


@pytest.fixture
def auth_headers(redis):
    """Bearer headers for a user, without going through the login endpoint."""

    async def _headers(user):
        token = await create_session(redis, str(user.id), user.role)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest_asyncio.fixture
async def customer(make_user):
    return await make_user("customer", first_name="Aisyah", balance="200.00")


@pytest_asyncio.fixture
async def workshop(db, make_user):
    """Workshop with RM 1000 in its owner's wallet."""
    user = await make_user("workshop", balance="1000.00", phone="0123456789")
    workshop = Workshop(
        user_id=user.id,
        name="Kumar Auto Service",
        address="12 Jalan SS2/24, Petaling Jaya",
        phone="0123456789",
        state="Selangor",
        city="Petaling Jaya",
        latitude=WORKSHOP_LOCATION[0],
        longitude=WORKSHOP_LOCATION[1],
        is_verified=True,
    )
    db.add(workshop)
    await db.commit()
    return workshop


@pytest_asyncio.fixture
async def supplier(db, make_user):
    """Supplier offering both pickup and runner delivery."""
    user = await make_user(
        "supplier",
        latitude=SUPPLIER_LOCATION[0],
        longitude=SUPPLIER_LOCATION[1],
    )
    supplier = Supplier(
        user_id=user.id,
        name="Lim Auto Parts",
        address="8 Jalan Kenari 5, Puchong",
        phone="0387654321",
        state="Selangor",
        city="Puchong",
        latitude=SUPPLIER_LOCATION[0],
        longitude=SUPPLIER_LOCATION[1],
        supplier_type="OEM",
        delivery_method="both",
        is_verified=True,
    )
    db.add(supplier)
    await db.commit()
    return supplier


@pytest_asyncio.fixture
async def part(db, supplier):
    """RM 100 brake pad set with 10 in stock."""
    part = Part(
        supplier_id=supplier.id,
        sku="TOY-BP-001",
        garagehub_code=await next_garagehub_code(db, supplier.id),
        supplier_type="OEM",
        name="Front Brake Pad Set",
        category="Brakes",
        vehicle_make="Toyota",
        price=Decimal("100.00"),
        stock_quantity=10,
    )
    db.add(part)
    await db.commit()
    return part


@pytest_asyncio.fixture
async def runner(make_user):
    """Approved runner a couple of kilometres from the supplier."""
    return await make_user(
        "runner",
        latitude=Decimal("3.0850000"),
        longitude=Decimal("101.5500000"),
    )


@pytest_asyncio.fixture
async def staff_member(db, make_user, workshop):
    user = await make_user("staff", first_name="Daniel")
    staff = WorkshopStaff(
        workshop_id=workshop.id,
        user_id=user.id,
        name="Daniel Tan",
        role="mechanic",
        is_active=True,
    )
    db.add(staff)
    await db.commit()
    return staff


@pytest_asyncio.fixture
async def admin(make_user):
    return await make_user("admin")


@pytest.fixture
def headers_for(db, auth_headers):
    """Headers for a workshop/supplier/staff profile or a plain user."""

    async def _headers(account):
        if isinstance(account, User):
            return await auth_headers(account)
        return await auth_headers(await db.get(User, account.user_id))

    return _headers
