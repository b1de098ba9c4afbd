"""Shared test infrastructure for the Loyal Auto Sales test suite.

Provides:
- db_session: async SQLite in-memory session with all tables created
- make_user / make_vehicle / make_customer: row factories
- auth_headers: Bearer header for a user
- make_client: httpx client over a FastAPI app built from the given routers
"""

import uuid
from datetime import datetime

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from loyal_auto.app.error_handlers import register_exception_handlers
from loyal_auto.infra.database import Base, enable_sqlite_foreign_keys, get_db
from loyal_auto.infra.storage import LocalFileStorage, get_storage

# Import all model modules so their tables are registered with Base.metadata
import loyal_auto.domain.models  # noqa: F401

from loyal_auto.domain.models import (
    Expense,
    MarketPrice,
    SaleInfo,
    User,
    Vehicle,
    VehicleImage,
    utcnow,
)
from loyal_auto.domain.schemas import CustomerCreate
from loyal_auto.services.auth_service import create_access_token, hash_password
from loyal_auto.services.customer_service import CustomerService

DEFAULT_PASSWORD = "secret123"

# Hashing is slow; reuse one hash for every default-password user
_DEFAULT_PASSWORD_HASH = hash_password(DEFAULT_PASSWORD)


# ---------------------------------------------------------------------------
# Database session fixture
# ---------------------------------------------------------------------------

@pytest.fixture
async def db_session():
    """Async SQLite in-memory session with all tables created.

    Foreign keys are enforced so delete ordering mistakes fail loudly.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine.sync_engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


# ---------------------------------------------------------------------------
# Row factories
# ---------------------------------------------------------------------------

@pytest.fixture
def make_user(db_session):
    """Factory that creates a staff User.

    Usage:
        admin = await make_user(role="admin")
    """
    async def _factory(
        role: str = "operator",
        email: str | None = None,
        name: str = "Test User",
        password: str = DEFAULT_PASSWORD,
        is_active: bool = True,
    ) -> User:
        user = User(
            id=str(uuid.uuid4()),
            name=name,
            email=email or f"{uuid.uuid4().hex[:8]}@loyal.test",
            password_hash=(
                _DEFAULT_PASSWORD_HASH if password == DEFAULT_PASSWORD else hash_password(password)
            ),
            role=role,
            is_active=is_active,
        )
        db_session.add(user)
        await db_session.flush()
        return user

    return _factory


@pytest.fixture
def make_vehicle(db_session):
    """Factory that creates a Vehicle with optional expenses, prices, sale and images.

    Usage:
        car = await make_vehicle(status="for_sale", expenses=[500.0], market_prices={"retail": 12000})
    """
    async def _factory(
        status: str = "acquired",
        purchase_price: float = 10000.0,
        expenses: list[float] = (),
        market_prices: dict | None = None,
        sale_price: float | None = None,
        commission_value: float | None = None,
        images: list[str] = (),
        brand: str = "Toyota",
        model: str = "Corolla",
        year: int = 2020,
    ) -> Vehicle:
        vehicle = Vehicle(
            id=str(uuid.uuid4()),
            brand=brand,
            model=model,
            year=year,
            purchase_price=purchase_price,
            commission_value=commission_value,
            status=status,
        )
        db_session.add(vehicle)
        await db_session.flush()

        for amount in expenses:
            db_session.add(
                Expense(vehicle_id=vehicle.id, type="repair", description="", amount=amount, date=utcnow())
            )
        if market_prices is not None:
            db_session.add(MarketPrice(vehicle_id=vehicle.id, **market_prices))
        if sale_price is not None:
            db_session.add(SaleInfo(vehicle_id=vehicle.id, sale_price=sale_price, sale_date=utcnow()))
        for url in images:
            db_session.add(VehicleImage(vehicle_id=vehicle.id, url=url))

        await db_session.flush()
        return vehicle

    return _factory


@pytest.fixture
def make_customer(db_session):
    """Factory that creates a Customer through the service, history row included.

    Usage:
        customer = await make_customer(operator, vehicle)
    """
    async def _factory(operator: User, vehicle: Vehicle, **overrides):
        data = {
            "first_name": "Jane",
            "last_name": "Doe",
            "birth_date": datetime(1990, 5, 17),
            "phone": "+15551234567",
            "email": "jane@example.com",
            "passport_url": "/uploads/passports/jane.pdf",
            "vehicle_id": vehicle.id,
        }
        data.update(overrides)
        return await CustomerService(db_session).create_customer(operator, CustomerCreate(**data))

    return _factory


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------

@pytest.fixture
def auth_headers():
    """Build an Authorization header carrying a fresh token for ``user``."""
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user)}"}

    return _headers


@pytest.fixture
def storage(tmp_path):
    return LocalFileStorage(root=tmp_path / "uploads", url_prefix="/uploads")


@pytest.fixture
def make_client(db_session, storage):
    """Factory for an AsyncClient over a minimal app with the given routers.

    The app shares the test session and writes uploads under tmp_path.
    """
    def _factory(*routers) -> AsyncClient:
        test_app = FastAPI()
        register_exception_handlers(test_app)
        for router in routers:
            test_app.include_router(router)

        async def _override_get_db():
            yield db_session

        test_app.dependency_overrides[get_db] = _override_get_db
        test_app.dependency_overrides[get_storage] = lambda: storage

        return AsyncClient(
            transport=ASGITransport(app=test_app),
            base_url="http://testserver",
        )

    return _factory
