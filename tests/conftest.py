import os

os.environ["DATABASE_URI"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "development"
os.environ["DEBUG"] = "false"

import uuid

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import app.models  # noqa: F401
from app.core.middleware import booking_limiter, login_limiter, register_limiter
from app.core.security import create_tokens, get_password_hash
from app.database import Base, get_db
from app.main import app
from app.models.taxi import Taxi
from app.models.user import User
from app.seed import seed_fare_routes

JFK_KOR = "NY 존에프케네디 공항"
MIDTOWN_KOR = "NY 맨하탄 미드타운"


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def no_rate_limit():
        return None

    app.dependency_overrides[get_db] = override_get_db
    for limiter in (booking_limiter, login_limiter, register_limiter):
        app.dependency_overrides[limiter] = no_rate_limit

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def create_user(session_factory):
    async def _factory(
        role: str = "customer",
        email: str | None = None,
        name: str = "Test User",
        password: str = "Passw0rd1",
        is_active: bool = True,
    ) -> User:
        async with session_factory() as session:
            user = User(
                name=name,
                email=email or f"{role}-{uuid.uuid4().hex[:8]}@example.com",
                phone="010-1234-5678",
                password_hash=get_password_hash(password),
                role=role,
                is_active=is_active,
            )
            session.add(user)
            await session.commit()
            return user

    return _factory


def auth_headers(user: User) -> dict[str, str]:
    tokens = create_tokens(str(user.id), user.email, user.role)
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest.fixture
async def customer(create_user):
    return await create_user(role="customer", name="Kim Customer")


@pytest.fixture
async def other_customer(create_user):
    return await create_user(role="customer", name="Lee Customer")


@pytest.fixture
async def driver(create_user):
    return await create_user(role="driver", name="Park Driver")


@pytest.fixture
async def admin(create_user):
    return await create_user(role="admin", name="Admin")


@pytest.fixture
async def seeded_catalog(session_factory):
    async with session_factory() as session:
        imported = await seed_fare_routes(session)
        await session.commit()
    return imported


@pytest.fixture
def create_taxi(session_factory):
    async def _factory(
        taxi_number: str | None = None,
        status: str = "available",
        driver_id: uuid.UUID | None = None,
        lng: float = -73.9840,
        lat: float = 40.7549,
    ) -> Taxi:
        async with session_factory() as session:
            taxi = Taxi(
                taxi_number=taxi_number or f"NY-{uuid.uuid4().hex[:6].upper()}",
                driver_name="Park Driver",
                driver_id=driver_id,
                license_number="LIC-1234",
                model="Toyota Sienna",
                color="Yellow",
                year=2022,
                capacity=6,
                status=status,
                current_lng=lng,
                current_lat=lat,
            )
            session.add(taxi)
            await session.commit()
            return taxi

    return _factory


def booking_payload(
    departure: str = JFK_KOR,
    arrival: str = MIDTOWN_KOR,
    **overrides,
) -> dict:
    payload = {
        "customer_info": {"name": "Kim Minsu", "phone": "+1 (917) 555-0100"},
        "service_info": {"type": "airport"},
        "trip_details": {
            "departure": {"location": departure, "datetime": "2026-11-01T10:00:00Z"},
            "arrival": {"location": arrival},
        },
        "vehicles": [{"type": "standard", "passengers": 2, "luggage": 2}],
        "payment_method": "card",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def create_booking(client):
    async def _factory(user: User | None = None, **overrides) -> dict:
        headers = auth_headers(user) if user else {}
        response = await client.post(
            "/api/bookings", json=booking_payload(**overrides), headers=headers
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _factory
