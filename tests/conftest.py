"""
Test configuration and fixtures for the real estate reservations API.
Provides database fixtures, test data factories, and common test utilities.
"""

import os
import tempfile

# Settings are read at import time, so the environment must be prepared first
_TMP_DIR = tempfile.mkdtemp(prefix="estate_api_tests_")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("TESTING", "true")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TMP_DIR}/app.db")

import pytest
import uuid
from datetime import date, timedelta
from decimal import Decimal
from typing import AsyncGenerator, Dict, Optional
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from estate_api.main import app
from estate_api.database import get_db, create_engine_for_url, create_tables, drop_tables
from estate_api.models.user import User, UserRole
from estate_api.models.property import Property, PropertyType, PropertyStatus
from estate_api.models.reservation import Reservation, ReservationStatus, utc_today
from estate_api.models.review import Review
from estate_api.repositories.user import UserRepository
from estate_api.repositories.property import PropertyRepository
from estate_api.repositories.reservation import ReservationRepository
from estate_api.repositories.review import ReviewRepository
from estate_api.services.auth import AuthService
from estate_api.services.availability import calculate_total_price
from estate_api.services.property import PropertyService
from estate_api.services.reservation import ReservationService
from estate_api.services.review import ReviewService
from estate_api.services.user import UserService
from estate_api.utils.auth import create_access_token


DEFAULT_PASSWORD = "testpassword123"


def future(days: int) -> date:
    """A date ``days`` after today (UTC)."""
    return utc_today() + timedelta(days=days)


@pytest.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """
    Engine on a fresh database for every test.

    Set TEST_DATABASE_URL to run against PostgreSQL instead of a temporary
    SQLite file.
    """
    database_url = os.getenv("TEST_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    engine = create_engine_for_url(database_url)

    await drop_tables(engine)
    await create_tables(engine)
    yield engine
    await drop_tables(engine)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def async_client(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncClient, None]:
    """Async test client; every request gets its own session on the test database."""
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# Repository fixtures
@pytest.fixture
def user_repository(db_session: AsyncSession) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def property_repository(db_session: AsyncSession) -> PropertyRepository:
    return PropertyRepository(db_session)


@pytest.fixture
def reservation_repository(db_session: AsyncSession) -> ReservationRepository:
    return ReservationRepository(db_session)


@pytest.fixture
def review_repository(db_session: AsyncSession) -> ReviewRepository:
    return ReviewRepository(db_session)


# Service fixtures
@pytest.fixture
def auth_service(db_session: AsyncSession) -> AuthService:
    return AuthService(db_session)


@pytest.fixture
def property_service(db_session: AsyncSession) -> PropertyService:
    return PropertyService(db_session)


@pytest.fixture
def reservation_service(db_session: AsyncSession) -> ReservationService:
    return ReservationService(db_session)


@pytest.fixture
def review_service(db_session: AsyncSession) -> ReviewService:
    return ReviewService(db_session)


@pytest.fixture
def user_service(db_session: AsyncSession) -> UserService:
    return UserService(db_session)


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    def create_user_data(
        email: Optional[str] = None,
        password: str = DEFAULT_PASSWORD,
        full_name: str = "Test User",
        role: UserRole = UserRole.USER,
        is_active: bool = True
    ) -> dict:
        return {
            "email": email or f"test{uuid.uuid4().hex[:8]}@example.com",
            "password": password,
            "full_name": full_name,
            "role": role,
            "is_active": is_active
        }

    @staticmethod
    async def create_user(
        user_repo: UserRepository,
        email: Optional[str] = None,
        password: str = DEFAULT_PASSWORD,
        full_name: str = "Test User",
        role: UserRole = UserRole.USER,
        is_active: bool = True
    ) -> User:
        """Create a test user in the database."""
        return await user_repo.create_user(UserFactory.create_user_data(
            email=email,
            password=password,
            full_name=full_name,
            role=role,
            is_active=is_active
        ))


class PropertyFactory:
    """Factory for creating test properties."""

    @staticmethod
    def create_property_data(
        owner_id: Optional[uuid.UUID] = None,
        title: str = "Test Property",
        description: str = "A beautiful test property near the beach",
        price: Decimal = Decimal("100.00"),
        city: str = "Miami",
        state: str = "FL",
        bedrooms: int = 2,
        bathrooms: int = 1,
        area: Decimal = Decimal("1000"),
        property_type: PropertyType = PropertyType.APARTMENT,
        status: PropertyStatus = PropertyStatus.AVAILABLE,
        is_featured: bool = False
    ) -> dict:
        return {
            "owner_id": owner_id,
            "title": title,
            "description": description,
            "price": price,
            "address": "1 Ocean Drive",
            "city": city,
            "state": state,
            "zip_code": "33139",
            "bedrooms": bedrooms,
            "bathrooms": bathrooms,
            "area": area,
            "property_type": property_type,
            "status": status,
            "is_featured": is_featured,
            "features": ["wifi"]
        }

    @staticmethod
    async def create_property(property_repo: PropertyRepository, owner_id: uuid.UUID, **kwargs) -> Property:
        """Create a test property in the database."""
        return await property_repo.create_property(
            PropertyFactory.create_property_data(owner_id=owner_id, **kwargs)
        )


class ReservationFactory:
    """
    Inserts reservations directly, bypassing the booking rules, so tests can
    set up past stays and arbitrary statuses.
    """

    @staticmethod
    async def create_reservation(
        reservation_repo: ReservationRepository,
        property_obj: Property,
        user_id: uuid.UUID,
        check_in: date,
        check_out: date,
        status: ReservationStatus = ReservationStatus.PENDING,
        guests: int = 2
    ) -> Reservation:
        return await reservation_repo.create({
            "property_id": property_obj.id,
            "user_id": user_id,
            "check_in_date": check_in,
            "check_out_date": check_out,
            "guests": guests,
            "status": status,
            "total_price": calculate_total_price(property_obj.price, check_in, check_out),
        })


class ReviewFactory:

    @staticmethod
    async def create_review(
        review_repo: ReviewRepository,
        property_id: uuid.UUID,
        user_id: uuid.UUID,
        rating: Decimal = Decimal("4.0"),
        comment: str = "Lovely place, would stay again"
    ) -> Review:
        return await review_repo.create({
            "property_id": property_id,
            "user_id": user_id,
            "rating": rating,
            "comment": comment,
        })


# Common test fixtures
@pytest.fixture
async def test_user(user_repository: UserRepository) -> User:
    """A regular guest."""
    return await UserFactory.create_user(user_repository, email="guest@test.com", full_name="Test Guest")


@pytest.fixture
async def other_user(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(user_repository, email="other@test.com", full_name="Other Guest")


@pytest.fixture
async def test_agent(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="agent@test.com",
        full_name="Test Agent",
        role=UserRole.AGENT
    )


@pytest.fixture
async def test_admin(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="admin@test.com",
        full_name="Test Admin",
        role=UserRole.ADMIN
    )


@pytest.fixture
async def test_inactive_user(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="inactive@test.com",
        full_name="Inactive User",
        is_active=False
    )


@pytest.fixture
async def test_property(property_repository: PropertyRepository, test_agent: User) -> Property:
    """An available property at 100.00 per night owned by the test agent."""
    return await PropertyFactory.create_property(
        property_repository,
        owner_id=test_agent.id,
        title="Beach Apartment",
        price=Decimal("100.00")
    )


# Utility functions for tests
def auth_headers(user: User) -> Dict[str, str]:
    """Authorization header with a fresh access token for the user."""
    token = create_access_token(user_id=user.id, email=user.email, role=user.role)
    return {"Authorization": f"Bearer {token}"}


def assert_error(response, status_code: int, error_code: Optional[str] = None) -> dict:
    """Assert an error response and return its error body."""
    assert response.status_code == status_code, response.text
    body = response.json()
    assert "error" in body
    if error_code is not None:
        assert body["error"]["code"] == error_code
    return body["error"]
